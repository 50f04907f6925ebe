"""
Content Tree

Rendered output of a template as an ordered list of content blocks per region
(column). This is the contract between Templating and Rendering: the pagination
engine never inspects template markup, only blocks and their atomicity flags.

Contract:
- Every entry (job, degree, skill, language, certification, reference) maps to
  exactly one atomic block.
- Section headings are separate non-atomic blocks with keep_with_next=True.
- Block ids are unique across the whole tree.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple

from cvforge.contexts.templating.defaults import SIDEBAR_FRACTION
from cvforge.contexts.templating.exceptions import ContentTreeError


class BlockKind(str, Enum):
    HEADER = "header"
    CONTACT = "contact"
    HEADING = "heading"
    ENTRY = "entry"
    TEXT = "text"


@dataclass(frozen=True)
class TextLine:
    """
    One logical line of block text.

    Style names the typographic role used for measurement:
    title, subtitle, heading, body, meta, bullet, bar, photo.
    """

    text: str
    style: str = "body"


@dataclass(frozen=True)
class ContentBlock:
    """
    A unit of rendered content.

    Attributes:
        block_id: Unique id, also emitted as data-block-id in the HTML
        kind: Block kind
        region: Region (column) the block flows in ('main' or 'sidebar')
        section: Section wire name (e.g., 'workExperience') or 'header'
        lines: Logical text lines, for measurement and text verification
        atomic: Must never be split across a page boundary
        keep_with_next: Must start on the same page as the following block
        html: Rendered block HTML
    """

    block_id: str
    kind: BlockKind
    region: str
    section: str
    lines: Tuple[TextLine, ...] = ()
    atomic: bool = False
    keep_with_next: bool = False
    html: str = ""

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines if line.text)


@dataclass(frozen=True)
class ContentTree:
    """
    Blocks grouped by region in reading order.

    Attributes:
        template_id: Template that produced the tree
        color: Palette name used
        columns: 1 or 2
        regions: (region name, blocks) pairs; 'sidebar' precedes 'main'
    """

    template_id: str
    color: str
    columns: int
    regions: Tuple[Tuple[str, Tuple[ContentBlock, ...]], ...]

    def __post_init__(self):
        seen = set()
        for block in self.blocks():
            if block.block_id in seen:
                raise ContentTreeError(f"Duplicate block id: {block.block_id}")
            seen.add(block.block_id)
            if block.kind == BlockKind.ENTRY and not block.atomic:
                raise ContentTreeError(f"Entry block '{block.block_id}' must be atomic")
            if block.kind == BlockKind.HEADING and (block.atomic or not block.keep_with_next):
                raise ContentTreeError(
                    f"Heading block '{block.block_id}' must be non-atomic with keep_with_next"
                )

    @property
    def region_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.regions)

    def region(self, name: str) -> Tuple[ContentBlock, ...]:
        for region_name, blocks in self.regions:
            if region_name == name:
                return blocks
        raise KeyError(f"Unknown region: {name}")

    def blocks(self) -> Iterator[ContentBlock]:
        for _, blocks in self.regions:
            yield from blocks

    def block(self, block_id: str) -> Optional[ContentBlock]:
        for block in self.blocks():
            if block.block_id == block_id:
                return block
        return None

    def region_widths(self, width: float) -> Dict[str, float]:
        """Outer width of each region for a given page width."""
        if self.columns == 1:
            return {name: width for name in self.region_names}
        sidebar = width * SIDEBAR_FRACTION
        return {name: (sidebar if name == "sidebar" else width - sidebar) for name in self.region_names}
