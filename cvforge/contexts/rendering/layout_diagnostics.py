"""
Layout diagnostics for exported resume validation.

Verifies, after page breaks were inserted, that the layout honors the block
contract, and compares the exported PDF against the expected structure.

Detection capabilities:
- Page count mismatch: PDF pages differ from the pagination engine's count
- Atomic block split: a re-measured atomic block still crosses a boundary
- Orphaned heading: a heading ends a page while its content starts the next
- Block text split: an atomic block's text starts and ends on different PDF pages

Geometry checks use re-measured block boxes. Text checks use character stream
matching on the PDF: the start of a block's first line and the end of its last
line (MATCH_LENGTH normalized characters each) are located page by page within
the block's column. Lines are matched separately because a row may hold
several lines side by side (a title with its dates).

Known limitation: blocks with fewer than MATCH_LENGTH characters of text may
match earlier occurrences of the same text (e.g., two skills with the same
name); the search starts from the page of the previous block in the same
region to keep matches in reading order.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from cvforge.contexts.rendering.measurement import Measurement
from cvforge.contexts.rendering.pagination import DEFAULT_EPSILON_PX
from cvforge.contexts.templating.content_tree import BlockKind, ContentTree
from cvforge.contexts.templating.defaults import SIDEBAR_FRACTION
from cvforge.utils.pdf_processing import PDFDocument, normalize_for_matching

# Character count for prefix/suffix matching
MATCH_LENGTH = 30

# Region name -> column index in two-column PDFs
REGIONS = {"sidebar": 0, "main": 1}


class IssueTemplates:
    """Centralized issue message templates (f-string style)."""

    # Document-level
    PAGE_COUNT_MISMATCH = "Page count mismatch: {actual} (expected {intended})"

    # Page-level
    ORPHANED_HEADING = "'{block}' ({region}): heading ends page {page} but its content starts page {next_page}"

    # Block-level
    ATOMIC_BLOCK_SPLIT = "'{block}' ({region}): atomic block split across pages {start} to {end}"
    OVERSIZED_BLOCK = "'{block}' ({region}): taller than a page ({height:.0f}px), cannot be kept together"
    BLOCK_TEXT_SPLIT = "'{block}' ({region}): text starts on PDF page {start} but ends on page {end}"
    BLOCK_TEXT_NOT_FOUND = "'{block}' ({region}): text not found in PDF"


# =============================================================================
# Diagnostics Hierarchy
# =============================================================================


@dataclass
class Diagnostics:
    """Base class for hierarchical diagnostics."""

    components: List["Diagnostics"] = field(default_factory=list)

    def get_issues(self) -> List[str]:
        """Generate issues for this level based on field values. Override in subclasses."""
        return []

    def get_inherited_issues(self) -> List[str]:
        """Collect issues from this level and all descendants."""
        all_issues = list(self.get_issues())
        for component in self.components:
            all_issues.extend(component.get_inherited_issues())
        return all_issues

    @property
    def is_valid(self) -> bool:
        """True if no issues at this level or any descendant."""
        return len(self.get_inherited_issues()) == 0


@dataclass
class BlockDiagnostics(Diagnostics):
    """Diagnostics for a single content block."""

    block_id: str = ""
    region_name: str = ""
    atomic: bool = False
    height: float = 0.0
    start_page: int = 0
    end_page: int = 0
    oversized: bool = False
    # PDF text verification (None = not checked)
    pdf_start_page: Optional[int] = None
    pdf_end_page: Optional[int] = None
    text_checked: bool = False

    def get_issues(self) -> List[str]:
        issues = []
        if self.oversized:
            issues.append(
                IssueTemplates.OVERSIZED_BLOCK.format(
                    block=self.block_id, region=self.region_name, height=self.height
                )
            )
        elif self.atomic and self.end_page != self.start_page:
            issues.append(
                IssueTemplates.ATOMIC_BLOCK_SPLIT.format(
                    block=self.block_id,
                    region=self.region_name,
                    start=self.start_page,
                    end=self.end_page,
                )
            )

        if self.text_checked and not self.oversized:
            if self.pdf_start_page is None or self.pdf_end_page is None:
                issues.append(
                    IssueTemplates.BLOCK_TEXT_NOT_FOUND.format(block=self.block_id, region=self.region_name)
                )
            elif self.pdf_start_page != self.pdf_end_page:
                issues.append(
                    IssueTemplates.BLOCK_TEXT_SPLIT.format(
                        block=self.block_id,
                        region=self.region_name,
                        start=self.pdf_start_page,
                        end=self.pdf_end_page,
                    )
                )
        return issues


@dataclass
class PageDiagnostics(Diagnostics):
    """Diagnostics for a single page: the blocks that start on it."""

    page_number: int = 0
    orphaned_headings: List[tuple] = field(default_factory=list)  # (block_id, region, next_page)

    def get_issues(self) -> List[str]:
        return [
            IssueTemplates.ORPHANED_HEADING.format(
                block=block_id, region=region, page=self.page_number, next_page=next_page
            )
            for block_id, region, next_page in self.orphaned_headings
        ]


@dataclass
class DocumentDiagnostics(Diagnostics):
    """Top-level diagnostics for the entire document."""

    intended_page_count: int = 0
    actual_page_count: Optional[int] = None  # None = no PDF checked

    def get_issues(self) -> List[str]:
        issues = []
        if self.actual_page_count is not None and self.actual_page_count != self.intended_page_count:
            issues.append(
                IssueTemplates.PAGE_COUNT_MISMATCH.format(
                    actual=self.actual_page_count,
                    intended=self.intended_page_count,
                )
            )
        return issues

    def iter_blocks(self):
        for page in self.components:
            for block in page.components:
                yield block


# =============================================================================
# Analysis Functions
# =============================================================================


def _page_of(y: float, page_height: float) -> int:
    return int(math.floor(y / page_height)) + 1


def analyze_block_layout(
    tree: ContentTree,
    measurement: Measurement,
    page_height: float,
    epsilon: float = DEFAULT_EPSILON_PX,
    intended_page_count: Optional[int] = None,
) -> DocumentDiagnostics:
    """
    Verify re-measured block positions against page boundaries.

    Builds a Document -> Page -> Block diagnostics tree. Each block is filed
    under the page it starts on.

    Args:
        tree: Content tree (atomicity flags)
        measurement: Block boxes measured after spacers were inserted
        page_height: Page height in the measurement's units
        epsilon: Overrun tolerated at a boundary
        intended_page_count: Expected page count (defaults to the highest page used)

    Returns:
        DocumentDiagnostics. Call .get_inherited_issues() for all issues,
        or .is_valid to check the layout.
    """
    pages = {}

    def page_diagnostics(number: int) -> PageDiagnostics:
        if number not in pages:
            pages[number] = PageDiagnostics(page_number=number)
        return pages[number]

    for region in measurement.regions:
        boxes = measurement.region_boxes(region)
        for index, box in enumerate(boxes):
            block = tree.block(box.block_id)
            if block is None:
                continue

            start_page = _page_of(box.top, page_height)
            end_page = max(start_page, _page_of(box.bottom - epsilon, page_height))
            page_diagnostics(start_page).components.append(
                BlockDiagnostics(
                    block_id=box.block_id,
                    region_name=region,
                    atomic=block.atomic,
                    height=box.height,
                    start_page=start_page,
                    end_page=end_page,
                    oversized=block.atomic and box.height > page_height,
                )
            )

            if block.kind == BlockKind.HEADING and index + 1 < len(boxes):
                next_page = _page_of(boxes[index + 1].top, page_height)
                if next_page > end_page:
                    page_diagnostics(end_page).orphaned_headings.append(
                        (box.block_id, region, next_page)
                    )

    highest = max(pages) if pages else 1
    document_diagnostics = DocumentDiagnostics(
        intended_page_count=intended_page_count or highest,
    )
    document_diagnostics.components = [pages[number] for number in sorted(pages)]
    return document_diagnostics


def analyze_pdf_text(
    tree: ContentTree,
    pdf: PDFDocument,
    diagnostics: DocumentDiagnostics,
) -> DocumentDiagnostics:
    """
    Check that each atomic block's text begins and ends on the same PDF page.

    Also records the PDF page count on the document diagnostics.

    Args:
        tree: Content tree (block text)
        pdf: Exported PDF, split into columns matching the tree's regions
        diagnostics: Result of analyze_block_layout (updated in place)

    Returns:
        The same diagnostics object
    """
    diagnostics.actual_page_count = pdf.page_count
    region_cursor = {}

    for block_diagnostics in diagnostics.iter_blocks():
        if not block_diagnostics.atomic or block_diagnostics.oversized:
            continue
        block = tree.block(block_diagnostics.block_id)
        streams = [normalize_for_matching(line.text) for line in (block.lines if block else ())]
        streams = [stream for stream in streams if stream]
        if not streams:
            continue

        region = block_diagnostics.region_name
        column = REGIONS.get(region, 0) if tree.columns == 2 else 0
        start_search = region_cursor.get(region, 1)

        prefix = streams[0][:MATCH_LENGTH]
        suffix = streams[-1][-MATCH_LENGTH:]
        start_page = pdf.find_page(prefix, start_page=start_search, column=column)
        end_page = None
        if start_page is not None:
            end_page = pdf.find_page(suffix, start_page=start_page, column=column)
            region_cursor[region] = start_page

        block_diagnostics.text_checked = True
        block_diagnostics.pdf_start_page = start_page
        block_diagnostics.pdf_end_page = end_page

    return diagnostics


def pdf_column_splits(tree: ContentTree) -> List[float]:
    """Column split ratios for PDFDocument matching the tree's layout."""
    return [SIDEBAR_FRACTION] if tree.columns == 2 else []
