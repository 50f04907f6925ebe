"""
Content Measurement

The pagination engine learns content height only through a Measurer. A
measurer lays out a ContentTree at a given page width and reports each block's
box (region, top, height) plus the overall content height.

Implementations:
- FixedHeightMeasurer: synthetic heights per block id or kind (tests, scripted
  scenarios); the engine stays testable without a real renderer
- TextMetricsMeasurer: wraps each block's lines with reportlab font metrics
- The Playwright export surface measures real DOM boxes (see backends.py)

All measurers stack blocks the same way the HTML does: each region is padded
at top and bottom, and consecutive blocks are separated by a fixed gap.
"""

from dataclasses import dataclass, replace
from typing import Mapping, Optional, Protocol, Tuple

from reportlab.lib.utils import simpleSplit

from cvforge.contexts.templating.content_tree import ContentBlock, ContentTree

# Mirrors .cv-region padding and .cv-block margin in the document template
REGION_PADDING_PX = 24.0
BLOCK_GAP_PX = 12.0


@dataclass(frozen=True)
class BlockBox:
    """Vertical extent of one block inside its region, in px from the container top."""

    block_id: str
    region: str
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class Measurement:
    """
    Block boxes and overall content height of a laid-out tree.

    Attributes:
        boxes: Block boxes in reading order (region by region)
        content_height: Natural height of the content container
    """

    boxes: Tuple[BlockBox, ...]
    content_height: float

    def box(self, block_id: str) -> Optional[BlockBox]:
        for box in self.boxes:
            if box.block_id == block_id:
                return box
        return None

    def region_boxes(self, region: str) -> Tuple[BlockBox, ...]:
        return tuple(sorted((b for b in self.boxes if b.region == region), key=lambda b: b.top))

    @property
    def regions(self) -> Tuple[str, ...]:
        seen = []
        for box in self.boxes:
            if box.region not in seen:
                seen.append(box.region)
        return tuple(seen)

    @property
    def trailing_space(self) -> float:
        """Space between the lowest block bottom and the container bottom."""
        if not self.boxes:
            return 0.0
        return max(0.0, self.content_height - max(box.bottom for box in self.boxes))


class Measurer(Protocol):
    """Injected measurement capability."""

    def measure_blocks(self, tree: ContentTree, width: float) -> Measurement:
        ...


def measure(measurer: Measurer, tree: ContentTree, width: float) -> float:
    """Natural content height of a tree at a page width."""
    return measurer.measure_blocks(tree, width).content_height


def stack_blocks(
    tree: ContentTree,
    heights: Mapping[str, float],
    gap: float = BLOCK_GAP_PX,
    padding: float = REGION_PADDING_PX,
) -> Measurement:
    """
    Lay blocks out top to bottom in each region.

    Args:
        tree: Content tree
        heights: Block id -> height
        gap: Space after each block
        padding: Region padding at top and bottom

    Returns:
        Measurement; an empty tree measures 0
    """
    boxes = []
    content_height = 0.0

    for region, blocks in tree.regions:
        if not blocks:
            continue
        cursor = padding
        for block in blocks:
            height = heights[block.block_id]
            boxes.append(BlockBox(block.block_id, region, cursor, height))
            cursor += height + gap
        content_height = max(content_height, cursor - gap + padding)

    return Measurement(boxes=tuple(boxes), content_height=content_height)


def shift_measurement(measurement: Measurement, shifts: Mapping[str, float]) -> Measurement:
    """
    Re-derive block boxes after spacers were inserted.

    Args:
        measurement: Measurement taken before insertion
        shifts: Block id -> spacer height inserted before it

    Each spacer pushes its block and everything after it in the same region.
    """
    boxes = []
    for region in measurement.regions:
        shift = 0.0
        for box in measurement.region_boxes(region):
            shift += shifts.get(box.block_id, 0.0)
            boxes.append(replace(box, top=box.top + shift))

    trailing = measurement.trailing_space
    lowest = max((box.bottom for box in boxes), default=0.0)
    return Measurement(
        boxes=tuple(boxes),
        content_height=max(measurement.content_height, lowest + trailing),
    )


class FixedHeightMeasurer:
    """
    Measurer with synthetic heights.

    Heights are looked up by block id, then by block kind ('entry', 'heading',
    ...), then fall back to default_height.

    Example:
        >>> measurer = FixedHeightMeasurer({"entry": 300, "heading": 28}, default_height=40)
        >>> measure(measurer, tree, 794)
    """

    def __init__(
        self,
        heights: Optional[Mapping[str, float]] = None,
        default_height: float = 40.0,
        gap: float = BLOCK_GAP_PX,
        padding: float = REGION_PADDING_PX,
    ):
        self.heights = dict(heights or {})
        self.default_height = default_height
        self.gap = gap
        self.padding = padding
        self.calls = 0

    def height_of(self, block: ContentBlock) -> float:
        if block.block_id in self.heights:
            return self.heights[block.block_id]
        return self.heights.get(block.kind.value, self.default_height)

    def measure_blocks(self, tree: ContentTree, width: float) -> Measurement:
        self.calls += 1
        heights = {block.block_id: self.height_of(block) for block in tree.blocks()}
        return stack_blocks(tree, heights, gap=self.gap, padding=self.padding)


# Line style -> (font name, font size px, line height px)
STYLE_METRICS = {
    "title": ("Helvetica-Bold", 15, 22),
    "subtitle": ("Helvetica", 14, 20),
    "heading": ("Helvetica-Bold", 16, 28),
    "body": ("Helvetica", 14, 20),
    "meta": ("Helvetica", 12, 18),
}

# Line styles with a fixed box height regardless of text
FIXED_STYLE_HEIGHTS = {
    "photo": 128.0,
    "bar": 12.0,
}

# Extra vertical padding per block kind (header band padding)
KIND_PADDING = {
    "header": 32.0,
}


class TextMetricsMeasurer:
    """
    Measurer that wraps block text with reportlab font metrics.

    Each line is wrapped at the region's inner width (region width minus
    horizontal padding) using the Helvetica metrics of its style, matching the
    font stack of the document template.
    """

    def __init__(
        self,
        gap: float = BLOCK_GAP_PX,
        padding: float = REGION_PADDING_PX,
        style_metrics: Optional[Mapping[str, Tuple[str, float, float]]] = None,
    ):
        self.gap = gap
        self.padding = padding
        self.style_metrics = dict(style_metrics or STYLE_METRICS)

    def line_height(self, text: str, style: str, width: float) -> float:
        if style in FIXED_STYLE_HEIGHTS:
            return FIXED_STYLE_HEIGHTS[style]
        if not text:
            return 0.0
        font, size, leading = self.style_metrics.get(style, self.style_metrics["body"])
        wrapped = simpleSplit(text, font, size, max(width, size))
        return max(1, len(wrapped)) * leading

    def block_height(self, block: ContentBlock, width: float) -> float:
        inner = width - 2 * self.padding
        height = sum(self.line_height(line.text, line.style, inner) for line in block.lines)
        return height + KIND_PADDING.get(block.kind.value, 0.0)

    def measure_blocks(self, tree: ContentTree, width: float) -> Measurement:
        widths = tree.region_widths(width)
        heights = {
            block.block_id: self.block_height(block, widths[block.region]) for block in tree.blocks()
        }
        return stack_blocks(tree, heights, gap=self.gap, padding=self.padding)

