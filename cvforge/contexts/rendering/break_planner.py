"""
Page Break Planner

Makes block atomicity an explicit, checkable step instead of a CSS hint to the
rasterizer. Given measured block boxes, the planner computes where page
boundaries fall and inserts spacers so that:

- an atomic block that would overrun a boundary by epsilon or more starts at
  the next boundary instead;
- a keep-with-next heading starts on the same page as its following block
  (the whole block when it is atomic, otherwise its first orphan_threshold px).

Each region (column) is planned independently since columns flow separately.
Blocks taller than a page cannot be protected; they are reported as oversized
and left in place.

Each push moves a block down by less than one page height, so the planned page
count exceeds the unplanned one by at most forced_pushes.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

from cvforge.contexts.rendering.logger import _log_debug, _log_warning
from cvforge.contexts.rendering.measurement import BlockBox, Measurement
from cvforge.contexts.rendering.pagination import DEFAULT_EPSILON_PX, PaginationResult, compute_layout
from cvforge.contexts.templating.content_tree import ContentTree

# Minimum height of a splittable block kept on the same page as its heading
DEFAULT_ORPHAN_THRESHOLD_PX = 60.0


@dataclass(frozen=True)
class Spacer:
    """
    Blank space inserted immediately before a block.

    Attributes:
        before_block_id: Block pushed down by the spacer
        region: Region of that block
        height: Spacer height in px
        reason: 'atomic' or 'keep_with_next'
    """

    before_block_id: str
    region: str
    height: float
    reason: str


@dataclass(frozen=True)
class Placement:
    """Planned position of a block after spacers."""

    block_id: str
    region: str
    original_top: float
    top: float
    height: float
    page: int

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class BreakPlan:
    """
    Result of planning page breaks.

    Attributes:
        placements: Planned block positions in reading order
        spacers: Spacers to insert, in reading order
        laid_out_height: Content height once the spacers are in place
        forced_pushes: Number of spacers inserted
        oversized: Ids of atomic blocks taller than a page (left unprotected)
        page_height: Page height used for planning
        epsilon: Overflow tolerance used for planning
    """

    placements: Tuple[Placement, ...]
    spacers: Tuple[Spacer, ...]
    laid_out_height: float
    forced_pushes: int
    oversized: Tuple[str, ...]
    page_height: float
    epsilon: float = DEFAULT_EPSILON_PX

    @property
    def layout(self) -> PaginationResult:
        return compute_layout(self.laid_out_height, self.page_height, self.epsilon)

    @property
    def shifts(self) -> Dict[str, float]:
        """Block id -> spacer height inserted before it."""
        return {spacer.before_block_id: spacer.height for spacer in self.spacers}

    def placement(self, block_id: str) -> Placement:
        for placement in self.placements:
            if placement.block_id == block_id:
                return placement
        raise KeyError(f"No placement for block: {block_id}")


def _page_index(y: float, page_height: float) -> int:
    return int(math.floor(y / page_height))


def plan_page_breaks(
    tree: ContentTree,
    measurement: Measurement,
    page_height: float,
    epsilon: float = DEFAULT_EPSILON_PX,
    orphan_threshold: float = DEFAULT_ORPHAN_THRESHOLD_PX,
) -> BreakPlan:
    """
    Plan spacers so no atomic block straddles a page boundary.

    Args:
        tree: Content tree (supplies atomic / keep_with_next flags)
        measurement: Block boxes measured without spacers
        page_height: Page height in the measurement's units
        epsilon: Overflow tolerance (a block may overrun a boundary by this much)
        orphan_threshold: Height of a splittable block that must follow its heading

    Returns:
        BreakPlan

    Raises:
        ValueError: If page_height <= 0 or epsilon < 0
    """
    if not page_height > 0:
        raise ValueError(f"page_height must be positive, got {page_height}")
    if epsilon < 0:
        raise ValueError(f"epsilon must be non-negative, got {epsilon}")

    placements: List[Placement] = []
    spacers: List[Spacer] = []
    oversized: List[str] = []
    region_ends: List[float] = []

    for region in measurement.regions:
        boxes = measurement.region_boxes(region)
        shift = 0.0

        for index, box in enumerate(boxes):
            block = tree.block(box.block_id)
            top = box.top + shift

            extent, reason = _protected_extent(tree, boxes, index, orphan_threshold)

            if block is not None and block.atomic and box.height > page_height:
                oversized.append(box.block_id)
                _log_warning(
                    f"Block '{box.block_id}' ({box.height:.0f}px) is taller than a page "
                    f"({page_height:.0f}px) and may split"
                )
            elif extent is not None and extent <= page_height:
                page = _page_index(top, page_height)
                boundary = (page + 1) * page_height
                starts_page = math.isclose(top, page * page_height)
                if top + extent >= boundary + epsilon and not starts_page:
                    push = boundary - top
                    spacers.append(Spacer(box.block_id, region, push, reason))
                    shift += push
                    top = boundary
                    _log_debug(f"Pushed '{box.block_id}' by {push:.1f}px to page {page + 2} ({reason})")

            placements.append(
                Placement(
                    block_id=box.block_id,
                    region=region,
                    original_top=box.top,
                    top=top,
                    height=box.height,
                    page=_page_index(top, page_height) + 1,
                )
            )

        if boxes:
            region_ends.append(boxes[-1].bottom + shift)

    laid_out_height = measurement.content_height
    if region_ends:
        laid_out_height = max(laid_out_height, max(region_ends) + measurement.trailing_space)

    return BreakPlan(
        placements=tuple(placements),
        spacers=tuple(spacers),
        laid_out_height=laid_out_height,
        forced_pushes=len(spacers),
        oversized=tuple(oversized),
        page_height=page_height,
        epsilon=epsilon,
    )


def _protected_extent(
    tree: ContentTree, boxes: Tuple[BlockBox, ...], index: int, orphan_threshold: float
):
    """
    Height from this block's top that must stay on one page, and why.

    Returns (None, '') for splittable blocks with nothing to keep together.
    """
    box = boxes[index]
    block = tree.block(box.block_id)
    if block is None:
        return None, ""

    if block.keep_with_next and index + 1 < len(boxes):
        following = boxes[index + 1]
        following_block = tree.block(following.block_id)
        if following_block is not None and following_block.atomic:
            keep = following.height
        else:
            keep = min(following.height, orphan_threshold)
        return (following.top - box.top) + keep, "keep_with_next"

    if block.atomic:
        return box.height, "atomic"

    return None, ""
