"""
Pagination Engine

Converts a measured content height into a whole number of pages and the
container height snapped to that page count.

    page_count    = max(1, floor((measured_height - epsilon) / page_height) + 1)
    snapped_height = page_count * page_height - 1

The epsilon tolerance keeps sub-pixel overflow from producing a trailing
blank page; it must stay below the height of a single line of text so real
overflow is never absorbed. The 1px reduction keeps rounding in the rasterizer
from spilling onto an extra page.

A measured height of zero or less means the content has not laid out yet:
the result is one page with deferred=True, and callers should recompute once
layout settles.
"""

import math
import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from dotenv import load_dotenv

load_dotenv()

CSS_DPI = 96
MM_PER_INCH = 25.4

# A4 page box in screen pixels
SCREEN_PAGE_HEIGHT_PX = 1123
SCREEN_PAGE_WIDTH_PX = 794

A4_HEIGHT_MM = 297
A4_WIDTH_MM = 210

DEFAULT_EPSILON_PX = float(os.getenv("CVFORGE_PAGINATION_EPSILON_PX", "8"))


def mm_to_px(mm: float, dpi: float = CSS_DPI) -> float:
    """Convert millimeters to CSS pixels (96 DPI unless given)."""
    return mm * dpi / MM_PER_INCH


class PageHeightMode(str, Enum):
    SCREEN = "screen"
    EXPORT = "export"


@dataclass(frozen=True)
class LayoutParams:
    """
    Page geometry and tolerance for one pagination target.

    Attributes:
        page_height: Page height in px (> 0)
        page_width: Page width in px (> 0)
        epsilon: Overflow tolerance in px (>= 0)
        mode: Screen (fixed 1123px) or export (297mm at the output resolution)
    """

    page_height: float
    page_width: float
    epsilon: float = DEFAULT_EPSILON_PX
    mode: PageHeightMode = PageHeightMode.SCREEN

    def __post_init__(self):
        _check_geometry(self.page_height, self.epsilon)
        if self.page_width <= 0:
            raise ValueError(f"page_width must be positive, got {self.page_width}")

    @classmethod
    def screen(cls, epsilon: float = DEFAULT_EPSILON_PX) -> "LayoutParams":
        return cls(
            page_height=SCREEN_PAGE_HEIGHT_PX,
            page_width=SCREEN_PAGE_WIDTH_PX,
            epsilon=epsilon,
            mode=PageHeightMode.SCREEN,
        )

    @classmethod
    def export(cls, epsilon: float = DEFAULT_EPSILON_PX, dpi: float = CSS_DPI) -> "LayoutParams":
        return cls(
            page_height=mm_to_px(A4_HEIGHT_MM, dpi),
            page_width=mm_to_px(A4_WIDTH_MM, dpi),
            epsilon=epsilon,
            mode=PageHeightMode.EXPORT,
        )

    @classmethod
    def for_mode(cls, mode, epsilon: float = DEFAULT_EPSILON_PX) -> "LayoutParams":
        if PageHeightMode(mode) == PageHeightMode.EXPORT:
            return cls.export(epsilon)
        return cls.screen(epsilon)


@dataclass(frozen=True)
class PaginationResult:
    """
    Page count and snapped container height for a measured content height.

    Attributes:
        page_count: Whole pages (>= 1)
        snapped_height: page_count * page_height - 1
        measured_height: Height the result was computed from
        page_height: Page height used
        deferred: True when measured_height <= 0 (layout not settled yet)
    """

    page_count: int
    snapped_height: float
    measured_height: float
    page_height: float
    deferred: bool = False

    @property
    def page_boundaries(self) -> List[float]:
        """Y offsets of the page breaks inside the snapped container."""
        return [self.page_height * index for index in range(1, self.page_count)]

    def page_range(self, page: int) -> Tuple[float, float]:
        """(top, bottom) of a 1-indexed page."""
        return ((page - 1) * self.page_height, page * self.page_height)


def _check_geometry(page_height: float, epsilon: float) -> None:
    if not page_height > 0:
        raise ValueError(f"page_height must be positive, got {page_height}")
    if epsilon < 0:
        raise ValueError(f"epsilon must be non-negative, got {epsilon}")


def compute_layout(
    measured_height: float,
    page_height: float = SCREEN_PAGE_HEIGHT_PX,
    epsilon: float = DEFAULT_EPSILON_PX,
) -> PaginationResult:
    """
    Compute page count and snapped height.

    Args:
        measured_height: Natural content height in px
        page_height: Page height in px
        epsilon: Overflow tolerance in px

    Returns:
        PaginationResult

    Raises:
        ValueError: If page_height <= 0 or epsilon < 0

    Examples:
        >>> compute_layout(1123).page_count
        1
        >>> compute_layout(1123 + 7).page_count
        1
        >>> compute_layout(1123 + 9).page_count
        2
    """
    _check_geometry(page_height, epsilon)

    if measured_height <= 0:
        return PaginationResult(
            page_count=1,
            snapped_height=page_height - 1,
            measured_height=measured_height,
            page_height=page_height,
            deferred=True,
        )

    pages = max(1, math.floor((measured_height - epsilon) / page_height) + 1)
    return PaginationResult(
        page_count=pages,
        snapped_height=pages * page_height - 1,
        measured_height=measured_height,
        page_height=page_height,
    )


def layout_for(measured_height: float, params: LayoutParams) -> PaginationResult:
    return compute_layout(measured_height, params.page_height, params.epsilon)
