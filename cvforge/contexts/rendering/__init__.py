"""
Rendering Context

Responsibilities:
- Converts measured content height into page count and snapped height
- Plans page breaks so atomic blocks never straddle a page boundary
- Coordinates live preview recomputation
- Rasterizes unbounded renderings to multi-page A4 PDFs
- Verifies exported layouts and reports diagnostics

Owns: Pagination, measurement, break planning, PDF export, output management
Never: Mutates the document being rendered
"""

from cvforge.contexts.rendering.break_planner import BreakPlan, Spacer, plan_page_breaks
from cvforge.contexts.rendering.measurement import (
    FixedHeightMeasurer,
    Measurement,
    TextMetricsMeasurer,
    measure,
)
from cvforge.contexts.rendering.pagination import LayoutParams, PaginationResult, compute_layout

__all__ = [
    "BreakPlan",
    "Spacer",
    "plan_page_breaks",
    "FixedHeightMeasurer",
    "Measurement",
    "TextMetricsMeasurer",
    "measure",
    "LayoutParams",
    "PaginationResult",
    "compute_layout",
]
