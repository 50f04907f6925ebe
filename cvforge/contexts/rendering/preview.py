"""
Live Preview

A PreviewSession keeps the preview's pagination in step with the editor. Every
trigger re-renders the current document snapshot and re-measures it:

- a state transition (any document edit, template or color change)
- a viewport resize
- a page-height mode switch (screen 1123px vs. export 297mm)

Nothing measured is carried across triggers. The page is always laid out at
the page width; the viewport only changes the display scale, so a resize with
unchanged content never changes the page count.
"""

from typing import Any, Callable, Optional

from cvforge.contexts.editing.editor_state import EditorState
from cvforge.contexts.rendering.logger import _log_debug
from cvforge.contexts.rendering.measurement import Measurement, Measurer, TextMetricsMeasurer
from cvforge.contexts.rendering.pagination import (
    SCREEN_PAGE_WIDTH_PX,
    LayoutParams,
    PageHeightMode,
    PaginationResult,
    layout_for,
)
from cvforge.contexts.templating.defaults import DEFAULT_TEMPLATE_ID
from cvforge.contexts.templating.renderer import RenderedDocument, render_document


def preview_scale(container_width: float, page_width: float = SCREEN_PAGE_WIDTH_PX) -> float:
    """
    Display scale of the page inside a preview container (never enlarged).

    Examples:
        >>> preview_scale(397)
        0.5
        >>> preview_scale(1600)
        1.0
    """
    if container_width <= 0:
        return 1.0
    return min(container_width / page_width, 1.0)


class PreviewSession:
    """
    Preview pagination for one editor session.

    Args:
        state: Initial editor state
        measurer: Injected measurement capability (default: reportlab text metrics)
        params: Layout parameters (default: screen geometry)
        container_width: Width of the preview container in px

    Example:
        session = PreviewSession(state, FixedHeightMeasurer({"entry": 300}))
        session.dispatch(add_entry, "workExperience", company="Acme")
        session.layout.page_count
    """

    def __init__(
        self,
        state: EditorState,
        measurer: Optional[Measurer] = None,
        params: Optional[LayoutParams] = None,
        container_width: float = SCREEN_PAGE_WIDTH_PX,
    ):
        self.state = state
        self.measurer = measurer or TextMetricsMeasurer()
        self.params = params or LayoutParams.screen()
        self.container_width = container_width
        self.rendered: Optional[RenderedDocument] = None
        self.measurement: Optional[Measurement] = None
        self.layout: Optional[PaginationResult] = None
        self.recompute()

    @property
    def scale(self) -> float:
        return preview_scale(self.container_width, self.params.page_width)

    @property
    def template_id(self) -> str:
        return self.state.template_id or DEFAULT_TEMPLATE_ID

    def dispatch(self, transition: Callable[..., EditorState], *args: Any, **kwargs: Any) -> PaginationResult:
        """Apply an editor transition and recompute."""
        self.state = transition(self.state, *args, **kwargs)
        return self.recompute()

    def resize(self, container_width: float) -> PaginationResult:
        self.container_width = container_width
        return self.recompute()

    def set_mode(self, mode) -> PaginationResult:
        self.params = LayoutParams.for_mode(PageHeightMode(mode), self.params.epsilon)
        return self.recompute()

    def recompute(self) -> PaginationResult:
        """Render and measure the current snapshot, then paginate."""
        self.rendered = render_document(
            self.state.document,
            self.template_id,
            self.state.color,
            mode=self.params.mode.value,
            unbounded=True,
        )
        self.measurement = self.measurer.measure_blocks(self.rendered.tree, self.params.page_width)
        self.layout = layout_for(self.measurement.content_height, self.params)

        if self.layout.deferred:
            _log_debug("Preview content measured zero height, deferring pagination")
        else:
            _log_debug(
                f"Preview: {self.layout.page_count} page(s) "
                f"({self.measurement.content_height:.0f}px, scale {self.scale:.2f})"
            )
        return self.layout
