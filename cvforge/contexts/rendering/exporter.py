"""
Export Driver

Rasterizes an unbounded rendering into a single multi-page A4 PDF without
splitting atomic blocks.

Sequence (one surface per export):
1. Wait for images and fonts (bounded timeout, retried with tenacity)
2. Measure block boxes
3. Plan page breaks and insert spacers before pushed blocks
4. Re-measure and verify block positions against page boundaries
5. Snap the container to the pagination engine's snapped height
6. Print fixed 210 x 297 mm pages
7. Count PDF pages (PyPDF2) and, optionally, verify block text per page

Only one export runs at a time per driver; a second request while one is in
flight is rejected with ExportInProgressError.
"""

import asyncio
import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from cvforge.contexts.editing.cv_data_structure import CVDocument
from cvforge.contexts.rendering.backends import PlaywrightBackend, RasterBackend
from cvforge.contexts.rendering.break_planner import (
    DEFAULT_ORPHAN_THRESHOLD_PX,
    BreakPlan,
    plan_page_breaks,
)
from cvforge.contexts.rendering.exceptions import (
    ExportError,
    ExportInProgressError,
    IncompleteAssetError,
    RasterizationError,
)
from cvforge.contexts.rendering.layout_diagnostics import (
    DocumentDiagnostics,
    analyze_block_layout,
    analyze_pdf_text,
    pdf_column_splits,
)
from cvforge.contexts.rendering.logger import (
    _log_debug,
    _log_info,
    _log_warning,
    log_export_result,
    log_export_start,
    setup_rendering_logger,
)
from cvforge.contexts.rendering.measurement import Measurement
from cvforge.contexts.rendering.pagination import LayoutParams, PaginationResult, layout_for
from cvforge.contexts.templating.exceptions import TemplateRenderError
from cvforge.contexts.templating.renderer import EXPORT, RenderedDocument, render_document
from cvforge.utils.pdf_processing import PDFDocument, page_count
from cvforge.utils.logger import LOGS_PATH, session_log_dir
from cvforge.utils.timestamp import today

load_dotenv()

RESULTS_PATH = Path(os.getenv("CVFORGE_RESULTS_PATH", "outs/results"))
EXPORT_FILENAME = os.getenv("CVFORGE_EXPORT_FILENAME", "my-cv.pdf")
ASSET_TIMEOUT_S = float(os.getenv("CVFORGE_ASSET_TIMEOUT_S", "10"))
ASSET_RETRIES = int(os.getenv("CVFORGE_ASSET_RETRIES", "2"))
ASSET_RETRY_DELAY_S = float(os.getenv("CVFORGE_ASSET_RETRY_DELAY_S", "1"))


@dataclass(frozen=True)
class ExportArtifact:
    """
    Exported PDF and the layout it was produced from.

    Attributes:
        pdf_bytes: PDF content
        filename: Download filename
        page_count: Pages in the PDF
        layout: Pagination of the re-measured (post-spacer) content height
        plan: Break plan that was applied
        measurement: Block boxes re-measured after spacers were inserted
        diagnostics: Layout and PDF verification results
    """

    pdf_bytes: bytes
    filename: str
    page_count: int
    layout: PaginationResult
    plan: BreakPlan
    measurement: Measurement
    diagnostics: DocumentDiagnostics

    @property
    def issues(self) -> List[str]:
        return self.diagnostics.get_inherited_issues()


class ExportDriver:
    """
    Single-flight export driver.

    Args:
        backend: Rasterization backend (defaults to PlaywrightBackend)
        params: Layout parameters (defaults to the rendering's mode)
        asset_timeout_s: Wait per attempt for images and fonts
        asset_retries: Extra attempts after an IncompleteAssetError
        retry_delay_s: Delay between asset attempts
        verify_text: Check atomic block text per PDF page with pdfplumber
        orphan_threshold: Minimum splittable content kept with its heading
    """

    def __init__(
        self,
        backend: Optional[RasterBackend] = None,
        params: Optional[LayoutParams] = None,
        asset_timeout_s: float = ASSET_TIMEOUT_S,
        asset_retries: int = ASSET_RETRIES,
        retry_delay_s: float = ASSET_RETRY_DELAY_S,
        verify_text: bool = True,
        orphan_threshold: float = DEFAULT_ORPHAN_THRESHOLD_PX,
        filename: str = EXPORT_FILENAME,
    ):
        self.backend = backend or PlaywrightBackend()
        self.params = params
        self.asset_timeout_s = asset_timeout_s
        self.asset_retries = asset_retries
        self.retry_delay_s = retry_delay_s
        self.verify_text = verify_text
        self.orphan_threshold = orphan_threshold
        self.filename = filename
        self._lock = asyncio.Lock()

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    async def export(self, rendered: RenderedDocument) -> ExportArtifact:
        """
        Export a rendering to PDF.

        Raises:
            ExportInProgressError: If another export is running on this driver
            IncompleteAssetError: If assets never finished loading
            RasterizationError: For any backend failure
            ExportError: If the rendering is clipped to one page
        """
        if self._lock.locked():
            raise ExportInProgressError()

        async with self._lock:
            if not rendered.unbounded:
                raise ExportError("Export requires an unbounded rendering")
            try:
                return await self._export(rendered)
            except ExportError:
                raise
            except Exception as e:
                raise RasterizationError("Rasterization failed", original_error=e) from e

    async def _wait_for_assets(self, surface) -> None:
        def log_retry(retry_state):
            _log_warning(
                f"Assets not ready (attempt {retry_state.attempt_number}): "
                f"{retry_state.outcome.exception()}"
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.asset_retries + 1),
            wait=wait_fixed(self.retry_delay_s),
            retry=retry_if_exception_type(IncompleteAssetError),
            before_sleep=log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await surface.wait_for_assets(self.asset_timeout_s)

    async def _export(self, rendered: RenderedDocument) -> ExportArtifact:
        tree = rendered.tree
        params = self.params or LayoutParams.for_mode(rendered.mode)

        async with self.backend.open(rendered.html) as surface:
            await self._wait_for_assets(surface)

            measurement = await surface.measure_blocks()
            _log_debug(f"Measured content height: {measurement.content_height:.1f}px")

            plan = plan_page_breaks(
                tree,
                measurement,
                params.page_height,
                params.epsilon,
                self.orphan_threshold,
            )
            if plan.spacers:
                await surface.insert_spacers(plan.spacers)
                measurement = await surface.measure_blocks()
                _log_debug(
                    f"Inserted {len(plan.spacers)} spacer(s), re-measured height: "
                    f"{measurement.content_height:.1f}px"
                )

            layout = layout_for(measurement.content_height, params)
            if layout.deferred:
                _log_warning("Content measured zero height, exporting a single page")

            diagnostics = analyze_block_layout(
                tree, measurement, params.page_height, params.epsilon, layout.page_count
            )

            await surface.snap_height(layout.snapped_height)
            pdf_bytes = await surface.print_pdf()

        pdf_pages = page_count(pdf_bytes)
        if pdf_pages is None:
            raise RasterizationError("Backend produced an unreadable PDF")
        diagnostics.actual_page_count = pdf_pages

        if self.verify_text:
            pdf = PDFDocument(pdf_bytes, column_splits=pdf_column_splits(tree))
            analyze_pdf_text(tree, pdf, diagnostics)

        return ExportArtifact(
            pdf_bytes=pdf_bytes,
            filename=self.filename,
            page_count=pdf_pages,
            layout=layout,
            plan=plan,
            measurement=measurement,
            diagnostics=diagnostics,
        )


@dataclass
class ExportResult:
    """
    Result of an export.

    Attributes:
        success: Whether a PDF was produced
        pdf_path: Path to the saved PDF (None if failed)
        page_count: Pages in the PDF (None if failed)
        errors: Export errors (user-facing, retryable)
        issues: Layout verification issues (PDF was still produced)
        artifact: Full export artifact (None if failed)
    """

    success: bool
    pdf_path: Optional[Path] = None
    page_count: Optional[int] = None
    errors: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    artifact: Optional[ExportArtifact] = None


def export_resume(
    document: CVDocument,
    template_id: str,
    color: Optional[str] = None,
    output_dir: Optional[Path] = None,
    driver: Optional[ExportDriver] = None,
    verbose: bool = False,
) -> ExportResult:
    """
    Render and export a document to PDF with organized output management.

    Orchestration function that wraps ExportDriver.export() with logging and
    result handling. Never raises for export failures; they are returned in
    ExportResult.errors so the caller can report them and retry.

    On success:
        - Writes the PDF to output_dir, or outs/results/YYYY-MM-DD/
        - Creates a copy in the log directory

    Args:
        document: Document snapshot to export
        template_id: Template id
        color: Palette name (defaults to the template's color)
        output_dir: Directory for the PDF (default: dated results directory)
        driver: Export driver (default: Playwright-backed driver)
        verbose: Log every layout issue

    Returns:
        ExportResult with success status and diagnostic information
    """
    log_dir = session_log_dir("export", LOGS_PATH)
    setup_rendering_logger(log_dir)

    driver = driver or ExportDriver()
    output_dir = Path(output_dir) if output_dir else RESULTS_PATH / today()
    pdf_path = output_dir / driver.filename

    start_time = time.time()
    try:
        rendered = render_document(document, template_id, color, mode=EXPORT, unbounded=True)
        log_export_start(rendered.template.id, sum(1 for _ in rendered.tree.blocks()), pdf_path)
        artifact = asyncio.run(driver.export(rendered))
    except (ExportError, TemplateRenderError) as e:
        result = ExportResult(success=False, errors=[str(e)])
        log_export_result(result, time.time() - start_time, verbose=verbose)
        return result

    output_dir.mkdir(parents=True, exist_ok=True)
    pdf_path.write_bytes(artifact.pdf_bytes)
    shutil.copy(pdf_path, log_dir / driver.filename)
    _log_info(f"PDF saved to: {pdf_path}")

    result = ExportResult(
        success=True,
        pdf_path=pdf_path,
        page_count=artifact.page_count,
        issues=artifact.issues,
        artifact=artifact,
    )
    log_export_result(result, time.time() - start_time, verbose=verbose)
    return result
