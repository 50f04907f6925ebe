"""
Integration tests for the export driver.

Uses an in-process surface: block boxes come from a FixedHeightMeasurer,
spacers shift boxes the way the browser would, and print_pdf draws each
block's text with reportlab on the page its position falls on.
"""

import asyncio
import math
from contextlib import asynccontextmanager
from io import BytesIO

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from cvforge.contexts.editing.cv_data_structure import CVDocument, PersonalInfo, WorkExperience
from cvforge.contexts.editing.sample_data import sample_document
from cvforge.contexts.rendering import exporter
from cvforge.contexts.rendering.backends import AssetStatus, snap_styles
from cvforge.contexts.rendering.exceptions import (
    ExportError,
    ExportInProgressError,
    IncompleteAssetError,
    RasterizationError,
)
from cvforge.contexts.rendering.exporter import ExportDriver, export_resume
from cvforge.contexts.rendering.measurement import (
    FixedHeightMeasurer,
    shift_measurement,
    stack_blocks,
)
from cvforge.contexts.rendering.pagination import LayoutParams
from cvforge.contexts.templating.renderer import EXPORT, render_document

H = 1123
EPS = 8


class FakeSurface:
    def __init__(
        self,
        tree,
        measurer,
        incomplete_attempts=0,
        asset_delay_s=0.0,
        fail_print=False,
        reflow=None,
    ):
        self.tree = tree
        self.measurer = measurer
        self.base = measurer.measure_blocks(tree, 794)
        self.shifts = {}
        self.snapped = None
        self.styles = {}
        self.asset_attempts = 0
        self.incomplete_attempts = incomplete_attempts
        self.asset_delay_s = asset_delay_s
        self.fail_print = fail_print
        # Block id -> extra height the block grows by once spacers are in
        self.reflow = reflow or {}

    async def wait_for_assets(self, timeout_s):
        self.asset_attempts += 1
        if self.asset_delay_s:
            await asyncio.sleep(self.asset_delay_s)
        if self.asset_attempts <= self.incomplete_attempts:
            raise IncompleteAssetError(["avatar.png"], timeout_s)
        return AssetStatus()

    def current(self):
        base = self.base
        if self.shifts and self.reflow:
            heights = {
                box.block_id: box.height + self.reflow.get(box.block_id, 0) for box in base.boxes
            }
            base = stack_blocks(
                self.tree, heights, gap=self.measurer.gap, padding=self.measurer.padding
            )
        return shift_measurement(base, self.shifts)

    async def measure_blocks(self):
        return self.current()

    async def insert_spacers(self, spacers):
        for spacer in spacers:
            self.shifts[spacer.before_block_id] = self.shifts.get(spacer.before_block_id, 0) + spacer.height

    async def snap_height(self, height):
        self.snapped = height
        self.styles = snap_styles(height)

    def printed_height(self, content_height):
        if not self.styles:
            return content_height
        height = float(self.styles["height"].rstrip("px"))
        if self.styles.get("overflow") == "hidden":
            return height
        return max(height, content_height)

    async def print_pdf(self):
        if self.fail_print:
            raise RuntimeError("printer offline")

        measurement = self.current()
        printed = self.printed_height(measurement.content_height)
        pages = max(1, math.ceil(printed / H))
        placed = {page: [] for page in range(1, pages + 1)}
        for box in measurement.boxes:
            lines = [line.text for line in self.tree.block(box.block_id).lines]
            for index, text in enumerate(lines):
                if not text:
                    continue
                # Spread lines over the block so a split block splits its text
                y = box.top + (index + 0.5) * box.height / len(lines)
                if y >= printed:
                    continue
                page = int(y // H) + 1
                x = 20 if box.region == "sidebar" else (220 if self.tree.columns == 2 else 40)
                placed[page].append((x, y - (page - 1) * H, text))

        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        _, height = A4
        scale = height / H
        for page in range(1, pages + 1):
            pdf.setFont("Helvetica", 9)
            for x, y, text in placed[page]:
                pdf.drawString(x, height - y * scale, text)
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()


class FakeBackend:
    def __init__(self, tree, measurer, **surface_options):
        self.tree = tree
        self.measurer = measurer
        self.surface_options = surface_options
        self.surfaces = []

    @asynccontextmanager
    async def open(self, html):
        surface = FakeSurface(self.tree, self.measurer, **self.surface_options)
        self.surfaces.append(surface)
        yield surface


def jobs_document(count=5):
    return CVDocument(
        personal_info=PersonalInfo(full_name="Ada Byron", job_title="Analyst"),
        work_experience=tuple(
            WorkExperience(id=f"w{i}", job_title=f"Engineer {i}", company=f"Acme Division {i}")
            for i in range(count)
        ),
    )


def jobs_measurer():
    return FixedHeightMeasurer({"entry": 300, "heading": 28}, default_height=40)


def make_driver(document, template_id="minimal", measurer=None, **surface_options):
    rendered = render_document(document, template_id, mode=EXPORT)
    backend = FakeBackend(rendered.tree, measurer or jobs_measurer(), **surface_options)
    driver = ExportDriver(backend=backend, params=LayoutParams.screen(), retry_delay_s=0)
    return driver, backend, rendered


def assert_no_atomic_block_straddles(artifact, tree):
    for box in artifact.measurement.boxes:
        if tree.block(box.block_id).atomic:
            assert box.top // H == (box.bottom - EPS) // H, box.block_id


@pytest.mark.integration
def test_export_pushes_blocks_and_matches_page_count():
    """Block that would straddle page 1 starts page 2, and the PDF has the engine's page count."""
    driver, backend, rendered = make_driver(jobs_document())

    artifact = asyncio.run(driver.export(rendered))

    assert [spacer.before_block_id for spacer in artifact.plan.spacers] == ["workExperience-3"]
    assert artifact.measurement.box("workExperience-3").top == H
    assert artifact.page_count == artifact.layout.page_count == 2
    assert backend.surfaces[0].snapped == 2 * H - 1
    assert_no_atomic_block_straddles(artifact, rendered.tree)
    assert artifact.issues == []
    assert artifact.filename == "my-cv.pdf"


@pytest.mark.integration
def test_export_text_lands_on_planned_pages():
    driver, _, rendered = make_driver(jobs_document())

    artifact = asyncio.run(driver.export(rendered))
    pages = {block.block_id: block.pdf_start_page for block in artifact.diagnostics.iter_blocks()}

    assert pages["workExperience-2"] == 1
    assert pages["workExperience-3"] == 2
    assert pages["workExperience-4"] == 2


@pytest.mark.integration
def test_overrun_below_epsilon_prints_one_page():
    """Content a few px past one page is clipped at the snapped height, not printed on a blank page."""
    document = CVDocument(
        personal_info=PersonalInfo(full_name="Ada Byron", job_title="Analyst"),
        work_experience=(WorkExperience(id="w0", job_title="Engineer", company="Acme"),),
    )
    measurer = FixedHeightMeasurer(
        {"header": 600, "heading": 28, "workExperience-0": 500}, default_height=0, gap=0, padding=0
    )
    driver, backend, rendered = make_driver(document, measurer=measurer)

    artifact = asyncio.run(driver.export(rendered))

    assert artifact.measurement.content_height == H + 5
    assert artifact.plan.spacers == ()
    assert artifact.layout.page_count == artifact.page_count == 1
    assert backend.surfaces[0].styles["overflow"] == "hidden"
    assert artifact.issues == []


@pytest.mark.integration
def test_page_count_follows_remeasured_height():
    """A block that grows after spacers go in is paginated from the re-measured height."""
    driver, _, rendered = make_driver(jobs_document(), reflow={"workExperience-4": 600})
    driver.verify_text = False

    artifact = asyncio.run(driver.export(rendered))

    assert artifact.plan.layout.page_count == 2
    assert artifact.plan.laid_out_height == 1759
    assert artifact.measurement.content_height == 2359
    assert artifact.layout.page_count == artifact.page_count == 3
    assert artifact.issues == ["'workExperience-4' (main): atomic block split across pages 2 to 3"]


@pytest.mark.integration
def test_two_column_sample_exports_without_splits():
    document = sample_document("professional")
    measurer = FixedHeightMeasurer({"entry": 180, "heading": 28, "header": 120}, default_height=60)
    driver, _, rendered = make_driver(document, "professional", measurer)
    driver.verify_text = False

    artifact = asyncio.run(driver.export(rendered))

    assert artifact.page_count == artifact.layout.page_count
    assert_no_atomic_block_straddles(artifact, rendered.tree)
    assert artifact.issues == []


@pytest.mark.integration
def test_second_export_while_running_is_rejected():
    driver, backend, rendered = make_driver(jobs_document(), asset_delay_s=0.05)

    async def export_twice():
        return await asyncio.gather(
            driver.export(rendered), driver.export(rendered), return_exceptions=True
        )

    first, second = asyncio.run(export_twice())

    assert first.page_count == 2
    assert isinstance(second, ExportInProgressError)
    assert len(backend.surfaces) == 1
    assert not driver.in_progress


@pytest.mark.integration
def test_incomplete_assets_are_retried():
    driver, backend, rendered = make_driver(jobs_document(), incomplete_attempts=2)

    artifact = asyncio.run(driver.export(rendered))

    assert artifact.page_count == 2
    assert backend.surfaces[0].asset_attempts == 3


@pytest.mark.integration
def test_incomplete_assets_fail_after_retries():
    driver, backend, rendered = make_driver(jobs_document(), incomplete_attempts=3)

    with pytest.raises(IncompleteAssetError) as excinfo:
        asyncio.run(driver.export(rendered))

    assert excinfo.value.pending == ["avatar.png"]
    assert backend.surfaces[0].asset_attempts == 3


@pytest.mark.integration
def test_backend_failure_is_recoverable():
    document = jobs_document()
    driver, backend, rendered = make_driver(document, fail_print=True)

    with pytest.raises(RasterizationError, match="printer offline"):
        asyncio.run(driver.export(rendered))

    assert document == jobs_document()
    assert not driver.in_progress

    backend.surface_options["fail_print"] = False
    assert asyncio.run(driver.export(rendered)).page_count == 2


@pytest.mark.integration
def test_bounded_rendering_is_rejected():
    driver, _, _ = make_driver(jobs_document())
    thumbnail = render_document(jobs_document(), "minimal", unbounded=False)

    with pytest.raises(ExportError, match="unbounded"):
        asyncio.run(driver.export(thumbnail))


@pytest.mark.integration
def test_export_resume_writes_pdf(tmp_path, monkeypatch):
    monkeypatch.setattr(exporter, "LOGS_PATH", tmp_path / "logs")
    driver, _, _ = make_driver(jobs_document())

    result = export_resume(jobs_document(), "minimal", output_dir=tmp_path / "out", driver=driver)

    assert result.success
    assert result.pdf_path == tmp_path / "out" / "my-cv.pdf"
    assert result.pdf_path.read_bytes().startswith(b"%PDF")
    assert result.page_count == 2
    assert result.issues == []
    assert list((tmp_path / "logs").glob("export_*/my-cv.pdf"))


@pytest.mark.integration
def test_export_resume_reports_failure(tmp_path, monkeypatch):
    monkeypatch.setattr(exporter, "LOGS_PATH", tmp_path / "logs")
    driver, _, _ = make_driver(jobs_document(), fail_print=True)

    result = export_resume(jobs_document(), "minimal", output_dir=tmp_path / "out", driver=driver)

    assert not result.success
    assert result.pdf_path is None
    assert "Rasterization failed" in result.errors[0]
    assert not (tmp_path / "out").exists()
