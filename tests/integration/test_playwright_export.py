"""
End-to-end export through headless Chromium.

Skipped when Chromium is not installed (run `playwright install chromium`).
"""

import asyncio

import pytest

from cvforge.contexts.editing.sample_data import sample_document
from cvforge.contexts.rendering.backends import chromium_available
from cvforge.contexts.rendering.exporter import ExportDriver
from cvforge.contexts.templating.renderer import EXPORT, render_document
from cvforge.utils.pdf_processing import page_size_mm

pytestmark = [
    pytest.mark.browser,
    pytest.mark.skipif(not chromium_available(), reason="Chromium not installed"),
]

# 1x1 PNG so the export does not depend on network access
INLINE_PHOTO = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


@pytest.mark.parametrize("template_id", ["professional", "minimal"])
def test_sample_exports_to_a4_without_split_blocks(template_id):
    document = sample_document(template_id).with_field("personalInfo.photoUrl", INLINE_PHOTO)
    rendered = render_document(document, template_id, mode=EXPORT)
    driver = ExportDriver(asset_timeout_s=5, verify_text=False)

    artifact = asyncio.run(driver.export(rendered))

    assert artifact.page_count == artifact.layout.page_count
    width, height = page_size_mm(artifact.pdf_bytes)
    assert width == pytest.approx(210, abs=1)
    assert height == pytest.approx(297, abs=1)
    assert artifact.diagnostics.is_valid, artifact.issues
