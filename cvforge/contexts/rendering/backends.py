"""
Rasterization Backends

A backend opens an export surface for a rendered HTML page. The surface is the
only place that touches a real layout engine; the export driver sequences its
operations (wait for assets, measure, insert spacers, snap, print).

PlaywrightBackend drives headless Chromium. Print media is emulated before the
page is measured so measured boxes match the printed layout.
"""

import asyncio
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Protocol, Sequence

from dotenv import load_dotenv
from playwright.async_api import async_playwright

from cvforge.contexts.rendering.break_planner import Spacer
from cvforge.contexts.rendering.exceptions import IncompleteAssetError
from cvforge.contexts.rendering.logger import _log_debug, _log_warning
from cvforge.contexts.rendering.measurement import BlockBox, Measurement

load_dotenv()

PLAYWRIGHT_TIMEOUT = int(os.getenv("PLAYWRIGHT_TIMEOUT", "30000"))  # milliseconds
PLAYWRIGHT_HEADLESS = os.getenv("PLAYWRIGHT_HEADLESS", "true").lower() == "true"

# Viewport for the export page (A4 at 96 DPI)
VIEWPORT = {"width": 794, "height": 1123}

# Poll interval while waiting for images
ASSET_POLL_MS = 50


@dataclass
class AssetStatus:
    """Image and font loading state of a page."""

    pending: List[str] = field(default_factory=list)
    broken: List[str] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return not self.pending


class ExportSurface(Protocol):
    """Laid-out page the export driver operates on."""

    async def wait_for_assets(self, timeout_s: float) -> AssetStatus:
        ...

    async def measure_blocks(self) -> Measurement:
        ...

    async def insert_spacers(self, spacers: Sequence[Spacer]) -> None:
        ...

    async def snap_height(self, height: float) -> None:
        ...

    async def print_pdf(self) -> bytes:
        ...


class RasterBackend(Protocol):
    def open(self, html: str):
        """Async context manager yielding an ExportSurface for the page."""
        ...


_WAIT_FOR_ASSETS_JS = """
async ({ timeoutMs, pollMs }) => {
  const deadline = Date.now() + timeoutMs;
  const sleep = (ms) => new Promise((resolve) => setTimeout(resolve, ms));
  const srcOf = (img) => img.currentSrc || img.src;
  const pendingImages = () => Array.from(document.images).filter((img) => !img.complete);

  if (document.fonts && document.fonts.status !== "loaded") {
    await Promise.race([document.fonts.ready, sleep(timeoutMs)]);
  }
  while (pendingImages().length && Date.now() < deadline) {
    await sleep(pollMs);
  }

  const loaded = Array.from(document.images).filter((img) => img.complete && img.naturalWidth > 0);
  await Promise.all(loaded.map((img) => img.decode().catch(() => null)));

  const pending = pendingImages().map(srcOf);
  if (document.fonts && document.fonts.status !== "loaded") {
    pending.push("document.fonts");
  }
  const broken = Array.from(document.images)
    .filter((img) => img.complete && img.naturalWidth === 0)
    .map(srcOf);
  return { pending, broken };
}
"""

_MEASURE_BLOCKS_JS = """
() => {
  const content = document.getElementById("cv-content");
  const originTop = content.getBoundingClientRect().top;
  const boxes = Array.from(content.querySelectorAll("[data-block-id]")).map((el) => {
    const rect = el.getBoundingClientRect();
    const region = el.closest("[data-region]");
    return {
      id: el.dataset.blockId,
      region: region ? region.dataset.region : "main",
      top: rect.top - originTop,
      height: rect.height,
    };
  });
  return { boxes, contentHeight: content.scrollHeight };
}
"""

_INSERT_SPACERS_JS = """
(spacers) => {
  for (const spacer of spacers) {
    const block = document.querySelector(`[data-block-id="${CSS.escape(spacer.id)}"]`);
    if (!block) continue;
    const el = document.createElement("div");
    el.className = "cv-spacer";
    el.dataset.spacerFor = spacer.id;
    el.style.height = `${spacer.height}px`;
    block.parentNode.insertBefore(el, block);
  }
}
"""

_SNAP_HEIGHT_JS = """
(styles) => {
  Object.assign(document.getElementById("cv-root").style, styles);
}
"""


def snap_styles(height: float) -> Dict[str, str]:
    """
    Inline styles that fix the container at the snapped height.

    The height is exact in both directions: shorter content is padded out,
    and an overrun below epsilon (bottom padding at most) is clipped so the
    printer does not start a blank page for it.
    """
    return {"height": f"{height}px", "minHeight": f"{height}px", "overflow": "hidden"}


class PlaywrightSurface:
    """ExportSurface backed by a Playwright page."""

    def __init__(self, page):
        self.page = page

    async def wait_for_assets(self, timeout_s: float) -> AssetStatus:
        """
        Wait for images and fonts, up to timeout_s.

        Broken images (finished loading but undecodable) are logged and
        exported as-is.

        Raises:
            IncompleteAssetError: If assets are still loading at the deadline
        """
        result = await self.page.evaluate(
            _WAIT_FOR_ASSETS_JS, {"timeoutMs": int(timeout_s * 1000), "pollMs": ASSET_POLL_MS}
        )
        status = AssetStatus(pending=result["pending"], broken=result["broken"])
        for src in status.broken:
            _log_warning(f"Image failed to load and will be exported blank: {src}")
        if not status.ready:
            raise IncompleteAssetError(status.pending, timeout_s)
        return status

    async def measure_blocks(self) -> Measurement:
        result = await self.page.evaluate(_MEASURE_BLOCKS_JS)
        boxes = tuple(
            BlockBox(block_id=b["id"], region=b["region"], top=b["top"], height=b["height"])
            for b in result["boxes"]
        )
        return Measurement(boxes=boxes, content_height=result["contentHeight"])

    async def insert_spacers(self, spacers: Sequence[Spacer]) -> None:
        payload = [{"id": s.before_block_id, "height": s.height} for s in spacers]
        await self.page.evaluate(_INSERT_SPACERS_JS, payload)

    async def snap_height(self, height: float) -> None:
        await self.page.evaluate(_SNAP_HEIGHT_JS, snap_styles(height))

    async def print_pdf(self) -> bytes:
        return await self.page.pdf(
            width="210mm",
            height="297mm",
            margin={"top": "0mm", "right": "0mm", "bottom": "0mm", "left": "0mm"},
            print_background=True,
        )


class PlaywrightBackend:
    """
    Headless Chromium backend.

    Args:
        headless: Launch Chromium headless (PLAYWRIGHT_HEADLESS)
        timeout_ms: Default timeout for page operations (PLAYWRIGHT_TIMEOUT)
    """

    def __init__(self, headless: bool = PLAYWRIGHT_HEADLESS, timeout_ms: int = PLAYWRIGHT_TIMEOUT):
        self.headless = headless
        self.timeout_ms = timeout_ms

    @asynccontextmanager
    async def open(self, html: str) -> AsyncIterator[PlaywrightSurface]:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless)
            try:
                page = await browser.new_page(viewport=VIEWPORT)
                page.set_default_timeout(self.timeout_ms)
                await page.emulate_media(media="print")
                # Images are awaited by wait_for_assets with a bounded timeout
                await page.set_content(html, wait_until="domcontentloaded")
                _log_debug("Export page loaded in Chromium")
                yield PlaywrightSurface(page)
            finally:
                await browser.close()


async def check_chromium(headless: bool = PLAYWRIGHT_HEADLESS) -> bool:
    """True if Chromium can be launched (used to skip browser tests)."""
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=headless)
            await browser.close()
        return True
    except Exception as e:
        _log_debug(f"Chromium unavailable: {e}")
        return False


def chromium_available() -> bool:
    return asyncio.run(check_chromium())
