"""Render SVG markup in headless Chromium and encode the captured frames as a GIF.

Every call owns its own browser process and temporary directory; both are
released on every exit path.
"""

import asyncio
import io
import logging
import tempfile
from pathlib import Path

from PIL import Image
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from svgstudio.config import Settings, settings as default_settings
from svgstudio.errors import ResourceError, ValidationError
from svgstudio.svg import normalize, sanitize, validate
from svgstudio.util import to_data_url

logger = logging.getLogger("svgstudio.raster")

VIEWPORT = {"width": 800, "height": 800}
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]
FRAME_COUNT = 5
FRAME_INTERVAL_S = 0.2
SETTLE_DELAY_S = 0.5
GIF_FRAME_DURATION_MS = 200
TEMP_DIR_PREFIX = "svg-to-gif-"

RENDER_HTML = """<!DOCTYPE html>
<html>
  <head>
    <style>
      body, html {{
        margin: 0;
        padding: 0;
        overflow: hidden;
        background: transparent;
        width: 100%;
        height: 100%;
      }}
      .svg-container {{
        width: 100%;
        height: 100%;
        display: flex;
        align-items: center;
        justify-content: center;
      }}
      svg {{
        width: 100%;
        height: 100%;
        max-width: {width}px;
        max-height: {height}px;
      }}
    </style>
  </head>
  <body>
    <div class="svg-container">
      {svg}
    </div>
  </body>
</html>
"""


def build_render_html(svg: str) -> str:
    return RENDER_HTML.format(svg=svg, width=VIEWPORT["width"], height=VIEWPORT["height"])


async def capture_frames(html_path: Path, frame_count: int, timeout_ms: float) -> list[bytes]:
    """Load ``html_path`` in headless Chromium and take ``frame_count`` PNG screenshots.

    With more than one frame, screenshots are spaced ``FRAME_INTERVAL_S``
    apart so in-document animations can progress; a single frame is taken
    after ``SETTLE_DELAY_S``.
    """
    frames: list[bytes] = []
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=True, args=BROWSER_ARGS)
        except PlaywrightError as exc:
            raise ResourceError(f"Failed to launch headless browser: {exc}") from exc

        try:
            page = await browser.new_page(viewport=VIEWPORT, device_scale_factor=1)
            await page.goto(html_path.as_uri(), wait_until="networkidle", timeout=timeout_ms)

            delay = FRAME_INTERVAL_S if frame_count > 1 else SETTLE_DELAY_S
            for _ in range(frame_count):
                await asyncio.sleep(delay)
                frames.append(await page.screenshot(type="png", omit_background=True))
        except PlaywrightError as exc:
            raise ResourceError(f"Failed to render SVG: {exc}") from exc
        finally:
            await browser.close()

    return frames


def encode_gif(frames: list[bytes], frame_duration_ms: int = GIF_FRAME_DURATION_MS) -> bytes:
    """Encode PNG frames into one GIF; several frames loop forever."""
    if not frames:
        raise ValueError("At least one frame is required")

    images = [Image.open(io.BytesIO(frame)).convert("RGBA") for frame in frames]
    size = images[0].size
    images = [image if image.size == size else image.resize(size) for image in images]

    buffer = io.BytesIO()
    if len(images) > 1:
        images[0].save(
            buffer,
            format="GIF",
            save_all=True,
            append_images=images[1:],
            duration=frame_duration_ms,
            loop=0,
            disposal=2,
        )
    else:
        images[0].save(buffer, format="GIF")
    return buffer.getvalue()


def _write_inputs(work_dir: Path, markup: str) -> Path:
    (work_dir / "input.svg").write_text(markup, encoding="utf-8")
    html_path = work_dir / "render.html"
    html_path.write_text(build_render_html(markup), encoding="utf-8")
    return html_path


async def rasterize(svg: str, animated: bool = True, settings: Settings | None = None) -> str:
    """Render ``svg`` and return the GIF as a ``data:image/gif;base64,...`` URI.

    Raises ``ValidationError`` for markup that fails the structure checks and
    ``ResourceError`` when the browser cannot launch, navigate or capture.
    """
    settings = settings or default_settings
    markup = normalize(svg)
    verdict = validate(markup)
    if not verdict.is_valid:
        raise ValidationError(f"Invalid SVG content: {verdict.message}")
    markup = sanitize(markup)

    timeout_ms = settings.get_float("RENDER_TIMEOUT_MS") or 5000
    frame_count = FRAME_COUNT if animated else 1

    with tempfile.TemporaryDirectory(prefix=TEMP_DIR_PREFIX) as temp_dir:
        work_dir = Path(temp_dir)
        html_path = await asyncio.to_thread(_write_inputs, work_dir, markup)

        try:
            frames = await capture_frames(html_path, frame_count, timeout_ms)
        except ResourceError:
            logger.error("Error converting SVG to GIF in %s", work_dir, exc_info=True)
            raise

        # Pillow and file I/O stay off the event loop
        gif_bytes = await asyncio.to_thread(encode_gif, frames)
        await asyncio.to_thread((work_dir / "output.gif").write_bytes, gif_bytes)

    logger.info("Rasterized SVG into %d frame(s), %d bytes", len(frames), len(gif_bytes))
    return to_data_url(gif_bytes, "image/gif")
