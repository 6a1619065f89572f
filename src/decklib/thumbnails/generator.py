"""Thumbnail generation for library cards.

Three sources, in priority order: a hand-made image beside the document,
a live Chromium screenshot for HTML decks, and a drawn placeholder whose
colours encode the document format.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont, ImageOps
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from decklib.config import LibraryConfig
from decklib.errors import DocumentError
from decklib.models import DocumentFormat
from decklib.utils.files import LocalFileSystem
from decklib.utils.text import truncate

LOGGER = logging.getLogger(__name__)

OVERRIDE_SUFFIXES = (".png", ".jpg", ".jpeg", ".webp")
LABEL_LIMIT = 40


class ThumbnailSource(str, Enum):
    OVERRIDE = "override"
    RENDERED = "rendered"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True, slots=True)
class PlaceholderStyle:
    background: tuple[int, int, int]
    foreground: tuple[int, int, int]
    label: str


PLACEHOLDER_STYLES = {
    DocumentFormat.HTML: PlaceholderStyle((15, 23, 42), (18, 166, 111), "HTML"),
    DocumentFormat.PDF: PlaceholderStyle((69, 10, 10), (248, 113, 113), "PDF"),
    DocumentFormat.PPTX: PlaceholderStyle((67, 20, 7), (251, 146, 60), "PPTX"),
}


class RendererUnavailable(Exception):
    """The headless browser could not be started."""


def find_override(document: Path, fs: LocalFileSystem | None = None) -> Path | None:
    """Return a same-named image beside ``document`` if one exists."""
    fs = fs or LocalFileSystem()
    for suffix in OVERRIDE_SUFFIXES:
        candidate = document.with_suffix(suffix)
        if fs.exists(candidate):
            return candidate
    return None


def cover_fit(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    """Scale and centre-crop ``image`` so it fills ``size`` exactly."""
    return ImageOps.fit(image.convert("RGB"), size, method=Image.Resampling.LANCZOS)


def _fitted_font(draw: ImageDraw.ImageDraw, text: str, start_size: int, max_width: int):
    size = start_size
    font = ImageFont.load_default(size=size)
    while size > 10 and draw.textlength(text, font=font) > max_width:
        size -= 2
        font = ImageFont.load_default(size=size)
    return font


def _draw_centered(draw, text: str, font, center_x: int, center_y: int, fill) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = center_x - (right - left) // 2 - left
    y = center_y - (bottom - top) // 2 - top
    draw.text((x, y), text, font=font, fill=fill)


def render_placeholder(name: str, doc_format: DocumentFormat, size: tuple[int, int]) -> Image.Image:
    """Draw a placeholder card. Deterministic for a given name and format."""
    width, height = size
    style = PLACEHOLDER_STYLES[doc_format]
    image = Image.new("RGB", size, style.background)
    draw = ImageDraw.Draw(image)

    accent = max(width // 100, 4)
    draw.rectangle((0, 0, accent - 1, height - 1), fill=style.foreground)

    scale = height / 450
    margin = int(48 * scale) + accent
    label_font = _fitted_font(draw, style.label, int(28 * scale), width - 2 * margin)
    _draw_centered(draw, style.label, label_font, width // 2, int(height * 0.32), style.foreground)

    text = truncate(name, LABEL_LIMIT)
    name_font = _fitted_font(draw, text, int(48 * scale), width - 2 * margin)
    _draw_centered(draw, text, name_font, width // 2, height // 2 + int(16 * scale), style.foreground)
    return image


class BrowserCapture:
    """Lazily launched headless Chromium used for HTML screenshots."""

    def __init__(self, config: LibraryConfig) -> None:
        self.config = config
        self._playwright = None
        self._browser = None

    def _ensure_browser(self):
        if self._browser is not None:
            return self._browser
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=True)
        except (PlaywrightError, OSError) as exc:
            self.close()
            raise RendererUnavailable(str(exc)) from exc
        return self._browser

    def capture(self, path: Path) -> bytes:
        """Screenshot the viewport of ``path`` once the page settles."""
        browser = self._ensure_browser()
        page = browser.new_page(
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height}
        )
        try:
            page.goto(
                Path(path).resolve().as_uri(),
                wait_until="networkidle",
                timeout=self.config.navigation_timeout_ms,
            )
            page.wait_for_timeout(self.config.settle_delay_ms)
            return page.screenshot(type="png", full_page=False)
        finally:
            page.close()

    def close(self) -> None:
        try:
            if self._browser is not None:
                self._browser.close()
        except PlaywrightError as exc:
            LOGGER.debug("Browser close failed: %s", exc)
        finally:
            self._browser = None
            if self._playwright is not None:
                self._playwright.stop()
                self._playwright = None


class ThumbnailGenerator:
    """Writes exactly one PNG per document."""

    def __init__(
        self,
        config: LibraryConfig,
        *,
        fs: LocalFileSystem | None = None,
        capture: BrowserCapture | None = None,
    ) -> None:
        self.config = config
        self.fs = fs or LocalFileSystem()
        self.capture = capture or BrowserCapture(config)
        self._live_disabled = not config.render_thumbnails

    def __enter__(self) -> ThumbnailGenerator:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.capture.close()

    def generate(
        self,
        document: Path,
        output: Path,
        doc_format: DocumentFormat,
        *,
        render_path: Path | None = None,
    ) -> ThumbnailSource:
        """Create the thumbnail for ``document`` at ``output``.

        ``render_path`` is the copy to load in the browser when it differs
        from the source, e.g. the published file whose assets resolve.
        """
        size = self.config.thumbnail_size

        override = find_override(document, self.fs)
        if override is not None:
            LOGGER.info("  Using custom thumbnail %s", override.name)
            try:
                with Image.open(io.BytesIO(self.fs.read_bytes(override))) as img:
                    fitted = cover_fit(img, size)
            except OSError as exc:
                raise DocumentError(override, f"unreadable thumbnail image: {exc}") from exc
            self._save(fitted, output)
            return ThumbnailSource.OVERRIDE

        if doc_format.is_markup:
            rendered = self._render_markup(render_path or document)
            if rendered is not None:
                self._save(rendered, output)
                return ThumbnailSource.RENDERED

        self._save(render_placeholder(document.stem, doc_format, size), output)
        return ThumbnailSource.PLACEHOLDER

    def _render_markup(self, path: Path) -> Image.Image | None:
        if self._live_disabled:
            return None
        try:
            screenshot = self.capture.capture(path)
        except RendererUnavailable as exc:
            LOGGER.warning("Headless browser unavailable, using placeholders: %s", exc)
            self._live_disabled = True
            return None
        except PlaywrightError as exc:
            LOGGER.warning("  Thumbnail render failed for %s, using placeholder: %s", path.name, exc)
            return None
        try:
            with Image.open(io.BytesIO(screenshot)) as img:
                return cover_fit(img, self.config.thumbnail_size)
        except OSError as exc:
            LOGGER.warning("  Unreadable screenshot for %s, using placeholder: %s", path.name, exc)
            return None

    def _save(self, image: Image.Image, output: Path) -> None:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        self.fs.write_bytes(output, buffer.getvalue())
