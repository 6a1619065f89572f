"""Tests for thumbnail generation."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from decklib.config import LibraryConfig
from decklib.errors import DocumentError
from decklib.models import DocumentFormat
from decklib.thumbnails.generator import (
    BrowserCapture,
    RendererUnavailable,
    ThumbnailGenerator,
    ThumbnailSource,
    cover_fit,
    find_override,
    render_placeholder,
)

CONFIG = LibraryConfig(thumbnail_width=320, thumbnail_height=180, settle_delay_ms=0)


def _png_bytes(size: tuple[int, int], color: tuple[int, int, int] = (200, 10, 10)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def _open(path: Path) -> Image.Image:
    with Image.open(path) as img:
        img.load()
        return img


class TestPlaceholders:
    """Test render_placeholder function."""

    @pytest.mark.parametrize("doc_format", list(DocumentFormat))
    def test_dimensions(self, doc_format: DocumentFormat) -> None:
        image = render_placeholder("deck", doc_format, (800, 450))

        assert image.size == (800, 450)

    def test_colour_encodes_format(self) -> None:
        pdf = render_placeholder("deck", DocumentFormat.PDF, (320, 180))
        pptx = render_placeholder("deck", DocumentFormat.PPTX, (320, 180))

        # Sample a pixel away from the accent bar and the text
        assert pdf.getpixel((300, 170)) != pptx.getpixel((300, 170))

    def test_deterministic(self) -> None:
        first = render_placeholder("quarterly-review", DocumentFormat.PDF, (320, 180))
        second = render_placeholder("quarterly-review", DocumentFormat.PDF, (320, 180))

        assert first.tobytes() == second.tobytes()

    def test_long_names(self) -> None:
        image = render_placeholder("x" * 200, DocumentFormat.PPTX, (320, 180))

        assert image.size == (320, 180)


class TestCoverFit:
    """Test cover_fit helper."""

    def test_crops_to_target(self) -> None:
        fitted = cover_fit(Image.new("RGBA", (1000, 1000)), (800, 450))

        assert fitted.size == (800, 450)
        assert fitted.mode == "RGB"


class TestFindOverride:
    """Test find_override helper."""

    def test_png_beside_document(self, tmp_path: Path) -> None:
        doc = tmp_path / "deck.html"
        doc.write_text("x")
        (tmp_path / "deck.png").write_bytes(b"png")

        assert find_override(doc) == tmp_path / "deck.png"

    def test_jpg_beside_document(self, tmp_path: Path) -> None:
        doc = tmp_path / "deck.pdf"
        (tmp_path / "deck.jpg").write_bytes(b"jpg")

        assert find_override(doc) == tmp_path / "deck.jpg"

    def test_none(self, tmp_path: Path) -> None:
        assert find_override(tmp_path / "deck.html") is None


class TestThumbnailGenerator:
    """Test ThumbnailGenerator source selection."""

    def test_placeholder_for_pdf(self, tmp_path: Path) -> None:
        doc = tmp_path / "two.pdf"
        doc.write_bytes(b"")
        capture = MagicMock(spec=BrowserCapture)
        output = tmp_path / "thumbs" / "two.pdf.png"

        source = ThumbnailGenerator(CONFIG, capture=capture).generate(doc, output, DocumentFormat.PDF)

        assert source is ThumbnailSource.PLACEHOLDER
        assert _open(output).size == (320, 180)
        capture.capture.assert_not_called()

    def test_placeholder_without_readable_source(self, tmp_path: Path) -> None:
        """Placeholders never read the document, so missing files are fine."""
        output = tmp_path / "deck.pptx.png"

        source = ThumbnailGenerator(CONFIG, capture=MagicMock(spec=BrowserCapture)).generate(
            tmp_path / "missing.pptx", output, DocumentFormat.PPTX
        )

        assert source is ThumbnailSource.PLACEHOLDER
        assert _open(output).size == (320, 180)

    def test_placeholder_is_idempotent(self, tmp_path: Path) -> None:
        generator = ThumbnailGenerator(CONFIG, capture=MagicMock(spec=BrowserCapture))
        doc = tmp_path / "two.pdf"

        generator.generate(doc, tmp_path / "a.png", DocumentFormat.PDF)
        generator.generate(doc, tmp_path / "b.png", DocumentFormat.PDF)

        assert (tmp_path / "a.png").read_bytes() == (tmp_path / "b.png").read_bytes()

    def test_override_has_priority(self, tmp_path: Path) -> None:
        doc = tmp_path / "deck.html"
        doc.write_text("<html></html>")
        (tmp_path / "deck.png").write_bytes(_png_bytes((1600, 1600), (1, 2, 3)))
        capture = MagicMock(spec=BrowserCapture)
        output = tmp_path / "out.png"

        source = ThumbnailGenerator(CONFIG, capture=capture).generate(doc, output, DocumentFormat.HTML)

        assert source is ThumbnailSource.OVERRIDE
        image = _open(output)
        assert image.size == (320, 180)
        assert image.getpixel((10, 10)) == (1, 2, 3)
        capture.capture.assert_not_called()

    def test_corrupt_override(self, tmp_path: Path) -> None:
        doc = tmp_path / "deck.pdf"
        (tmp_path / "deck.png").write_bytes(b"not an image")

        with pytest.raises(DocumentError):
            ThumbnailGenerator(CONFIG, capture=MagicMock(spec=BrowserCapture)).generate(
                doc, tmp_path / "out.png", DocumentFormat.PDF
            )

    def test_live_render(self, tmp_path: Path) -> None:
        doc = tmp_path / "deck.html"
        published = tmp_path / "docs" / "deck.html"
        capture = MagicMock(spec=BrowserCapture)
        capture.capture.return_value = _png_bytes((1920, 1080), (9, 9, 9))
        output = tmp_path / "out.png"

        source = ThumbnailGenerator(CONFIG, capture=capture).generate(
            doc, output, DocumentFormat.HTML, render_path=published
        )

        assert source is ThumbnailSource.RENDERED
        capture.capture.assert_called_once_with(published)
        assert _open(output).getpixel((5, 5)) == (9, 9, 9)

    def test_render_failure_falls_back(self, tmp_path: Path) -> None:
        capture = MagicMock(spec=BrowserCapture)
        capture.capture.side_effect = PlaywrightTimeoutError("Timeout 10000ms exceeded")
        output = tmp_path / "out.png"

        source = ThumbnailGenerator(CONFIG, capture=capture).generate(
            tmp_path / "deck.html", output, DocumentFormat.HTML
        )

        assert source is ThumbnailSource.PLACEHOLDER
        assert _open(output).size == (320, 180)

    def test_garbage_screenshot_falls_back(self, tmp_path: Path) -> None:
        capture = MagicMock(spec=BrowserCapture)
        capture.capture.return_value = b"garbage"

        source = ThumbnailGenerator(CONFIG, capture=capture).generate(
            tmp_path / "deck.html", tmp_path / "out.png", DocumentFormat.HTML
        )

        assert source is ThumbnailSource.PLACEHOLDER

    def test_unavailable_browser_disables_rendering(self, tmp_path: Path) -> None:
        capture = MagicMock(spec=BrowserCapture)
        capture.capture.side_effect = RendererUnavailable("Executable doesn't exist")
        generator = ThumbnailGenerator(CONFIG, capture=capture)

        generator.generate(tmp_path / "a.html", tmp_path / "a.png", DocumentFormat.HTML)
        generator.generate(tmp_path / "b.html", tmp_path / "b.png", DocumentFormat.HTML)

        assert capture.capture.call_count == 1

    def test_rendering_disabled_by_config(self, tmp_path: Path) -> None:
        capture = MagicMock(spec=BrowserCapture)
        config = LibraryConfig(thumbnail_width=320, thumbnail_height=180, render_thumbnails=False)

        source = ThumbnailGenerator(config, capture=capture).generate(
            tmp_path / "deck.html", tmp_path / "out.png", DocumentFormat.HTML
        )

        assert source is ThumbnailSource.PLACEHOLDER
        capture.capture.assert_not_called()

    def test_context_manager_closes_capture(self) -> None:
        capture = MagicMock(spec=BrowserCapture)

        with ThumbnailGenerator(CONFIG, capture=capture):
            pass

        capture.close.assert_called_once()


class TestBrowserCapture:
    """Test BrowserCapture against a mocked Playwright."""

    @patch("decklib.thumbnails.generator.sync_playwright")
    def test_capture_flow(self, mock_sync: MagicMock, tmp_path: Path) -> None:
        playwright = mock_sync.return_value.start.return_value
        browser = playwright.chromium.launch.return_value
        page = browser.new_page.return_value
        page.screenshot.return_value = b"png-bytes"
        config = LibraryConfig(navigation_timeout_ms=5000, settle_delay_ms=250)
        capture = BrowserCapture(config)

        result = capture.capture(tmp_path / "deck.html")

        assert result == b"png-bytes"
        browser.new_page.assert_called_once_with(viewport={"width": 1920, "height": 1080})
        goto_args = page.goto.call_args
        assert goto_args[0][0].startswith("file://")
        assert goto_args[1] == {"wait_until": "networkidle", "timeout": 5000}
        page.wait_for_timeout.assert_called_once_with(250)
        page.close.assert_called_once()

    @patch("decklib.thumbnails.generator.sync_playwright")
    def test_browser_launched_once(self, mock_sync: MagicMock, tmp_path: Path) -> None:
        playwright = mock_sync.return_value.start.return_value
        capture = BrowserCapture(CONFIG)

        capture.capture(tmp_path / "a.html")
        capture.capture(tmp_path / "b.html")
        capture.close()

        playwright.chromium.launch.assert_called_once_with(headless=True)
        playwright.chromium.launch.return_value.close.assert_called_once()
        playwright.stop.assert_called_once()

    @patch("decklib.thumbnails.generator.sync_playwright")
    def test_launch_failure(self, mock_sync: MagicMock, tmp_path: Path) -> None:
        playwright = mock_sync.return_value.start.return_value
        playwright.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

        with pytest.raises(RendererUnavailable):
            BrowserCapture(CONFIG).capture(tmp_path / "deck.html")
        playwright.stop.assert_called_once()

    @patch("decklib.thumbnails.generator.sync_playwright")
    def test_page_closed_on_navigation_error(self, mock_sync: MagicMock, tmp_path: Path) -> None:
        page = mock_sync.return_value.start.return_value.chromium.launch.return_value.new_page.return_value
        page.goto.side_effect = PlaywrightTimeoutError("Timeout")

        with pytest.raises(PlaywrightTimeoutError):
            BrowserCapture(CONFIG).capture(tmp_path / "deck.html")
        page.close.assert_called_once()
