"""Tests for the CLI build command."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from decklib.cli import _setup_logging, app
from decklib.errors import ArchiveError
from decklib.index.builder import BuildStats


runner = CliRunner()


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("decklib.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("decklib.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.INFO


def _args(tmp_path: Path, *extra: str) -> list[str]:
    return [
        "--presentations",
        str(tmp_path / "presentations"),
        "--docs",
        str(tmp_path / "docs"),
        *extra,
    ]


class TestBuildCommand:
    """Tests for the build command."""

    def test_build_real_library(self, tmp_path: Path) -> None:
        """Builds a small library with placeholders only."""
        root = tmp_path / "presentations" / "a"
        root.mkdir(parents=True)
        (root / "one.html").write_text("<title>One</title>", encoding="utf-8")

        result = runner.invoke(app, _args(tmp_path, "--no-render"))

        assert result.exit_code == 0, result.output
        assert "Documents: 1" in result.output
        assert (tmp_path / "docs" / "index.html").exists()
        assert (tmp_path / "docs" / "thumbnails" / "a__one.html.png").exists()

    def test_bad_sidecar_reports_failure(self, tmp_path: Path) -> None:
        root = tmp_path / "presentations" / "a"
        root.mkdir(parents=True)
        (root / "two.pdf").write_bytes(b"%PDF-1.4")
        (root / "two.json").write_text('{"title": "T", "tags": null}', encoding="utf-8")

        result = runner.invoke(app, _args(tmp_path, "--no-render"))

        assert result.exit_code == 1
        assert "Build failed" in result.output

    @patch("decklib.cli.LibraryBuilder")
    def test_options_reach_config(self, mock_builder_class: MagicMock, tmp_path: Path) -> None:
        mock_builder_class.return_value.build.return_value = BuildStats()

        result = runner.invoke(
            app,
            _args(
                tmp_path,
                "--title",
                "CIQ Presentations",
                "--author",
                "CIQ",
                "--access-code",
                "4821",
                "--access-code",
                "1234",
                "--access-hours",
                "6",
                "--skip-unreadable",
            ),
        )

        assert result.exit_code == 0, result.output
        config = mock_builder_class.call_args[0][0]
        assert config.site_title == "CIQ Presentations"
        assert config.default_author == "CIQ"
        assert config.access_codes == ("4821", "1234")
        assert config.access_window_hours == 6
        assert config.skip_unreadable is True
        assert config.render_thumbnails is True
        assert config.docs_dir == tmp_path / "docs"

    @patch("decklib.cli.LibraryBuilder")
    def test_failure_exits_non_zero(self, mock_builder_class: MagicMock, tmp_path: Path) -> None:
        mock_builder_class.return_value.build.side_effect = ArchiveError("Failed to unpack bad.zip")

        result = runner.invoke(app, _args(tmp_path))

        assert result.exit_code == 1
        assert "Build failed" in result.output
        assert "bad.zip" in result.output

    @patch("decklib.cli.LibraryBuilder")
    def test_os_error_exits_non_zero(self, mock_builder_class: MagicMock, tmp_path: Path) -> None:
        mock_builder_class.return_value.build.side_effect = PermissionError("denied")

        result = runner.invoke(app, _args(tmp_path))

        assert result.exit_code == 1

    @patch("decklib.cli.generate_access_code", return_value="0042")
    @patch("decklib.cli.LibraryBuilder")
    def test_generated_access_code(
        self, mock_builder_class: MagicMock, mock_generate: MagicMock, tmp_path: Path
    ) -> None:
        mock_builder_class.return_value.build.return_value = BuildStats()

        result = runner.invoke(app, _args(tmp_path, "--generate-access-code"))

        assert result.exit_code == 0, result.output
        assert mock_builder_class.call_args[0][0].access_codes == ("0042",)
        assert (tmp_path / "access-code.txt").read_text() == "0042\n"
        assert "0042" in result.output

    @pytest.mark.parametrize("hours", ["0", "-3"])
    def test_invalid_access_hours(self, hours: str, tmp_path: Path) -> None:
        result = runner.invoke(app, _args(tmp_path, "--access-hours", hours))

        assert result.exit_code != 0
