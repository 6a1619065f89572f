"""Exceptions raised by the build pipeline."""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Base class for failures that abort a library build."""


class DocumentError(BuildError):
    """A discovered document could not be read or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ArchiveError(BuildError):
    """A presentation bundle could not be unpacked."""


class OutputError(BuildError):
    """Writing to the output tree failed."""
