"""Unpack zipped HTML presentations into the canonical layout.

A bundle ``presentations/team/deck.zip`` holding ``deck/index.html`` and
``deck/img/chart.png`` ends up as ``presentations/team/index.html`` with
its assets under ``docs/presentations/team/assets/index/`` and the
references inside the markup pointing there.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List
from urllib.parse import unquote, urlsplit

from bs4 import BeautifulSoup

from decklib.errors import ArchiveError
from decklib.models import DocumentFormat
from decklib.utils.files import IGNORED_DIRS, LocalFileSystem, iter_archive_paths

LOGGER = logging.getLogger(__name__)

ASSET_SUFFIXES = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".avif", ".ico",
        ".css", ".js", ".mjs", ".json",
        ".woff", ".woff2", ".ttf", ".otf", ".eot",
        ".mp4", ".webm", ".mov", ".mp3", ".wav", ".ogg",
    }
)
URL_ATTRIBUTES = ("src", "href", "poster", "data-src")
SRCSET_ATTRIBUTES = ("srcset", "data-srcset")
ASSETS_DIRNAME = "assets"
# Bundles may ship their own assets/ folder, so only tool debris is dropped.
BUNDLE_IGNORED_DIRS = IGNORED_DIRS - {ASSETS_DIRNAME}


def is_bundle_debris(relative: PurePosixPath) -> bool:
    """True for dot-files and archiver folders such as ``__MACOSX``."""
    return any(part.startswith(".") or part in BUNDLE_IGNORED_DIRS for part in relative.parts)


@dataclass(slots=True)
class UnpackedDocument:
    name: str
    asset_count: int
    rewritten_references: int


def _url_basename(value: str) -> str | None:
    value = value.strip()
    if not value or value.startswith(("#", "data:", "mailto:", "javascript:")):
        return None
    parts = urlsplit(value)
    if parts.scheme or parts.netloc:
        return None
    name = PurePosixPath(unquote(parts.path)).name
    return name or None


def rewrite_asset_references(markup: str, assets: Dict[str, str]) -> tuple[str, int]:
    """Point references at relocated assets.

    ``assets`` maps an asset filename to its new relative URL. Only
    attribute values whose URL basename is an asset filename change; other
    text is left alone. Returns the new markup and the number of rewrites,
    with the original markup returned untouched when nothing matched.
    """
    soup = BeautifulSoup(markup, "html.parser")
    rewrites = 0
    for tag in soup.find_all(True):
        for attribute in URL_ATTRIBUTES:
            value = tag.get(attribute)
            if not isinstance(value, str):
                continue
            target = assets.get(_url_basename(value) or "")
            if target is not None and value != target:
                tag[attribute] = target
                rewrites += 1
        for attribute in SRCSET_ATTRIBUTES:
            value = tag.get(attribute)
            if not isinstance(value, str):
                continue
            candidates = []
            changed = False
            for candidate in value.split(","):
                pieces = candidate.strip().split(None, 1)
                if not pieces:
                    continue
                target = assets.get(_url_basename(pieces[0]) or "")
                if target is not None and pieces[0] != target:
                    pieces[0] = target
                    changed = True
                    rewrites += 1
                candidates.append(" ".join(pieces))
            if changed:
                tag[attribute] = ", ".join(candidates)
    if rewrites == 0:
        return markup, 0
    return str(soup), rewrites


class ArchiveUnpacker:
    """Expand every bundle under the documents root, then delete it."""

    def __init__(self, fs: LocalFileSystem, documents_root: Path, output_root: Path) -> None:
        self.fs = fs
        self.documents_root = Path(documents_root)
        self.output_root = Path(output_root)

    def unpack_all(self) -> int:
        archives = list(iter_archive_paths(self.documents_root))
        if archives:
            LOGGER.info("Found %d archive(s) to unpack", len(archives))
        for archive in archives:
            self.unpack(archive)
        return len(archives)

    def unpack(self, archive: Path) -> List[UnpackedDocument]:
        relative_dir = archive.parent.relative_to(self.documents_root)
        scratch = archive.parent / f".{archive.stem}-unpack"
        LOGGER.info("Extracting %s", archive.relative_to(self.documents_root).as_posix())
        try:
            self.fs.remove_tree(scratch)
            self.fs.extract_zip(archive, scratch)
            unpacked = self._relocate(scratch, archive.parent, relative_dir)
        except ArchiveError:
            raise
        except (zipfile.BadZipFile, ValueError, OSError) as exc:
            raise ArchiveError(f"Failed to unpack {archive}: {exc}") from exc
        finally:
            try:
                self.fs.remove_tree(scratch)
            except OSError as exc:
                LOGGER.warning("Could not remove scratch folder %s: %s", scratch, exc)

        if not unpacked:
            LOGGER.warning("No HTML documents inside %s", archive.name)
        try:
            self.fs.remove_file(archive)
        except OSError as exc:
            raise ArchiveError(f"Failed to remove {archive}: {exc}") from exc
        return unpacked

    def _relocate(self, scratch: Path, target_dir: Path, relative_dir: Path) -> List[UnpackedDocument]:
        files = [
            path
            for path in self.fs.iter_files(scratch)
            if not is_bundle_debris(PurePosixPath(path.relative_to(scratch).as_posix()))
        ]
        documents = [
            path for path in files if DocumentFormat.from_suffix(path.suffix) is DocumentFormat.HTML
        ]
        assets = [path for path in files if path.suffix.lower() in ASSET_SUFFIXES]

        unpacked: List[UnpackedDocument] = []
        for document in documents:
            asset_dir = self.output_root / relative_dir / ASSETS_DIRNAME / document.stem
            mapping: Dict[str, str] = {}
            for asset in assets:
                self.fs.copy_file(asset, asset_dir / asset.name)
                mapping[asset.name] = f"{ASSETS_DIRNAME}/{document.stem}/{asset.name}"

            try:
                markup = self.fs.read_text(document)
            except UnicodeDecodeError as exc:
                raise ArchiveError(f"{document.name} in bundle is not valid UTF-8") from exc
            updated, rewrites = rewrite_asset_references(markup, mapping)
            destination = target_dir / document.name
            if self.fs.exists(destination):
                LOGGER.warning("Overwriting %s with the unpacked copy", destination)
            self.fs.write_text(destination, updated)
            LOGGER.info(
                "  Extracted %s with %d asset(s), %d reference(s) updated",
                document.name,
                len(assets),
                rewrites,
            )
            unpacked.append(UnpackedDocument(document.name, len(assets), rewrites))
        return unpacked


def unpack_archives(fs: LocalFileSystem, documents_root: Path, output_root: Path) -> int:
    """Unpack every bundle under ``documents_root``; returns how many."""
    return ArchiveUnpacker(fs, documents_root, output_root).unpack_all()
