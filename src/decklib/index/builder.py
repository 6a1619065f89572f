"""Library build pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List

from decklib.config import LibraryConfig
from decklib.errors import DocumentError, OutputError
from decklib.index.catalog import build_catalog
from decklib.ingestion.archives import ASSETS_DIRNAME, unpack_archives
from decklib.ingestion.metadata import load_document
from decklib.models import Catalog, DocumentRecord, RenderContext
from decklib.thumbnails.generator import ThumbnailGenerator, ThumbnailSource
from decklib.utils.files import LocalFileSystem, iter_document_paths, relative_posix
from decklib.web.page import VIEWER_PAGE, render_page, render_viewer_page

LOGGER = logging.getLogger(__name__)

INDEX_PAGE = "index.html"


@dataclass(slots=True)
class BuildStats:
    archives: int = 0
    documents: int = 0
    categories: int = 0
    skipped: int = 0
    rendered: int = 0
    overrides: int = 0
    placeholders: int = 0
    pruned: int = 0
    skipped_files: list[Path] = field(default_factory=list)

    def count_thumbnail(self, source: ThumbnailSource) -> None:
        if source is ThumbnailSource.RENDERED:
            self.rendered += 1
        elif source is ThumbnailSource.OVERRIDE:
            self.overrides += 1
        else:
            self.placeholders += 1

    def skip(self, path: Path) -> None:
        self.skipped += 1
        self.skipped_files.append(path)


class LibraryBuilder:
    """Runs unpack, discover, extract, copy, thumbnail, group, render, write."""

    def __init__(
        self,
        config: LibraryConfig,
        *,
        fs: LocalFileSystem | None = None,
        thumbnails: ThumbnailGenerator | None = None,
    ) -> None:
        self.config = config
        self.fs = fs or LocalFileSystem()
        self.thumbnails = thumbnails or ThumbnailGenerator(config, fs=self.fs)

    def build(self, *, now: datetime | None = None) -> BuildStats:
        stats = BuildStats()
        config = self.config
        root = Path(config.presentations_dir)

        stats.archives = unpack_archives(self.fs, root, config.output_presentations_dir)

        LOGGER.info("Scanning %s for presentations...", root)
        paths = list(iter_document_paths(root))
        LOGGER.info("Found %d presentation(s)", len(paths))
        if not paths:
            LOGGER.warning("No presentations found in %s", root)

        self._prepare_output()

        records: List[DocumentRecord] = []
        try:
            for path in paths:
                record = self._process(path, stats)
                if record is not None:
                    records.append(record)
        finally:
            self.thumbnails.close()

        stats.pruned = self._prune(records)

        catalog = build_catalog(records)
        stats.documents = catalog.document_count
        stats.categories = catalog.category_count
        self._write_pages(catalog, records, now)
        return stats

    def _prepare_output(self) -> None:
        try:
            self.fs.make_dirs(self.config.output_presentations_dir)
            self.fs.reset_dir(self.config.thumbnails_dir)
        except OSError as exc:
            raise OutputError(f"Cannot prepare {self.config.docs_dir}: {exc}") from exc

    def _process(self, path: Path, stats: BuildStats) -> DocumentRecord | None:
        root = Path(self.config.presentations_dir)
        LOGGER.info("Processing: %s", path.relative_to(root).as_posix())
        try:
            record = load_document(self.fs, root, path, self.config)
            published = self._copy(path, record)
            source = self.thumbnails.generate(
                path,
                self.config.thumbnails_dir / record.thumbnail_name,
                record.format,
                render_path=published,
            )
        except DocumentError as exc:
            if not self.config.skip_unreadable:
                raise
            LOGGER.error("Skipping %s: %s", exc.path, exc.reason)
            stats.skip(path)
            return None
        stats.count_thumbnail(source)
        return record

    def _prune(self, records: List[DocumentRecord]) -> int:
        """Unpublish documents that are no longer in the library. Asset folders stay."""
        published = {record.source_path for record in records}
        output = self.config.output_presentations_dir
        removed = 0
        try:
            for path in iter_document_paths(output):
                if relative_posix(path, output) in published:
                    continue
                self.fs.remove_file(path)
                LOGGER.info("Removed stale %s", relative_posix(path, output))
                removed += 1
        except OSError as exc:
            raise OutputError(f"Failed to prune {output}: {exc}") from exc
        return removed

    def _copy(self, path: Path, record: DocumentRecord) -> Path:
        """Publish the document and its hand-placed asset folder."""
        destination = self.config.output_presentations_dir / record.source_path
        try:
            self.fs.copy_file(path, destination)
            if record.format.is_markup:
                assets = path.parent / ASSETS_DIRNAME / path.stem
                if self.fs.is_dir(assets):
                    self.fs.copy_tree(assets, destination.parent / ASSETS_DIRNAME / path.stem)
        except FileNotFoundError as exc:
            raise DocumentError(path, "file disappeared during the build") from exc
        except OSError as exc:
            raise OutputError(f"Failed to copy {path} to {destination}: {exc}") from exc
        LOGGER.debug("  Copied to %s", destination)
        return destination

    def _write_pages(
        self, catalog: Catalog, records: List[DocumentRecord], now: datetime | None
    ) -> None:
        LOGGER.info("Building landing page...")
        context = RenderContext(catalog=catalog, records=tuple(records), config=self.config)
        docs = Path(self.config.docs_dir)
        try:
            self.fs.write_text(docs / INDEX_PAGE, render_page(context, now=now))
            self.fs.write_text(docs / VIEWER_PAGE, render_viewer_page(self.config))
        except OSError as exc:
            raise OutputError(f"Failed to write landing page: {exc}") from exc
        LOGGER.info("  %s created", INDEX_PAGE)
