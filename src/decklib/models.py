"""Core DeckLib data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, Tuple

from decklib.config import LibraryConfig
from decklib.utils.files import flatten_thumbnail_name

UNCATEGORIZED = "Uncategorized"


class DocumentFormat(str, Enum):
    HTML = "html"
    PDF = "pdf"
    PPTX = "pptx"

    @classmethod
    def from_suffix(cls, suffix: str) -> DocumentFormat | None:
        suffix = suffix.lower()
        if suffix in {".html", ".htm"}:
            return cls.HTML
        if suffix == ".pdf":
            return cls.PDF
        if suffix == ".pptx":
            return cls.PPTX
        return None

    @property
    def is_markup(self) -> bool:
        return self is DocumentFormat.HTML


DEFAULT_FORMAT = DocumentFormat.HTML


@dataclass(frozen=True, slots=True)
class DocumentRecord:
    """Metadata describing one presentation in the library."""

    source_path: str
    format: DocumentFormat
    title: str
    date: date
    author: str
    tags: Tuple[str, ...] = ()
    category: str = UNCATEGORIZED
    description: str = ""

    @property
    def filename(self) -> str:
        return PurePosixPath(self.source_path).name

    @property
    def stem(self) -> str:
        return PurePosixPath(self.source_path).stem

    @property
    def thumbnail_name(self) -> str:
        return flatten_thumbnail_name(self.source_path)

    @property
    def is_uncategorized(self) -> bool:
        return self.category == UNCATEGORIZED


@dataclass(frozen=True, slots=True)
class CatalogSection:
    """One category of the landing page."""

    name: str
    label: str
    records: Tuple[DocumentRecord, ...]


@dataclass(frozen=True, slots=True)
class Catalog:
    """Documents grouped by category in display order."""

    sections: Tuple[CatalogSection, ...] = ()

    @property
    def categories(self) -> Dict[str, Tuple[DocumentRecord, ...]]:
        return {section.name: section.records for section in self.sections}

    @property
    def document_count(self) -> int:
        return sum(len(section.records) for section in self.sections)

    @property
    def category_count(self) -> int:
        return len(self.sections)


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Inputs for rendering the landing page."""

    catalog: Catalog
    records: Tuple[DocumentRecord, ...]
    config: LibraryConfig
