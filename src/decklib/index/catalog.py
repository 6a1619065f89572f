"""Group document records into the landing page catalog."""

from __future__ import annotations

from typing import Dict, Iterable, List

from decklib.models import UNCATEGORIZED, Catalog, CatalogSection, DocumentRecord
from decklib.utils.text import category_label


def category_sort_key(name: str) -> tuple[bool, str, str]:
    """Alphabetical, with the uncategorized sentinel always last."""
    return (name == UNCATEGORIZED, name.casefold(), name)


def build_catalog(records: Iterable[DocumentRecord]) -> Catalog:
    groups: Dict[str, List[DocumentRecord]] = {}
    for record in records:
        groups.setdefault(record.category, []).append(record)

    sections = []
    for name in sorted(groups, key=category_sort_key):
        # sorted() is stable with reverse=True, so equal dates keep input order
        ordered = sorted(groups[name], key=lambda record: record.date, reverse=True)
        sections.append(CatalogSection(name=name, label=category_label(name), records=tuple(ordered)))
    return Catalog(sections=tuple(sections))
