"""Text helpers for titles, labels and tag lists."""

from __future__ import annotations

import re
from typing import Iterable, Tuple

_WORD_SEPARATORS = re.compile(r"[-_]+")


def title_from_filename(stem: str) -> str:
    """Turn ``quarterly-review_2024`` into ``Quarterly Review 2024``."""
    words = _WORD_SEPARATORS.sub(" ", stem).split()
    return " ".join(word[:1].upper() + word[1:] for word in words) or stem


def category_label(name: str) -> str:
    """Display label for a category folder.

    Only the first letter of each word is raised, so ``RLC-AI`` stays
    ``RLC AI`` while ``sales`` becomes ``Sales``.
    """
    words = _WORD_SEPARATORS.sub(" ", name).split()
    return " ".join(word[:1].upper() + word[1:] for word in words) or name


def split_tags(raw: str | Iterable[str]) -> Tuple[str, ...]:
    """Split a comma list into an ordered tuple without blanks or repeats."""
    parts = raw.split(",") if isinstance(raw, str) else raw
    seen: dict[str, None] = {}
    for part in parts:
        tag = str(part).strip()
        if tag:
            seen.setdefault(tag, None)
    return tuple(seen)


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: max(limit - 3, 0)].rstrip() + "..."


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return " ".join(text.split())
