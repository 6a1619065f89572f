"""Metadata extraction for presentation files.

Markup documents are parsed with BeautifulSoup. ``presentation-*`` meta
directives win over the ``<title>`` tag, which wins over a title derived
from the file name. An optional ``<stem>.json`` sidecar overrides all of
them for every format.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, Mapping

from bs4 import BeautifulSoup

from decklib.config import LibraryConfig
from decklib.errors import DocumentError
from decklib.models import UNCATEGORIZED, DocumentFormat, DocumentRecord
from decklib.utils.files import LocalFileSystem, relative_posix
from decklib.utils.text import normalize_whitespace, split_tags, title_from_filename

LOGGER = logging.getLogger(__name__)

DIRECTIVE_PREFIX = "presentation-"
SIDECAR_SUFFIX = ".json"
SIDECAR_FIELDS = frozenset({"title", "date", "author", "tags", "description"})


def category_for(relative_path: str) -> str:
    parts = PurePosixPath(relative_path).parts
    return parts[0] if len(parts) > 1 else UNCATEGORIZED


def _meta_content(soup: BeautifulSoup, name: str) -> str | None:
    tag = soup.find("meta", attrs={"name": name})
    if tag is None:
        return None
    content = normalize_whitespace(str(tag.get("content") or ""))
    return content or None


def parse_directives(text: str) -> dict[str, str]:
    """Read title/date/author/tags/description hints from markup."""
    soup = BeautifulSoup(text, "html.parser")
    found: dict[str, str] = {}
    for key in ("title", "date", "author", "tags", "description"):
        value = _meta_content(soup, DIRECTIVE_PREFIX + key)
        if value is not None:
            found[key] = value

    if "title" not in found and soup.title is not None:
        title = normalize_whitespace(soup.title.get_text())
        if title:
            found["title"] = title
    if "author" not in found:
        author = _meta_content(soup, "author")
        if author:
            found["author"] = author
    if "description" not in found:
        description = _meta_content(soup, "description")
        if description:
            found["description"] = description
    return found


def _parse_date(value: Any, relative_path: str) -> date | None:
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        LOGGER.warning("Ignoring invalid date %r in %s", value, relative_path)
        return None


def extract_metadata(
    relative_path: str,
    *,
    text: str | None = None,
    mtime: float | None = None,
    default_author: str = "Unknown",
    today: date | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> DocumentRecord:
    """Build a record from already-read inputs. Performs no I/O."""
    posix = PurePosixPath(relative_path.replace("\\", "/"))
    doc_format = DocumentFormat.from_suffix(posix.suffix)
    if doc_format is None:
        raise DocumentError(Path(relative_path), f"unsupported file type {posix.suffix!r}")

    hints: dict[str, Any] = {}
    if doc_format.is_markup and text is not None:
        hints.update(parse_directives(text))
    if overrides:
        hints.update({key: value for key, value in overrides.items() if key in SIDECAR_FIELDS})

    record_date = None
    if "date" in hints:
        record_date = _parse_date(hints["date"], posix.as_posix())
    if record_date is None and mtime is not None:
        record_date = datetime.fromtimestamp(mtime, tz=timezone.utc).date()
    if record_date is None:
        record_date = today or date.today()

    title = str(hints.get("title") or "").strip() or title_from_filename(posix.stem)
    author = str(hints.get("author") or "").strip() or default_author
    tags = split_tags(hints["tags"]) if "tags" in hints else ()

    return DocumentRecord(
        source_path=posix.as_posix(),
        format=doc_format,
        title=title,
        date=record_date,
        author=author,
        tags=tags,
        category=category_for(posix.as_posix()),
        description=str(hints.get("description") or "").strip(),
    )


def load_sidecar(fs: LocalFileSystem, path: Path) -> dict[str, Any] | None:
    """Read ``<stem>.json`` beside ``path`` when present."""
    sidecar = path.with_suffix(SIDECAR_SUFFIX)
    if not fs.exists(sidecar):
        return None
    try:
        data = json.loads(fs.read_text(sidecar))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DocumentError(sidecar, f"invalid metadata sidecar: {exc}") from exc
    if not isinstance(data, dict):
        raise DocumentError(sidecar, "metadata sidecar must be a JSON object")
    _check_sidecar_fields(sidecar, data)
    return data


def _check_sidecar_fields(sidecar: Path, data: Mapping[str, Any]) -> None:
    for key in SIDECAR_FIELDS & data.keys():
        value = data[key]
        if key == "tags":
            if isinstance(value, str):
                continue
            if isinstance(value, list) and all(isinstance(tag, str) for tag in value):
                continue
            raise DocumentError(sidecar, "'tags' must be a string or a list of strings")
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise DocumentError(sidecar, f"{key!r} must be a string")


def load_document(
    fs: LocalFileSystem, root: Path, path: Path, config: LibraryConfig
) -> DocumentRecord:
    """Read one document from disk and extract its record."""
    relative = relative_posix(path, root)
    doc_format = DocumentFormat.from_suffix(path.suffix)
    try:
        mtime = fs.mtime(path)
        text = fs.read_text(path) if doc_format is not None and doc_format.is_markup else None
    except FileNotFoundError as exc:
        raise DocumentError(path, "file not found") from exc
    except UnicodeDecodeError as exc:
        raise DocumentError(path, f"not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise DocumentError(path, f"unreadable: {exc}") from exc

    return extract_metadata(
        relative,
        text=text,
        mtime=mtime,
        default_author=config.default_author,
        overrides=load_sidecar(fs, path),
    )
