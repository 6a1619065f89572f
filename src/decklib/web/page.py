"""Static landing page and PDF viewer rendering."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from importlib.resources import files
from typing import Any, Dict, List
from urllib.parse import quote, urlencode

from jinja2 import Environment, Template
from markupsafe import Markup

from decklib.config import LibraryConfig
from decklib.models import DEFAULT_FORMAT, DocumentFormat, DocumentRecord, RenderContext
from decklib.utils.text import category_label
from decklib.web.access import hash_access_code

CLIENT_VERSION = 1
STORAGE_PREFIX = f"decklib.v{CLIENT_VERSION}"
PINNED_LIMIT = 3
RECENT_LIMIT = 10
RECENT_DISPLAY_LIMIT = 6
VIEWER_PAGE = "viewer.html"
PRESENTATIONS_URL = "presentations/"
THUMBNAILS_URL = "thumbnails/"

_jinja_env = Environment(autoescape=True)


def _load_template(name: str) -> str:
    template = files("decklib.web").joinpath("templates", name)
    return template.read_text(encoding="utf-8")


@lru_cache(maxsize=None)
def _template(name: str) -> Template:
    return _jinja_env.from_string(_load_template(name))


def client_script() -> str:
    """The fixed browser-side behaviour embedded in every landing page."""
    return _load_template("library.js")


@dataclass(frozen=True, slots=True)
class CardView:
    record: DocumentRecord
    href: str
    thumbnail: str
    download: bool
    new_tab: bool
    category_badge: str | None
    format_badge: str | None


def document_url(record: DocumentRecord) -> str:
    return PRESENTATIONS_URL + quote(record.source_path)


def card_href(record: DocumentRecord) -> str:
    """HTML opens directly, PDF goes through the viewer, PPTX downloads."""
    url = document_url(record)
    if record.format is DocumentFormat.PDF:
        return VIEWER_PAGE + "?" + urlencode({"file": url, "title": record.title})
    return url


def card_view(record: DocumentRecord) -> CardView:
    return CardView(
        record=record,
        href=card_href(record),
        thumbnail=THUMBNAILS_URL + quote(record.thumbnail_name),
        download=record.format is DocumentFormat.PPTX,
        new_tab=record.format is DocumentFormat.HTML,
        category_badge=None if record.is_uncategorized else category_label(record.category),
        format_badge=None if record.format is DEFAULT_FORMAT else record.format.value.upper(),
    )


def client_data(context: RenderContext) -> Dict[str, Any]:
    """Lookup tables and settings read by ``library.js``."""
    config = context.config
    access = None
    if config.access_codes:
        access = {
            "hashes": sorted({hash_access_code(code) for code in config.access_codes}),
            "windowHours": config.access_window_hours,
        }
    return {
        "version": CLIENT_VERSION,
        "documents": [
            {
                "path": record.source_path,
                "title": record.title,
                "category": record.category,
                "format": record.format.value,
                "href": card_href(record),
            }
            for record in context.records
        ],
        "storage": {
            "recent": f"{STORAGE_PREFIX}.recent",
            "pinned": f"{STORAGE_PREFIX}.pinned",
            "access": f"{STORAGE_PREFIX}.access",
        },
        "limits": {
            "pinned": PINNED_LIMIT,
            "recent": RECENT_LIMIT,
            "recentDisplay": RECENT_DISPLAY_LIMIT,
        },
        "access": access,
    }


def format_last_updated(moment: datetime) -> str:
    return f"{moment:%B} {moment.day}, {moment.year}"


def render_page(context: RenderContext, *, now: datetime | None = None) -> str:
    """Render the landing page. Only the footer date depends on ``now``."""
    config = context.config
    catalog = context.catalog
    sections: List[Dict[str, Any]] = [
        {
            "name": section.name,
            "label": section.label,
            "cards": [card_view(record) for record in section.records],
        }
        for section in catalog.sections
    ]
    return _template("index.html").render(
        title=config.site_title,
        document_count=catalog.document_count,
        category_count=catalog.category_count,
        sections=sections,
        access_enabled=bool(config.access_codes),
        thumbnail_width=config.thumbnail_width,
        thumbnail_height=config.thumbnail_height,
        client_data=client_data(context),
        client_script=Markup(client_script()),
        client_version=CLIENT_VERSION,
        last_updated=format_last_updated(now or datetime.now()),
    )


def render_viewer_page(config: LibraryConfig) -> str:
    """Render the PDF wrapper page the PDF cards link to."""
    return _template("viewer.html").render(title=config.site_title, prefix=PRESENTATIONS_URL)
