from __future__ import annotations

from enum import Enum

from .urls import path_suffix


class ContentKind(str, Enum):
    HTML = "html"
    XML = "xml"


def _media_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def sniff_kind(url: str, *, content_type: str | None) -> ContentKind:
    """Decide whether a seed document is an HTML page or an XML sitemap.

    Rules:
    - Trust the Content-Type header when it names HTML or XML.
    - Otherwise fall back to the URL path: ``.xml`` is a sitemap.
    - Anything else is treated as HTML.
    """

    ct = _media_type(content_type)
    # application/xhtml+xml is a page, not a sitemap.
    if "html" in ct:
        return ContentKind.HTML
    if "xml" in ct:
        return ContentKind.XML

    if path_suffix(url) == ".xml":
        return ContentKind.XML
    return ContentKind.HTML
