"""Pattern-based link extraction.

This is a best-effort text scan, not an HTML parser: entities are not decoded
and markup inside ``<script>`` blocks or comments is matched like any other.
Hrefs that cannot be parsed as URLs are logged and skipped.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator

from .urls import is_followable_href, normalize_url, resolve_href

logger = logging.getLogger(__name__)

_ANCHOR_HREF = re.compile(
    r"<a\s(?:[^>]*?\s)?href\s*=\s*(?:\"([^\"]+)\"|'([^']+)')",
    re.IGNORECASE,
)

# Only matches when rel="amphtml" comes right before href. Pages that order
# the attributes differently yield nothing.
_AMP_LINK_HREF = re.compile(
    r"<link\s+rel\s*=\s*[\"']amphtml[\"']\s+href\s*=\s*(?:\"([^\"]+)\"|'([^']+)')",
    re.IGNORECASE,
)


def _iter_matches(pattern: re.Pattern[str], text: str) -> Iterator[str]:
    for m in pattern.finditer(text):
        value = (m.group(1) or m.group(2) or "").strip()
        if value:
            yield value


def iter_anchor_hrefs(html: str) -> Iterator[str]:
    """Yield raw ``href`` values of ``<a>`` tags, skipping non-page links."""

    for href in _iter_matches(_ANCHOR_HREF, html):
        if is_followable_href(href):
            yield href


def iter_amp_hrefs(html: str) -> Iterator[str]:
    """Yield raw ``href`` values of ``<link rel="amphtml" href="...">`` tags."""

    yield from _iter_matches(_AMP_LINK_HREF, html)


def _iter_resolved(hrefs: Iterator[str], page_url: str) -> Iterator[str]:
    for href in hrefs:
        try:
            url = resolve_href(href, page_url=page_url)
        except ValueError as e:
            # urlparse rejects things like an unclosed IPv6 bracket.
            logger.warning("Skipping unparseable href %r on %s: %s", href, page_url, e)
            continue
        yield url


def extract_candidate_links(html: str, *, page_url: str) -> list[str]:
    links = (
        normalize_url(url) for url in _iter_resolved(iter_anchor_hrefs(html), page_url)
    )
    return list(dict.fromkeys(links))


def extract_amp_url(html: str, *, page_url: str) -> str:
    """Return the page's first usable AMP URL, or ``""`` if it declares none."""

    for url in _iter_resolved(iter_amp_hrefs(html), page_url):
        return url
    return ""
