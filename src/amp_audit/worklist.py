from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .content import ContentKind, sniff_kind
from .http_client import FetchError, HttpClient
from .links import extract_candidate_links
from .models import UrlPair
from .sitemap import SitemapParseError, parse_sitemap
from .urls import origin_of

logger = logging.getLogger(__name__)


class SeedFetchError(RuntimeError):
    """The seed document could not be fetched; the run cannot start."""

    def __init__(self, seed_url: str, cause: FetchError) -> None:
        super().__init__(f"Could not retrieve {seed_url}: {cause.message}")
        self.seed_url = seed_url
        self.cause = cause


@dataclass(frozen=True)
class Worklist:
    seed_url: str
    # Post-redirect URL of the seed; relative links resolve against it.
    page_url: str
    origin: str
    kind: ContentKind
    links: list[str] = field(default_factory=list)
    # Kept for HTML seeds so the seed page's own pair needs no second request.
    seed_body: str | None = None


def build_worklist(http: HttpClient, seed_url: str) -> Worklist:
    """Fetch *seed_url* once and list the pages to visit.

    HTML seeds contribute their anchor links; XML seeds are read as sitemaps.
    A malformed sitemap is logged and gives an empty worklist.
    """

    try:
        res = http.get_page(seed_url)
    except FetchError as e:
        raise SeedFetchError(seed_url, e) from e

    logger.info("Retrieved %s (HTTP %s)", seed_url, res.status_code)
    page_url = res.final_url or seed_url
    origin = origin_of(page_url)
    kind = sniff_kind(page_url, content_type=res.content_type)

    if kind == ContentKind.XML:
        logger.info("Parsing XML sitemap")
        try:
            links = parse_sitemap(res.body)
        except SitemapParseError as e:
            logger.error("Skipping discovery for %s: %s", seed_url, e)
            links = []
        return Worklist(
            seed_url=seed_url,
            page_url=page_url,
            origin=origin,
            kind=kind,
            links=links,
        )

    logger.info("Parsing HTML")
    html = res.text
    links = extract_candidate_links(html, page_url=page_url)
    return Worklist(
        seed_url=seed_url,
        page_url=page_url,
        origin=origin,
        kind=kind,
        links=links,
        seed_body=html,
    )


def parse_pairs(lines: Iterable[str]) -> list[UrlPair]:
    """Read ``"{canonical} {amp}"`` lines; ``#`` lines are comments."""

    pairs: list[UrlPair] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        canonical = fields[0]
        amp = fields[1] if len(fields) > 1 else ""
        pairs.append(UrlPair(canonical=canonical, amp=amp))
    return pairs


def read_pairs(path: Path) -> list[UrlPair]:
    if str(path) == "-":
        pairs = parse_pairs(sys.stdin)
    else:
        with path.open("r", encoding="utf-8") as f:
            pairs = parse_pairs(f)
    logger.info("%d links to validate", len(pairs))
    return pairs
