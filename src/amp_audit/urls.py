from __future__ import annotations

from urllib.parse import ParseResult, urljoin, urlparse, urlunparse

_SKIPPED_SCHEMES = ("mailto:", "javascript:", "tel:", "data:")


def normalize_url(raw_url: str) -> str:
    """Normalize a URL for de-duplication.

    - Strips surrounding whitespace.
    - Lowercases scheme + hostname.
    - Strips fragments.
    """

    parsed: ParseResult = urlparse(raw_url.strip())
    parsed = parsed._replace(
        scheme=(parsed.scheme or "").lower(),
        netloc=(parsed.netloc or "").lower(),
        fragment="",
    )
    return urlunparse(parsed)


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*."""

    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def is_followable_href(href: str) -> bool:
    href = href.strip()
    if not href or href.startswith("#"):
        return False
    return not href.lower().startswith(_SKIPPED_SCHEMES)


def resolve_href(href: str, *, page_url: str) -> str:
    """Make *href* absolute relative to the page it was extracted from.

    Root-relative paths (``/page``) are prefixed with the page origin;
    scheme-relative ones (``//host/page``) take the page scheme.

    Raises ``ValueError`` when the result is not a parseable URL (for example
    ``http://[broken``).
    """

    href = href.strip()
    if href.startswith("//"):
        url = f"{urlparse(page_url).scheme}:{href}"
    elif href.startswith("/"):
        url = origin_of(page_url) + href
    elif urlparse(href).scheme:
        url = href
    else:
        url = urljoin(page_url, href)
    urlparse(url)  # raises on a malformed netloc
    return url


def path_suffix(url: str) -> str:
    path = urlparse(url).path.lower()
    dot = path.rfind(".")
    if dot == -1 or "/" in path[dot:]:
        return ""
    return path[dot:]
