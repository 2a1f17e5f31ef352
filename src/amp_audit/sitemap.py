from __future__ import annotations

from xml.dom import minidom
from xml.parsers.expat import ExpatError


class SitemapParseError(ValueError):
    pass


def _local_name(node: minidom.Element) -> str:
    return (node.localName or node.tagName).split(":")[-1]


def _child_elements(node: minidom.Element, name: str) -> list[minidom.Element]:
    return [
        child
        for child in node.childNodes
        if child.nodeType == child.ELEMENT_NODE and _local_name(child) == name
    ]


def _text(node: minidom.Element) -> str:
    parts = [
        child.data
        for child in node.childNodes
        if child.nodeType in (child.TEXT_NODE, child.CDATA_SECTION_NODE)
    ]
    return "".join(parts).strip()


def parse_sitemap(xml: str | bytes) -> list[str]:
    """Return the ``loc`` URLs of a sitemap in document order.

    A ``<urlset>`` yields its ``url/loc`` entries; a ``<sitemapindex>`` yields
    its ``sitemap/loc`` entries. Namespaces are ignored.
    """

    if isinstance(xml, str):
        xml = xml.encode("utf-8")
    try:
        doc = minidom.parseString(xml)
    except (ExpatError, ValueError) as e:
        raise SitemapParseError(f"Malformed sitemap XML: {e}") from e

    root = doc.documentElement
    root_name = _local_name(root)
    if root_name == "urlset":
        entry_name = "url"
    elif root_name == "sitemapindex":
        entry_name = "sitemap"
    else:
        raise SitemapParseError(f"Not a sitemap: root element <{root_name}>")

    locs: list[str] = []
    for entry in _child_elements(root, entry_name):
        for loc in _child_elements(entry, "loc"):
            text = _text(loc)
            if text:
                locs.append(text)
    return locs
