"""
XML parsing and namespace prefix normalization.

Documents are parsed into the xmltodict compact shape:

* an element holding only text becomes a ``str`` (``None`` when empty),
* attributes become ``"@name"`` keys next to a ``"#text"`` key,
* a tag repeated under one parent becomes a ``list`` in document order.

KSeF files come with whatever prefixes the issuing software picked
(``tns:Faktura``, ``fa:P_1``, or none at all), so every key is reduced to
its local name before anything else looks at the tree.
"""

import logging

import xmltodict
from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeET
from xml.parsers.expat import ExpatError

from .errors import MalformedInput

logger = logging.getLogger(__name__)

ATTR_PREFIX = "@"
TEXT_KEY = "#text"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_xml(xml_text) -> dict:
    """Parse XML text (or UTF-8 bytes) into a compact, still prefixed tree."""
    if isinstance(xml_text, bytes):
        try:
            xml_text = xml_text.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise MalformedInput(f"Plik XML nie jest zapisany w UTF-8: {exc}") from exc

    xml_text = xml_text.lstrip("\ufeff")
    if not xml_text.strip():
        raise MalformedInput("Plik XML jest pusty")

    # defusedxml rejects entity bombs and external entities before xmltodict sees the text
    try:
        SafeET.fromstring(xml_text)
    except DefusedXmlException as exc:
        raise MalformedInput(f"Niedozwolona konstrukcja XML: {exc!r}") from exc
    except SafeET.ParseError as exc:
        raise MalformedInput(f"Niepoprawny XML: {exc}") from exc

    try:
        tree = xmltodict.parse(xml_text)
    except ExpatError as exc:
        raise MalformedInput(f"Niepoprawny XML: {exc}") from exc

    logger.debug("Parsed XML with root %s", next(iter(tree), None))
    return tree


def local_name(key: str) -> str:
    """Reduce ``prefix:Name``, ``{uri}Name`` and ``@prefix:attr`` keys to local names."""
    if key.startswith(ATTR_PREFIX):
        return ATTR_PREFIX + local_name(key[len(ATTR_PREFIX):])
    if key.startswith("{"):
        key = key.rpartition("}")[2]
    return key.rpartition(":")[2]


def strip_prefixes(node):
    """Return a copy of ``node`` with namespace prefixes removed from every key.

    Shape and text are preserved. When two sibling keys collapse onto the
    same local name the later one wins.
    """
    if isinstance(node, dict):
        stripped = {}
        for key, value in node.items():
            name = local_name(key)
            if name in stripped:
                logger.warning("Key %r collapses onto %r after prefix stripping, keeping the later value",
                               key, name)
            stripped[name] = strip_prefixes(value)
        return stripped
    if isinstance(node, list):
        return [strip_prefixes(item) for item in node]
    return node


def normalize(xml_text) -> dict:
    """Parse XML text into a prefix-free NormalizedNode tree."""
    return strip_prefixes(parse_xml(xml_text))


# ---------------------------------------------------------------------------
# Read access
# ---------------------------------------------------------------------------

def child(node, *path):
    """Follow ``path`` from ``node``; repeated tags resolve to their first item."""
    for name in path:
        if isinstance(node, list):
            node = node[0] if node else None
        if not isinstance(node, dict):
            return None
        node = node.get(name)
    if isinstance(node, list):
        return node[0] if node else None
    return node


def children(node, *path) -> list:
    """Return every occurrence of the element at ``path`` as a list."""
    if not path:
        return []
    parent = child(node, *path[:-1]) if len(path) > 1 else node
    if isinstance(parent, list):
        parent = parent[0] if parent else None
    if not isinstance(parent, dict):
        return []
    value = parent.get(path[-1])
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def text(node, *path, default=None):
    """Return the stripped text of the element at ``path``, or ``default``."""
    value = child(node, *path) if path else node
    if isinstance(value, dict):
        value = value.get(TEXT_KEY)
    if isinstance(value, str):
        value = value.strip()
        if value:
            return value
    return default


def attr(node, name, default=None):
    """Return attribute ``name`` of ``node`` (a branch or attributed leaf)."""
    if isinstance(node, list):
        node = node[0] if node else None
    if isinstance(node, dict):
        value = node.get(ATTR_PREFIX + name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return default
