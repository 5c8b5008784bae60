"""
Render-engine-agnostic layout tree.

Builders describe a document with these nodes; the renderer is the only
place that knows how they turn into PDF drawing calls. Nodes carry
structure and styling intent (style name, bold, size, alignment) and never
binary data.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Union

PORTRAIT = "portrait"
LANDSCAPE = "landscape"

VERTICAL = "vertical"
HORIZONTAL = "horizontal"


# ---------------------------------------------------------------------------
# Content nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Text:
    """A styled run of text rendered as its own block."""

    text: str
    style: str = "normal"
    bold: Optional[bool] = None
    size: Optional[float] = None
    align: str = "L"


@dataclass(frozen=True)
class Paragraph:
    """Inline runs written one after another, wrapping as a single block."""

    runs: Sequence[Text]
    style: str = "normal"


@dataclass(frozen=True)
class Table:
    """Header plus rows of cells; a cell is a string or any layout node."""

    header: Sequence["Cell"]
    rows: Sequence[Sequence["Cell"]]
    widths: Optional[Sequence[float]] = None
    align: Optional[Sequence[str]] = None
    style: str = "table"


@dataclass(frozen=True)
class Stack:
    """Children laid out top-to-bottom or side by side."""

    children: Sequence["LayoutNode"]
    direction: str = VERTICAL
    gap: float = 0


@dataclass(frozen=True)
class Section:
    """A titled block. ``key`` names the schema structure it renders."""

    key: str
    title: str
    children: Sequence["LayoutNode"]


@dataclass(frozen=True)
class QrCode:
    """QR code generated from ``payload`` at render time."""

    payload: str
    caption: Optional[str] = None


@dataclass(frozen=True)
class Spacer:
    height: float = 2


@dataclass(frozen=True)
class Rule:
    """Thin horizontal separator line."""


LayoutNode = Union[Text, Paragraph, Table, Stack, Section, QrCode, Spacer, Rule]
Cell = Union[str, LayoutNode]


# ---------------------------------------------------------------------------
# Page-level directives
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageSetup:
    size: str = "A4"
    orientation: str = PORTRAIT


@dataclass(frozen=True)
class PageFooter:
    """Footer generating rule; ``{page}`` and ``{pages}`` are filled by the renderer."""

    template: str
    align: str = "R"
    style: str = "footer"


@dataclass(frozen=True)
class TextStyle:
    size: float
    bold: bool = False
    color: tuple = (0, 0, 0)
    fill: Optional[tuple] = None


@dataclass(frozen=True)
class StyleSheet:
    font_family: str
    base_size: float
    margins: tuple
    line_height: float
    styles: dict = field(default_factory=dict)

    def get(self, name: str) -> TextStyle:
        """Return the named style, falling back to ``normal``."""
        return self.styles.get(name) or self.styles.get("normal") or TextStyle(self.base_size)


@dataclass(frozen=True)
class LayoutDocument:
    """A complete document: content plus everything the renderer needs."""

    content: Sequence[LayoutNode]
    page: PageSetup
    styles: StyleSheet
    footer: Optional[PageFooter] = None
    title: Optional[str] = None


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def iter_nodes(node) -> Iterator[LayoutNode]:
    """Yield ``node`` and every layout node below it, depth first."""
    if isinstance(node, LayoutDocument):
        for item in node.content:
            yield from iter_nodes(item)
        return
    if isinstance(node, (list, tuple)):
        for item in node:
            yield from iter_nodes(item)
        return
    if isinstance(node, str) or node is None:
        return

    yield node
    if isinstance(node, Paragraph):
        yield from iter_nodes(node.runs)
    elif isinstance(node, Table):
        yield from iter_nodes(node.header)
        for row in node.rows:
            yield from iter_nodes(row)
    elif isinstance(node, (Stack, Section)):
        yield from iter_nodes(node.children)


def iter_text(node) -> Iterator[str]:
    """Yield every piece of visible text below ``node``."""
    if isinstance(node, str):
        yield node
        return
    if isinstance(node, (list, tuple)):
        for item in node:
            yield from iter_text(item)
        return
    for item in iter_nodes(node):
        if isinstance(item, Text):
            yield item.text
        elif isinstance(item, Section):
            yield item.title
        elif isinstance(item, QrCode) and item.caption:
            yield item.caption
        elif isinstance(item, Table):
            for cell in item.header:
                if isinstance(cell, str):
                    yield cell
            for row in item.rows:
                for cell in row:
                    if isinstance(cell, str):
                        yield cell


def plain_text(node) -> str:
    """Join the visible text below ``node`` into one string."""
    return "\n".join(part for part in iter_text(node) if part)


def find_sections(node, key: Optional[str] = None) -> list:
    """Return sections below ``node``, optionally only those with ``key``."""
    return [item for item in iter_nodes(node)
            if isinstance(item, Section) and (key is None or item.key == key)]


# ---------------------------------------------------------------------------
# Shortcuts used by the builders
# ---------------------------------------------------------------------------

def label_value(label: str, value: str, style: str = "normal") -> Paragraph:
    """``label: value`` with the label in bold."""
    return Paragraph([Text(f"{label}: ", style=style, bold=True), Text(value, style=style)], style=style)


def columns(*blocks, gap: float = 5) -> Stack:
    """Side-by-side blocks of equal width."""
    return Stack(list(blocks), direction=HORIZONTAL, gap=gap)


def section(key: str, title: str, children) -> list:
    """A one-element list holding the section, or nothing when it has no children."""
    children = [item for item in children if item is not None]
    if not children:
        return []
    return [Section(key, title, children)]
