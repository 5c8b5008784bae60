"""Wrap builder output into a complete page-level document."""

from typing import Optional

from .classifier import DocumentType, parse_document_type
from .config import BASE_FONT_SIZE, BUNDLED_FONT, FOOTER_TEMPLATE, LINE_HEIGHT, PAGE_MARGINS, PAGE_SIZE
from .layout import LANDSCAPE, PORTRAIT, LayoutDocument, PageFooter, PageSetup, StyleSheet, TextStyle

GREY = (100, 100, 100)
SECTION_FILL = (240, 240, 240)
HEADER_FILL = (50, 50, 50)
WHITE = (255, 255, 255)

TEXT_STYLES = {
    "normal": TextStyle(BASE_FONT_SIZE),
    "small": TextStyle(BASE_FONT_SIZE - 2, color=GREY),
    "label": TextStyle(BASE_FONT_SIZE - 1, bold=True, color=GREY),
    "small_label": TextStyle(BASE_FONT_SIZE - 1, bold=True),
    "brand": TextStyle(BASE_FONT_SIZE + 5, bold=True),
    "title": TextStyle(BASE_FONT_SIZE + 7, bold=True),
    "section": TextStyle(BASE_FONT_SIZE + 2, bold=True, fill=SECTION_FILL),
    "total": TextStyle(BASE_FONT_SIZE + 2, bold=True),
    "table": TextStyle(BASE_FONT_SIZE - 1),
    "table_header": TextStyle(BASE_FONT_SIZE - 1, bold=True, color=WHITE, fill=HEADER_FILL),
    "footer": TextStyle(BASE_FONT_SIZE - 1, color=GREY),
}

DEFAULT_TITLES = {
    DocumentType.INVOICE: "Faktura",
    DocumentType.UPO: "UPO",
}


def default_stylesheet() -> StyleSheet:
    return StyleSheet(
        font_family=BUNDLED_FONT[0],
        base_size=BASE_FONT_SIZE,
        margins=PAGE_MARGINS,
        line_height=LINE_HEIGHT,
        styles=dict(TEXT_STYLES),
    )


def assemble(content, document_type, title: Optional[str] = None) -> LayoutDocument:
    """Attach page setup, styles and the page footer to ``content``.

    Invoices are laid out in portrait, UPO documents in landscape. The footer
    only carries the ``{page} z {pages}`` rule; numbers are filled per page
    by the renderer.
    """
    kind = parse_document_type(document_type)
    orientation = LANDSCAPE if kind is DocumentType.UPO else PORTRAIT
    return LayoutDocument(
        content=list(content),
        page=PageSetup(size=PAGE_SIZE, orientation=orientation),
        styles=default_stylesheet(),
        footer=PageFooter(FOOTER_TEMPLATE, align="R"),
        title=title or DEFAULT_TITLES[kind],
    )
