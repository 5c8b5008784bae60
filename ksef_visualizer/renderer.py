"""
Layout tree to PDF bytes using fpdf2.

The only module that knows about fpdf2. ``LayoutPDF`` walks a
``LayoutDocument`` node by node; every node is drawn inside a horizontal
area (left margin + width) so that columns can reuse the same code.
"""

import logging
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path

import qrcode
from fpdf import FPDF
from fpdf.fonts import FontFace

from .config import (
    BUNDLED_FONT,
    FALLBACK_FONT,
    FONTS_DIR,
    MIN_COLUMN_WIDTH,
    PAGE_BREAK_MARGIN,
    QR_SIZE,
    SYSTEM_FONT_CANDIDATES,
)
from .errors import RenderingFailure
from .layout import (
    HORIZONTAL,
    LANDSCAPE,
    Paragraph,
    QrCode,
    Rule,
    Section,
    Spacer,
    Stack,
    Table,
    Text,
    plain_text,
)

logger = logging.getLogger(__name__)

# Polish letters the core PDF fonts cannot encode
POLISH_TO_ASCII = str.maketrans({
    "ą": "a", "ć": "c", "ę": "e", "ł": "l", "ń": "n",
    "ó": "o", "ś": "s", "ź": "z", "ż": "z",
    "Ą": "A", "Ć": "C", "Ę": "E", "Ł": "L", "Ń": "N",
    "Ó": "O", "Ś": "S", "Ź": "Z", "Ż": "Z",
})


def transliterate(text: str) -> str:
    """Reduce text to Latin-1 for the core fonts; Polish letters lose their accents."""
    return text.translate(POLISH_TO_ASCII).encode("latin-1", "replace").decode("latin-1")


def _font_candidates():
    family, regular, bold = BUNDLED_FONT
    yield family, Path(FONTS_DIR) / regular, Path(FONTS_DIR) / bold
    for family, regular, bold in SYSTEM_FONT_CANDIDATES:
        yield family, Path(regular), Path(bold)


class LayoutPDF(FPDF):
    """FPDF document drawing a single ``LayoutDocument``."""

    def __init__(self, document):
        orientation = "L" if document.page.orientation == LANDSCAPE else "P"
        super().__init__(orientation=orientation, unit="mm", format=document.page.size)
        self.document = document
        self.styles = document.styles
        left, top, right = self.styles.margins
        self.set_margins(left, top, right)
        self.set_auto_page_break(auto=True, margin=PAGE_BREAK_MARGIN)
        self.text_family, self.unicode_font = self._register_fonts()
        if document.title:
            self.set_title(self._text(document.title))
        self.set_creator("ksef-visualizer")

    def _register_fonts(self):
        """Register the first available TTF pair, else fall back to a core font."""
        for family, regular, bold in _font_candidates():
            if regular.is_file() and bold.is_file():
                self.add_font(family, "", str(regular))
                self.add_font(family, "B", str(bold))
                logger.debug("Using font %s from %s", family, regular.parent)
                return family, True
        logger.warning("No TrueType font with Polish glyphs found, falling back to %s", FALLBACK_FONT)
        return FALLBACK_FONT, False

    def _text(self, value) -> str:
        if value is None:
            return ""
        value = str(value)
        return value if self.unicode_font else transliterate(value)

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    def _apply_style(self, name, bold=None, size=None):
        style = self.styles.get(name)
        emphasis = style.bold if bold is None else bold
        self.set_font(self.text_family, "B" if emphasis else "", size or style.size)
        self.set_text_color(*style.color)
        return style

    def _line_height(self, size=None) -> float:
        return self.styles.line_height * (size or self.font_size_pt) / self.styles.base_size

    @contextmanager
    def _area(self, x, w):
        """Temporarily narrow the margins to the column ``x .. x + w``."""
        left, right = self.l_margin, self.r_margin
        self.set_left_margin(x)
        self.set_right_margin(self.w - x - w)
        self.set_x(x)
        try:
            yield
        finally:
            self.set_left_margin(left)
            self.set_right_margin(right)

    def _draw_line(self):
        """Draw a horizontal line at the current Y position."""
        y = self.get_y()
        self.set_draw_color(200, 200, 200)
        self.line(self.l_margin, y, self.w - self.r_margin, y)
        self.set_draw_color(0, 0, 0)

    # ------------------------------------------------------------------
    # Page
    # ------------------------------------------------------------------

    def footer(self):
        footer = self.document.footer
        if footer is None:
            return
        left, _, right = self.styles.margins
        self.set_y(-(PAGE_BREAK_MARGIN - 3))
        self.set_x(left)
        self._apply_style(footer.style)
        label = footer.template.format(page=self.page_no(), pages=self.str_alias_nb_pages)
        self.cell(self.w - left - right, 5, self._text(label), align=footer.align)
        self.set_text_color(0, 0, 0)

    def build(self):
        """Draw the whole document."""
        self.add_page()
        for node in self.document.content:
            self._render(node)

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def _render(self, node):
        if isinstance(node, Section):
            self._render_section(node)
        elif isinstance(node, Stack):
            self._render_stack(node)
        elif isinstance(node, Paragraph):
            self._render_paragraph(node)
        elif isinstance(node, Table):
            self._render_table(node)
        elif isinstance(node, Text):
            self._render_text(node)
        elif isinstance(node, QrCode):
            self._render_qr(node)
        elif isinstance(node, Spacer):
            self.ln(node.height)
        elif isinstance(node, Rule):
            self.ln(1)
            self._draw_line()
            self.ln(2)
        elif isinstance(node, (list, tuple)):
            for item in node:
                self._render(item)
        else:
            raise RenderingFailure(f"Nieobslugiwany element ukladu: {type(node).__name__}")

    def _render_section(self, node):
        """Section header with background, then its children."""
        self.ln(3)
        style = self._apply_style("section")
        self.set_fill_color(*(style.fill or (240, 240, 240)))
        self.set_x(self.l_margin)
        self.cell(0, 7, self._text(node.title), new_x="LMARGIN", new_y="NEXT", fill=True)
        self.set_text_color(0, 0, 0)
        self.ln(2)
        for item in node.children:
            self._render(item)

    def _render_stack(self, node):
        if node.direction != HORIZONTAL:
            for index, item in enumerate(node.children):
                if index and node.gap:
                    self.ln(node.gap)
                self._render(item)
            return

        count = len(node.children)
        if not count:
            return
        x, width = self.l_margin, self.epw
        col_width = (width - node.gap * (count - 1)) / count
        if col_width < MIN_COLUMN_WIDTH:
            self._render_stack(Stack(node.children, gap=node.gap))
            return
        page, y_start = self.page, self.get_y()
        y_end = y_start
        for index, item in enumerate(node.children):
            if self.page != page:
                # an earlier column ran over a page break; continue below it
                self._render(item)
                continue
            self.set_y(y_start)
            with self._area(x + index * (col_width + node.gap), col_width):
                self._render(item)
            if self.page == page:
                y_end = max(y_end, self.get_y())
        if self.page == page:
            self.set_y(y_end + 2)

    def _render_text(self, node):
        style = self._apply_style(node.style, bold=node.bold, size=node.size)
        if style.fill:
            self.set_fill_color(*style.fill)
        self.set_x(self.l_margin)
        self.multi_cell(0, self._line_height(), self._text(node.text), align=node.align,
                        fill=bool(style.fill), new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)

    def _render_paragraph(self, node):
        """Runs written inline with ``write`` so that they wrap together."""
        self.set_x(self.l_margin)
        height = 0
        for run in node.runs:
            self._apply_style(run.style or node.style, bold=run.bold, size=run.size)
            height = max(height, self._line_height())
            self.write(self._line_height(), self._text(run.text))
        self.set_text_color(0, 0, 0)
        self.ln(height or self._line_height())

    def _render_table(self, node):
        columns = max([len(node.header)] + [len(row) for row in node.rows])
        if not columns:
            return

        header_style = self.styles.get("table_header")
        headings = FontFace(
            emphasis="B" if header_style.bold else None,
            color=header_style.color,
            fill_color=header_style.fill,
            size_pt=header_style.size,
        )
        self._apply_style(node.style)
        self.set_x(self.l_margin)
        with self.table(
            width=self.epw,
            align="LEFT",
            col_widths=tuple(node.widths) if node.widths and len(node.widths) == columns else None,
            text_align=tuple(node.align) if node.align and len(node.align) == columns else "LEFT",
            first_row_as_headings=bool(node.header),
            headings_style=headings,
            cell_fill_color=248,
            cell_fill_mode="ROWS",
            line_height=self._line_height() * 0.9,
        ) as table:
            for cells in ([node.header] if node.header else []) + list(node.rows):
                row = table.row()
                for index in range(columns):
                    cell = cells[index] if index < len(cells) else ""
                    row.cell(self._text(cell if isinstance(cell, str) else plain_text(cell)))
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def _render_qr(self, node):
        """QR code image generated from the payload, caption underneath."""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=1,
        )
        qr.add_data(node.payload)
        qr.make(fit=True)
        image = BytesIO()
        qr.make_image(fill_color="black", back_color="white").save(image, format="PNG")
        image.seek(0)

        if self.get_y() + QR_SIZE > self.page_break_trigger:
            self.add_page()
        y = self.get_y()
        self.image(image, x=self.l_margin, y=y, w=QR_SIZE, h=QR_SIZE)
        self.set_y(y + QR_SIZE + 1)
        if node.caption:
            self._apply_style("small")
            self.multi_cell(0, self._line_height(), self._text(node.caption), new_x="LMARGIN", new_y="NEXT")
            self.set_text_color(0, 0, 0)


def render_pdf(document) -> bytes:
    """Render a ``LayoutDocument`` into PDF bytes."""
    try:
        pdf = LayoutPDF(document)
        pdf.build()
        content = bytes(pdf.output())
    except RenderingFailure:
        raise
    except Exception as exc:
        raise RenderingFailure(f"Blad generowania PDF: {exc}") from exc

    if not content:
        raise RenderingFailure("Silnik PDF nie zwrocil zadnych danych")
    logger.debug("Rendered %d page(s), %d bytes", pdf.pages_count, len(content))
    return content
