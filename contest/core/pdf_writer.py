"""PDF output for rendered competition documents.

Draws each Page record onto an A4 page:
- Landscape table pages: heading, underlined title, boxed activity info,
  ruled table, optional note and signature block, QR code top-right
- Portrait envelope cover: double full-page frame with activity box,
  details and a summary panel
- Footer with generation timestamp and sheet counter
"""

import os
import fitz  # PyMuPDF

from .document_renderer import (
    ENVELOPE, FOOTER_HEIGHT, HEADING_HEIGHT, INFO_LINE_HEIGHT, INFO_PADDING,
    MM_TO_PT, NOTE_HEIGHT, TABLE_HEADER_HEIGHT, TITLE_HEIGHT, Page,
    RenderedDocument, page_size,
)
from .models import PrintConfig

# 'firago' faces come from the pymupdf-fonts package and cover Thai.
# The Base-14 families only cover Latin text.
FONT_FAMILIES = {
    'firago': ('figo', 'figbo'),
    'times': ('Times-Roman', 'Times-Bold'),
    'helvetica': ('Helvetica', 'Helvetica-Bold'),
    'courier': ('Courier', 'Courier-Bold'),
}
BASE14_FONTS = {'Times-Roman', 'Times-Bold', 'Helvetica', 'Helvetica-Bold',
                'Courier', 'Courier-Bold'}
DEFAULT_FONT = 'firago'
EMBEDDED_FONT_NAME = 'contestfont'

# Colors
BLACK = (0, 0, 0)
RED = (0.8, 0, 0)
GRAY = (0.4, 0.4, 0.4)
HEADER_FILL = (0.95, 0.95, 0.95)

# Font sizes
HEADING_SIZE = 16
SCOPE_SIZE = 12
TITLE_SIZE = 13
INFO_SIZE = 10
HEADER_CELL_SIZE = 8
CELL_SIZE = 9
CELL_SUB_SIZE = 7
MIN_CELL_SIZE = 6
NOTE_SIZE = 8
SIGNATURE_SIZE = 10
FOOTER_SIZE = 7

QR_SIZE = 56


class _Face:
    """One font face: a Base-14 name, or a fitz.Font embedded under a name."""

    def __init__(self, name: str, font=None):
        self.name = name
        self.font = font

    @classmethod
    def named(cls, name: str):
        if name in BASE14_FONTS:
            return cls(name)
        return cls(name, fitz.Font(name))

    def covers(self, text: str) -> bool:
        if self.font is None:
            return all(ord(ch) < 256 for ch in text)
        return all(ch.isspace() or self.font.has_glyph(ord(ch)) for ch in text)

    def length(self, text: str, size: float) -> float:
        if self.font is None:
            return fitz.get_text_length(text, fontname=self.name, fontsize=size)
        return self.font.text_length(text, fontsize=size)

    def install(self, page):
        # insert_font is a no-op when the page already carries this name
        if self.font is not None:
            page.insert_font(fontname=self.name, fontbuffer=self.font.buffer)


class FontSet:
    """Regular/bold font pair from a family name or a font file path.

    Text the chosen faces cannot draw (Thai under a Base-14 family, for
    example) is drawn with the FiraGO faces instead.
    """

    def __init__(self, font: str):
        key = (font or '').strip().lower()
        if key in FONT_FAMILIES:
            self.faces = tuple(_Face.named(n) for n in FONT_FAMILIES[key])
        elif font and os.path.isfile(font):
            # One embedded face serves both weights
            face = _Face(EMBEDDED_FONT_NAME, fitz.Font(fontfile=font))
            self.faces = (face, face)
        else:
            print(f"Warning: Unknown font '{font}', using {DEFAULT_FONT}")
            key = DEFAULT_FONT
            self.faces = tuple(_Face.named(n) for n in FONT_FAMILIES[key])
        if key == DEFAULT_FONT:
            self.fallback = self.faces
        else:
            self.fallback = tuple(_Face.named(n) for n in FONT_FAMILIES[DEFAULT_FONT])

    def face(self, text: str, bold: bool = False) -> _Face:
        face = self.faces[1 if bold else 0]
        if face.covers(text):
            return face
        return self.fallback[1 if bold else 0]

    def length(self, text: str, size: float, bold: bool = False) -> float:
        return self.face(text, bold).length(text, size)

    def draw(self, page, x: float, y: float, text: str, size: float,
             bold: bool = False, color=BLACK):
        face = self.face(text, bold)
        face.install(page)
        page.insert_text(fitz.Point(x, y), text, fontname=face.name,
                         fontsize=size, color=color)

    def center(self, page, center_x: float, y: float, text: str, size: float,
               bold: bool = False, color=BLACK):
        tw = self.length(text, size, bold)
        self.draw(page, center_x - tw / 2, y, text, size, bold, color)


class _Frame:
    """Printable area of a page after margins."""

    def __init__(self, width: float, height: float, config: PrintConfig):
        self.left = config.margin_left * MM_TO_PT
        self.right = width - config.margin_right * MM_TO_PT
        self.top = config.margin_top * MM_TO_PT
        self.bottom = height - config.margin_bottom * MM_TO_PT

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2


def write_pdf(document: RenderedDocument, output_path: str, config: PrintConfig):
    """Write all pages of a rendered document to output_path.

    Args:
        document: Output of document_renderer.render().
        output_path: Where to save the PDF.
        config: Effective print configuration (margins and font).
    """
    fonts = FontSet(config.font)
    doc = fitz.open()

    for layout in document.pages:
        width, height = page_size(layout.orientation)
        page = doc.new_page(width=width, height=height)
        frame = _Frame(width, height, config)
        if layout.kind == ENVELOPE:
            _draw_envelope(page, frame, layout, fonts)
        else:
            _draw_table_page(page, frame, layout, fonts)
        _draw_footer(page, frame, layout, document.generated_at, fonts)

    if not document.pages:
        width, height = page_size('portrait')
        doc.new_page(width=width, height=height)

    doc.set_metadata({
        'title': document.title,
        'subject': document.doc_type,
        'keywords': f'activities={document.activity_count}',
        'creator': 'contest-docs',
    })
    doc.save(output_path)
    doc.close()


# --- Table pages ---

def _draw_heading(page, frame: _Frame, layout: Page, fonts: FontSet, y: float) -> float:
    header_title, scope_label = layout.heading
    fonts.center(page, frame.center_x, y + 16, header_title, HEADING_SIZE, bold=True)
    if scope_label:
        fonts.center(page, frame.center_x, y + 32, scope_label, SCOPE_SIZE)
    return y + HEADING_HEIGHT


def _draw_title(page, frame: _Frame, layout: Page, fonts: FontSet, y: float) -> float:
    baseline = y + 16
    tw = fonts.length(layout.title, TITLE_SIZE, bold=True)
    x = frame.center_x - tw / 2
    fonts.draw(page, x, baseline, layout.title, TITLE_SIZE, bold=True)
    page.draw_line(fitz.Point(x, baseline + 2), fitz.Point(x + tw, baseline + 2),
                   color=BLACK, width=0.75)
    return y + TITLE_HEIGHT


def _draw_info_box(page, frame: _Frame, layout: Page, fonts: FontSet, y: float) -> float:
    height = len(layout.info_lines) * INFO_LINE_HEIGHT + INFO_PADDING
    page.draw_rect(fitz.Rect(frame.left, y, frame.right, y + height - 4),
                   color=BLACK, width=0.75)
    line_y = y + 13
    for line in layout.info_lines:
        fonts.draw(page, frame.left + 8, line_y,
                   _fit_text(fonts, line, frame.width - 16, INFO_SIZE), INFO_SIZE)
        line_y += INFO_LINE_HEIGHT
    return y + height


def _column_edges(frame: _Frame, layout: Page) -> list[float]:
    total = sum(c.width for c in layout.columns) or 1
    edges = [frame.left]
    for column in layout.columns:
        edges.append(edges[-1] + frame.width * column.width / total)
    edges[-1] = frame.right
    return edges


def _draw_table(page, frame: _Frame, layout: Page, fonts: FontSet, y: float) -> float:
    edges = _column_edges(frame, layout)

    # Header row
    header = fitz.Rect(frame.left, y, frame.right, y + TABLE_HEADER_HEIGHT)
    page.draw_rect(header, color=BLACK, fill=HEADER_FILL, width=0.75)
    for i, column in enumerate(layout.columns):
        x0, x1 = edges[i], edges[i + 1]
        page.draw_line(fitz.Point(x0, y), fitz.Point(x0, y + TABLE_HEADER_HEIGHT),
                       color=BLACK, width=0.5)
        label = _fit_text(fonts, column.label, x1 - x0 - 4, HEADER_CELL_SIZE, bold=True)
        fonts.center(page, (x0 + x1) / 2, y + TABLE_HEADER_HEIGHT / 2 + 3,
                     label, HEADER_CELL_SIZE, bold=True)
    y += TABLE_HEADER_HEIGHT

    for row in layout.rows:
        y1 = y + layout.row_height
        if len(row) == 1:
            page.draw_rect(fitz.Rect(frame.left, y, frame.right, y1),
                           color=BLACK, width=0.5)
            fonts.center(page, frame.center_x, y + layout.row_height / 2 + 3,
                         row[0], CELL_SIZE, bold=True, color=RED)
        else:
            for i, cell in enumerate(row[:len(layout.columns)]):
                x0, x1 = edges[i], edges[i + 1]
                page.draw_rect(fitz.Rect(x0, y, x1, y1), color=BLACK, width=0.5)
                _draw_cell(page, fonts, cell, x0, x1, y, layout.row_height,
                           centered=(i == 0))
        y = y1
    return y


def _draw_cell(page, fonts: FontSet, text: str, x0: float, x1: float, y: float,
               row_height: float, centered: bool = False):
    """Draw cell text; a second line (after a newline) is drawn smaller."""
    if not text:
        return
    lines = text.split('\n', 1)
    width = x1 - x0 - 6
    if len(lines) == 1:
        fitted = _fit_text(fonts, lines[0], width, CELL_SIZE)
        baseline = y + row_height / 2 + 3
        if centered:
            fonts.center(page, (x0 + x1) / 2, baseline, fitted, CELL_SIZE)
        else:
            fonts.draw(page, x0 + 3, baseline, fitted, CELL_SIZE)
        return
    main = _fit_text(fonts, lines[0], width, CELL_SIZE, bold=True)
    sub = _fit_text(fonts, lines[1], width, CELL_SUB_SIZE)
    fonts.draw(page, x0 + 3, y + row_height / 2 - 1, main, CELL_SIZE, bold=True)
    fonts.draw(page, x0 + 3, y + row_height / 2 + 8, sub, CELL_SUB_SIZE, color=GRAY)


def _fit_text(fonts: FontSet, text: str, width: float, size: float,
              bold: bool = False) -> str:
    """Truncate text with '...' so it fits the given width."""
    if fonts.length(text, size, bold) <= width:
        return text
    while text and fonts.length(text + '...', size, bold) > width:
        text = text[:-1]
    return text + '...' if text else ''


def _draw_note(page, frame: _Frame, layout: Page, fonts: FontSet, y: float) -> float:
    y += 4
    height = NOTE_HEIGHT - 8
    page.draw_rect(fitz.Rect(frame.left, y, frame.right, y + height),
                   color=BLACK, width=0.5)
    fonts.draw(page, frame.left + 6, y + height / 2 + 3,
               _fit_text(fonts, layout.note, frame.width - 12, NOTE_SIZE), NOTE_SIZE)
    return y + NOTE_HEIGHT - 4


def _draw_signature(page, frame: _Frame, layout: Page, fonts: FontSet, y: float) -> float:
    center_x = frame.right - 170
    line_y = y + 20
    for line in layout.signature:
        fonts.center(page, center_x, line_y, line, SIGNATURE_SIZE, bold=True)
        line_y += 14
    return line_y


def _draw_qr(page, frame: _Frame, layout: Page):
    rect = fitz.Rect(frame.right - QR_SIZE, frame.top,
                     frame.right, frame.top + QR_SIZE)
    page.insert_image(rect, stream=layout.qr_png)


def _draw_table_page(page, frame: _Frame, layout: Page, fonts: FontSet):
    y = frame.top
    y = _draw_heading(page, frame, layout, fonts, y)
    y = _draw_title(page, frame, layout, fonts, y)
    y = _draw_info_box(page, frame, layout, fonts, y)
    y = _draw_table(page, frame, layout, fonts, y)
    if layout.note:
        y = _draw_note(page, frame, layout, fonts, y)
    if layout.signature:
        _draw_signature(page, frame, layout, fonts, y)
    if layout.qr_png:
        _draw_qr(page, frame, layout)


# --- Envelope cover ---

def _draw_envelope(page, frame: _Frame, layout: Page, fonts: FontSet):
    """Portrait cover with a double frame around the whole printable area."""
    outer = fitz.Rect(frame.left, frame.top, frame.right,
                      frame.bottom - FOOTER_HEIGHT)
    page.draw_rect(outer, color=BLACK, width=2)
    inner = fitz.Rect(outer.x0 + 5, outer.y0 + 5, outer.x1 - 5, outer.y1 - 5)
    page.draw_rect(inner, color=BLACK, width=0.75)

    y = inner.y0 + 120
    header_title, scope_label = layout.heading
    fonts.center(page, frame.center_x, y, header_title, 20, bold=True)
    if scope_label:
        fonts.center(page, frame.center_x, y + 24, scope_label, 14)
    y += 64

    fonts.center(page, frame.center_x, y, layout.title, 16, bold=True)
    y += 30

    # Activity name in a bordered box
    activity_line = layout.info_lines[0] if layout.info_lines else ''
    text = _fit_text(fonts, activity_line, inner.width - 80, 20, bold=True)
    box_w = fonts.length(text, 20, bold=True) + 50
    box = fitz.Rect(frame.center_x - box_w / 2, y, frame.center_x + box_w / 2, y + 40)
    page.draw_rect(box, color=BLACK, width=1.5)
    fonts.center(page, frame.center_x, y + 27, text, 20, bold=True)
    y += 70

    for line in layout.info_lines[1:]:
        fonts.center(page, frame.center_x,
                     y, _fit_text(fonts, line, inner.width - 40, 14), 14)
        y += 24
    y += 20

    # Summary panel
    panel_w = inner.width * 0.85
    panel_h = 40 + 30 * len(layout.summary)
    panel = fitz.Rect(frame.center_x - panel_w / 2, y,
                      frame.center_x + panel_w / 2, y + panel_h)
    page.draw_rect(panel, color=BLACK, width=0.75)
    fonts.draw(page, panel.x0 + 16, y + 26, 'Summary', 16, bold=True)
    row_y = y + 56
    for label, value in layout.summary:
        fonts.draw(page, panel.x0 + 16, row_y, f'{label}:', 14)
        fonts.draw(page, panel.x0 + panel_w * 0.6, row_y, value, 18, bold=True)
        row_y += 30

    sig_y = inner.y1 - 30
    for line in layout.signature:
        fonts.draw(page, inner.x0 + 20,
                   sig_y, _fit_text(fonts, line, inner.width - 40, 12, bold=True),
                   12, bold=True)
        sig_y += 16


# --- Footer ---

def _draw_footer(page, frame: _Frame, layout: Page, generated_at: str, fonts: FontSet):
    y = frame.bottom - 4
    if generated_at:
        fonts.draw(page, frame.left, y, f'Generated {generated_at}',
                   FOOTER_SIZE, color=GRAY)
    sheet_no, sheet_count = layout.sheet
    if sheet_count > 1:
        label = f'Sheet {sheet_no}/{sheet_count}'
        tw = fonts.length(label, FOOTER_SIZE)
        fonts.draw(page, frame.right - tw, y, label, FOOTER_SIZE, color=GRAY)
