from __future__ import annotations

import hashlib
import io
import logging
from dataclasses import dataclass
from uuid import uuid4

from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas as rl_canvas

from docubrand.fonts.conversion import ensure_truetype

logger = logging.getLogger(__name__)

Color = tuple[int, int, int]

BLACK: Color = (0, 0, 0)

STANDARD_FONTS: dict[str, str] = {
    'helvetica': 'Helvetica',
    'helvetica-bold': 'Helvetica-Bold',
    'times': 'Times-Roman',
    'times-bold': 'Times-Bold',
    'courier': 'Courier',
}


def parse_hex_color(value: object, default: Color = BLACK) -> Color:
    token = str(value or '').strip().lstrip('#')
    if len(token) == 3:
        token = ''.join(ch * 2 for ch in token)
    if len(token) != 6:
        return default
    try:
        return (int(token[0:2], 16), int(token[2:4], 16), int(token[4:6], 16))
    except ValueError:
        return default


@dataclass(frozen=True)
class EmbeddedFont:
    """A font that has been placed in one document's font table."""

    name: str
    source: str
    supports_extended: bool
    substituted: bool = False

    def width_of(self, text: str, size: float) -> float:
        return float(pdfmetrics.stringWidth(str(text or ''), self.name, float(size)))


class CanvasSurface:
    """Drawing target for the current page of a ``RenderDocument``."""

    def __init__(self, canvas: rl_canvas.Canvas):
        self.canvas = canvas

    def draw_text(self, text: str, *, x: float, y: float, font: EmbeddedFont, size: float, color: Color = BLACK) -> None:
        r, g, b = color
        self.canvas.setFont(font.name, size)
        self.canvas.setFillColorRGB(r / 255.0, g / 255.0, b / 255.0)
        self.canvas.drawString(x, y, text)

    def draw_rect(self, *, x: float, y: float, width: float, height: float, color: Color = BLACK) -> None:
        r, g, b = color
        self.canvas.setStrokeColorRGB(r / 255.0, g / 255.0, b / 255.0)
        self.canvas.rect(x, y, width, height, stroke=1, fill=0)


class RenderDocument:
    """An output PDF under construction together with its font table."""

    def __init__(
        self,
        *,
        page_width_mm: float = 210.0,
        page_height_mm: float = 297.0,
        title: str | None = None,
        author: str | None = None,
    ):
        self.id = uuid4().hex[:12]
        self.page_width = page_width_mm * mm
        self.page_height = page_height_mm * mm
        self.fonts: dict[str, EmbeddedFont] = {}
        self.page_count = 1
        self._buffer = io.BytesIO()
        self.canvas = rl_canvas.Canvas(self._buffer, pagesize=(self.page_width, self.page_height))
        if title:
            self.canvas.setTitle(title)
        if author:
            self.canvas.setAuthor(author)
        self.canvas.setCreator('DocuBrand Template System')
        self._surface = CanvasSurface(self.canvas)
        self._finished: bytes | None = None

    @property
    def surface(self) -> CanvasSurface:
        return self._surface

    def embed_standard_font(self, family: str, *, key: str | None = None, substituted: bool = False) -> EmbeddedFont:
        font_name = STANDARD_FONTS.get(family.lower(), family)
        pdfmetrics.getFont(font_name)
        embedded = EmbeddedFont(name=font_name, source=family, supports_extended=False, substituted=substituted)
        self.fonts[key or family] = embedded
        return embedded

    def embed_truetype(self, key: str, data: bytes, *, supports_extended: bool = True) -> EmbeddedFont:
        truetype = ensure_truetype(data)
        # registered process-wide, so one name per distinct font file
        font_name = f'DocuBrand-{key}-{hashlib.sha1(truetype).hexdigest()[:12]}'
        if font_name not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(font_name, io.BytesIO(truetype)))
        embedded = EmbeddedFont(name=font_name, source=key, supports_extended=supports_extended)
        self.fonts[key] = embedded
        logger.info('Embedded font %s into document %s', key, self.id)
        return embedded

    def new_page(self) -> None:
        self.canvas.showPage()
        self.page_count += 1

    def finish(self) -> bytes:
        if self._finished is None:
            self.canvas.save()
            self._finished = self._buffer.getvalue()
        return self._finished
