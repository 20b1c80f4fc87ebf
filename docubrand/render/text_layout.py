from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Protocol

from docubrand.fonts.glyphs import ELLIPSIS, requires_extended_glyphs, to_ascii
from docubrand.fonts.resolver import FontResolver
from docubrand.render.document import BLACK, Color, EmbeddedFont, RenderDocument
from docubrand.types import TextAlignment

logger = logging.getLogger(__name__)

_LINE_BREAK_PATTERN = re.compile(r'\r\n|\r|\n')


class TextSurface(Protocol):
    def draw_text(self, text: str, *, x: float, y: float, font: EmbeddedFont, size: float, color: Color = BLACK) -> None:
        ...


@dataclass(frozen=True)
class TextRenderOptions:
    text: str
    font_size: float
    x: float
    y: float
    color: Color = BLACK
    max_width: float | None = None
    align: TextAlignment = TextAlignment.left
    font_name: str | None = None


def truncate_to_width(text: str, font: EmbeddedFont, font_size: float, max_width: float, ellipsis: str = ELLIPSIS) -> str:
    ellipsis_width = font.width_of(ellipsis, font_size)
    for end in range(len(text), 0, -1):
        prefix = text[:end]
        if font.width_of(prefix, font_size) + ellipsis_width <= max_width:
            return prefix + ellipsis
    return ellipsis


def wrap_to_width(text: str, font: EmbeddedFont, font_size: float, max_width: float) -> list[str]:
    """Greedy word wrap; words wider than the line are split by character."""
    wrapped: list[str] = []
    for paragraph in _LINE_BREAK_PATTERN.split(str(text or '')):
        current = ''
        for word in paragraph.split(' '):
            candidate = f'{current} {word}' if current else word
            if font.width_of(candidate, font_size) <= max_width:
                current = candidate
                continue
            if current:
                wrapped.append(current)
                current = ''
            if font.width_of(word, font_size) <= max_width:
                current = word
                continue
            for char in word:
                if current and font.width_of(current + char, font_size) > max_width:
                    wrapped.append(current)
                    current = ''
                current += char
        wrapped.append(current)
    return wrapped


class TextLayoutEngine:
    def __init__(self, resolver: FontResolver, *, line_height: float = 1.2, ellipsis: str = ELLIPSIS):
        self.resolver = resolver
        self.line_height = line_height
        self.ellipsis = ellipsis

    async def font_for(self, document: RenderDocument, text: str, preferred_name: str | None = None) -> EmbeddedFont:
        return await self.resolver.embed(document, self.resolver.resolve_font_name(text, preferred_name))

    async def render_text(self, surface: TextSurface, document: RenderDocument, options: TextRenderOptions) -> None:
        try:
            font = await self.font_for(document, options.text, options.font_name)
            text = options.text
            if not font.supports_extended and requires_extended_glyphs(text):
                text = to_ascii(text)

            # alignment uses the untruncated width
            width = font.width_of(text, options.font_size)
            x = options.x
            if options.align == TextAlignment.center:
                x -= width / 2
            elif options.align == TextAlignment.right:
                x -= width

            if options.max_width is not None and width > options.max_width:
                text = truncate_to_width(text, font, options.font_size, options.max_width, self.ellipsis)

            surface.draw_text(text, x=x, y=options.y, font=font, size=options.font_size, color=options.color)
        except Exception as exc:
            logger.warning('Failed to render text %r: %s', options.text, exc)
            self._render_fallback(surface, document, options)

    def _render_fallback(self, surface: TextSurface, document: RenderDocument, options: TextRenderOptions) -> None:
        try:
            font = document.embed_standard_font(
                self.resolver.fallback_font,
                key=f'{self.resolver.fallback_font}:fallback',
                substituted=True,
            )
            surface.draw_text(
                to_ascii(options.text),
                x=options.x,
                y=options.y,
                size=options.font_size,
                font=font,
                color=options.color,
            )
        except Exception as exc:
            logger.error('Fallback text rendering failed for %r: %s', options.text, exc)

    async def render_multiline(
        self,
        surface: TextSurface,
        document: RenderDocument,
        text: str,
        options: TextRenderOptions,
        *,
        line_height: float | None = None,
    ) -> int:
        multiplier = self.line_height if line_height is None else line_height
        lines = _LINE_BREAK_PATTERN.split(str(text or ''))
        for index, line in enumerate(lines):
            await self.render_text(
                surface,
                document,
                replace(options, text=line, y=options.y - index * options.font_size * multiplier),
            )
        return len(lines)

    async def wrap(
        self,
        document: RenderDocument,
        text: str,
        *,
        font_size: float,
        max_width: float,
        font_name: str | None = None,
    ) -> list[str]:
        font = await self.font_for(document, text, font_name)
        if not font.supports_extended and requires_extended_glyphs(text):
            text = to_ascii(text)
        return wrap_to_width(text, font, font_size, max_width)
