from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pypdf import PdfReader, PdfWriter
from reportlab.lib.units import mm

from docubrand.errors import TemplateDataError
from docubrand.render.document import RenderDocument, parse_hex_color
from docubrand.render.text_layout import TextLayoutEngine, TextRenderOptions
from docubrand.templates.binding import bind_item_content
from docubrand.templates.validator import validate_data
from docubrand.types import QUESTION_SCHEMA_TYPES, SchemaItem, SchemaType, Template, TextAlignment

logger = logging.getLogger(__name__)

DEFAULT_FONT_SIZE = 11.0
_CELL_PADDING_PT = 3.0
_OPTION_LETTERS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ'


@dataclass
class RenderResult:
    pdf: bytes
    page_count: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    fonts: list[str] = field(default_factory=list)


def question_text(item: SchemaItem, bound: str) -> str:
    body = bound or item.question or ''
    lines = [f'{item.number}. {body}' if item.number else body]
    for index, option in enumerate(item.options or []):
        letter = _OPTION_LETTERS[index] if index < len(_OPTION_LETTERS) else str(index + 1)
        lines.append(f'{letter}. {option}')
    return '\n'.join(lines)


def split_table_row(row: str) -> list[str]:
    separator = '\t' if '\t' in row else '|'
    cells = [cell.strip() for cell in row.strip().strip('|').split(separator)]
    return cells or ['']


def overlay_on_base_pdf(rendered: bytes, base_path: Path) -> bytes:
    """Draw each rendered page on top of the matching page of ``base_path``."""
    base_reader = PdfReader(str(base_path))
    if base_reader.is_encrypted:
        base_reader.decrypt('')
    overlay_reader = PdfReader(io.BytesIO(rendered))

    writer = PdfWriter()
    for index, page in enumerate(overlay_reader.pages):
        if index < len(base_reader.pages):
            background = base_reader.pages[index]
            background.merge_page(page)
            writer.add_page(background)
        else:
            writer.add_page(page)

    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TemplateRenderer:
    def __init__(self, layout: TextLayoutEngine):
        self.layout = layout

    async def render(self, template: Template, data: dict[str, Any] | None = None) -> RenderResult:
        warnings: list[str] = []
        if data is not None:
            validation = validate_data(template, data)
            if not validation.valid:
                raise TemplateDataError(validation.errors)
            warnings.extend(validation.warnings)
            for warning in validation.warnings:
                logger.warning('Template %s data: %s', template.id, warning)

        document = RenderDocument(
            page_width_mm=template.base_pdf.width,
            page_height_mm=template.base_pdf.height,
            title=template.name,
            author=template.metadata.author or None,
        )
        errors: list[str] = []
        for page_index, page in enumerate(template.schemas):
            if page_index > 0:
                document.new_page()
            for item_index, item in enumerate(page):
                try:
                    await self.render_item(document, item, data)
                except Exception as exc:
                    message = f'Page {page_index} item {item_index} ({item.name or "unnamed"}): {exc}'
                    logger.warning('Failed to render %s', message)
                    errors.append(message)

        pdf = document.finish()
        if template.base_pdf.path:
            base_path = Path(template.base_pdf.path)
            try:
                pdf = overlay_on_base_pdf(pdf, base_path)
            except Exception as exc:
                logger.warning('Failed to merge base PDF %s: %s', base_path, exc)
                errors.append(f'Base PDF {base_path} could not be merged: {exc}')

        logger.info('Rendered template %s: %d pages, %d errors', template.id, document.page_count, len(errors))
        return RenderResult(
            pdf=pdf,
            page_count=document.page_count,
            errors=errors,
            warnings=warnings,
            fonts=self.layout.resolver.cached_fonts(document),
        )

    def _frame(self, document: RenderDocument, item: SchemaItem) -> tuple[float, float, float, float]:
        if item.position is None or item.width is None or item.height is None:
            raise ValueError('item has no position or size')
        left = item.position.x * mm
        top = document.page_height - item.position.y * mm
        return left, top, item.width * mm, item.height * mm

    async def render_item(self, document: RenderDocument, item: SchemaItem, data: dict[str, Any] | None) -> None:
        left, top, width, height = self._frame(document, item)
        surface = document.surface
        color = parse_hex_color(item.font_color)
        font_size = item.font_size or DEFAULT_FONT_SIZE
        content = bind_item_content(item, data)

        if item.type == SchemaType.image.value:
            surface.draw_rect(x=left, y=top - height, width=width, height=height, color=color)
            if item.label or content:
                await self.layout.render_text(
                    surface,
                    document,
                    TextRenderOptions(
                        text=item.label or content,
                        font_size=font_size,
                        x=left + width / 2,
                        y=top - height / 2,
                        color=color,
                        max_width=width,
                        align=TextAlignment.center,
                        font_name=item.font_name,
                    ),
                )
            return

        if item.type == SchemaType.table.value:
            await self._render_table(document, item, content, left, top, width, font_size)
            return

        if item.type == SchemaType.instruction_box.value:
            surface.draw_rect(x=left, y=top - height, width=width, height=height, color=color)
        if item.type in QUESTION_SCHEMA_TYPES:
            content = question_text(item, content)

        lines = await self.layout.wrap(
            document,
            content,
            font_size=font_size,
            max_width=width,
            font_name=item.font_name,
        )
        if item.alignment == TextAlignment.center:
            anchor = left + width / 2
        elif item.alignment == TextAlignment.right:
            anchor = left + width
        else:
            anchor = left
        await self.layout.render_multiline(
            surface,
            document,
            '\n'.join(lines),
            TextRenderOptions(
                text=content,
                font_size=font_size,
                x=anchor,
                y=top - font_size,
                color=color,
                max_width=width,
                align=item.alignment,
                font_name=item.font_name,
            ),
            line_height=item.line_height,
        )

    async def _render_table(
        self,
        document: RenderDocument,
        item: SchemaItem,
        content: str,
        left: float,
        top: float,
        width: float,
        font_size: float,
    ) -> None:
        rows = [split_table_row(row) for row in content.splitlines() if row.strip()]
        if not rows:
            return
        columns = max(len(row) for row in rows)
        column_width = width / columns
        row_height = font_size * (item.line_height or self.layout.line_height) + _CELL_PADDING_PT
        color = parse_hex_color(item.font_color)
        for row_index, row in enumerate(rows):
            row_top = top - row_index * row_height
            for column_index in range(columns):
                cell_left = left + column_index * column_width
                document.surface.draw_rect(
                    x=cell_left,
                    y=row_top - row_height,
                    width=column_width,
                    height=row_height,
                    color=color,
                )
                text = row[column_index] if column_index < len(row) else ''
                if not text:
                    continue
                await self.layout.render_text(
                    document.surface,
                    document,
                    TextRenderOptions(
                        text=text,
                        font_size=font_size,
                        x=cell_left + _CELL_PADDING_PT,
                        y=row_top - font_size,
                        color=color,
                        max_width=column_width - 2 * _CELL_PADDING_PT,
                        font_name=item.font_name,
                    ),
                )


def render_template_sync(renderer: TemplateRenderer, template: Template, data: dict[str, Any] | None = None) -> RenderResult:
    return asyncio.run(renderer.render(template, data))
