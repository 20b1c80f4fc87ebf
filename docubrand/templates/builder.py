from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

from docubrand.types import (
    QUESTION_SCHEMA_TYPES,
    AnalysisResult,
    DataBinding,
    EducationalMeta,
    ExtractedQuestion,
    Position,
    SchemaItem,
    SchemaType,
    Section,
    SemanticRole,
    TextAlignment,
)

_GROUP_OPENING_ROLES = frozenset({SemanticRole.header.value, SemanticRole.title.value})
_SLUG_PATTERN = re.compile(r'[^a-z0-9]+')

_CHARS_PER_LINE = 80
_LINE_HEIGHT_MM = 6.0
_MIN_ITEM_HEIGHT_MM = 12.0
_OPTION_HEIGHT_MM = 6.0

_FONT_SIZE_BY_ROLE = {
    SemanticRole.header.value: 14.0,
    SemanticRole.title.value: 16.0,
    SemanticRole.instruction.value: 10.0,
}
_BODY_FONT_SIZE = 11.0
_QUESTION_FONT_SIZE = 12.0


@dataclass(frozen=True)
class LayoutConfig:
    page_width: float = 210.0
    page_height: float = 297.0
    margin: float = 20.0
    content_width: float = 170.0
    item_spacing: float = 5.0


@dataclass
class SectionBlock:
    """One logical text block: a header with its body, or a standalone section."""

    label: str
    role: str
    content: str
    sources: list[Section] = field(default_factory=list)


def _slug(value: str) -> str:
    return _SLUG_PATTERN.sub('_', value.lower()).strip('_') or 'section'


def estimate_text_height(content: str) -> float:
    lines = 0
    for line in str(content or '').split('\n'):
        lines += max(1, math.ceil(len(line) / _CHARS_PER_LINE))
    return max(_MIN_ITEM_HEIGHT_MM, lines * _LINE_HEIGHT_MM)


def group_sections(sections: list[Section]) -> list[SectionBlock]:
    """Merge each header/title with the content sections that directly follow it."""
    blocks: list[SectionBlock] = []
    current: SectionBlock | None = None

    def close_current() -> None:
        nonlocal current
        if current is not None and current.content:
            current.content = f'{current.label}\n{current.content}'
            blocks.append(current)
        current = None

    for section in sections:
        role = section.semantic_role or section.type or SemanticRole.other.value
        if role in _GROUP_OPENING_ROLES:
            close_current()
            current = SectionBlock(label=section.content, role=role, content='', sources=[section])
        elif current is not None and role == SemanticRole.content.value:
            if section.content:
                current.content = f'{current.content}\n{section.content}' if current.content else section.content
            current.sources.append(section)
        else:
            close_current()
            blocks.append(SectionBlock(label=section.label, role=role, content=section.content, sources=[section]))

    close_current()
    return blocks


class SchemaBuilder:
    def __init__(self, layout: LayoutConfig | None = None):
        self.layout = layout or LayoutConfig()

    def build_schemas(self, analysis: AnalysisResult) -> list[list[SchemaItem]]:
        items: list[SchemaItem] = []
        for index, block in enumerate(group_sections(analysis.document_structure.sections)):
            items.append(self._item_from_block(block, index))
        for index, question in enumerate(analysis.extracted_questions):
            items.append(self._item_from_question(question, index))
        return self._paginate(items)

    def _item_from_block(self, block: SectionBlock, index: int) -> SchemaItem:
        is_instruction = block.role == SemanticRole.instruction.value
        return SchemaItem(
            name=f'section_{index}_{_slug(block.role)}',
            type=SchemaType.instruction_box.value if is_instruction else SchemaType.text.value,
            position=Position(x=self.layout.margin, y=0.0),
            width=self.layout.content_width,
            height=estimate_text_height(block.content),
            content=block.content,
            label=block.label,
            font_size=_FONT_SIZE_BY_ROLE.get(block.role, _BODY_FONT_SIZE),
            alignment=TextAlignment.left,
            data_binding=DataBinding(path=f'sections[{index}].content', fallback=block.content),
        )

    def _item_from_question(self, question: ExtractedQuestion, index: int) -> SchemaItem:
        schema_type = question.type if question.type in QUESTION_SCHEMA_TYPES else SchemaType.text.value
        options = list(question.options or [])
        return SchemaItem(
            name=f'question_{index}_{_slug(question.type)}',
            type=schema_type,
            position=Position(x=self.layout.margin, y=0.0),
            width=self.layout.content_width,
            height=estimate_text_height(question.content) + len(options) * _OPTION_HEIGHT_MM,
            content=question.content,
            question=question.content,
            number=question.number or str(index + 1),
            options=options or None,
            font_size=_QUESTION_FONT_SIZE,
            data_binding=DataBinding(path=f'questions[{index}].content', fallback=question.content),
            educational=EducationalMeta(
                question_type=question.type,
                correct_answer=question.correct_answer,
                points=question.points if question.points is not None else 1,
                difficulty=question.difficulty or infer_question_difficulty(question),
            ),
        )

    def _paginate(self, items: list[SchemaItem]) -> list[list[SchemaItem]]:
        pages: list[list[SchemaItem]] = [[]]
        bottom = self.layout.page_height - self.layout.margin
        cursor = self.layout.margin
        for item in items:
            height = float(item.height or 0)
            if pages[-1] and cursor + height > bottom:
                pages.append([])
                cursor = self.layout.margin
            item.position = Position(x=self.layout.margin, y=cursor)
            pages[-1].append(item)
            cursor += height + self.layout.item_spacing
        return pages


def infer_question_difficulty(question: ExtractedQuestion) -> str:
    confidence = question.confidence or 0.5
    length = len(question.content)
    if confidence < 0.7 or length > 150:
        return 'hard'
    if confidence < 0.85 or length > 80:
        return 'medium'
    return 'easy'
