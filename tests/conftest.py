"""Shared fixtures for the template and rendering tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from docubrand.errors import FontUnavailableError
from docubrand.fonts.registry import FontDescriptor, FontRegistry, standard_font_loader
from docubrand.fonts.resolver import FontResolver
from docubrand.render.document import BLACK, Color, EmbeddedFont, RenderDocument
from docubrand.render.text_layout import TextLayoutEngine
from docubrand.templates.assembler import TemplateAssembler
from docubrand.templates.builder import SchemaBuilder


@dataclass
class DrawCall:
    text: str
    x: float
    y: float
    font: EmbeddedFont
    size: float
    color: Color


@dataclass
class FakeSurface:
    """Records draw calls instead of writing to a canvas."""

    calls: list[DrawCall] = field(default_factory=list)

    def draw_text(self, text, *, x, y, font, size, color=BLACK):
        self.calls.append(DrawCall(text=text, x=x, y=y, font=font, size=size, color=color))

    @property
    def texts(self) -> list[str]:
        return [call.text for call in self.calls]


class UnavailableFontSource:
    def __init__(self):
        self.requests: list[str] = []

    async def fetch(self, family: str) -> bytes:
        self.requests.append(family)
        raise FontUnavailableError(family, 'offline')


class CountingLoader:
    """Loader that embeds Helvetica metrics under an extended-coverage flag."""

    def __init__(self, *, delay: float = 0.0, fail: bool = False):
        self.calls = 0
        self.delay = delay
        self.fail = fail

    async def __call__(self, document: RenderDocument) -> EmbeddedFont:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise OSError('font bytes missing')
        font = EmbeddedFont(name='Helvetica', source='test', supports_extended=True)
        document.fonts['test'] = font
        return font


def make_registry(**loaders) -> FontRegistry:
    """Two safe fallbacks plus one extended font per keyword loader."""
    registry = FontRegistry(
        [
            FontDescriptor('helvetica', 'Helvetica', False, standard_font_loader('helvetica'), fallback=True),
            FontDescriptor('times', 'Times New Roman', False, standard_font_loader('times'), fallback=True),
        ]
    )
    for name, loader in loaders.items():
        key = name.replace('_', '-')
        registry.register(FontDescriptor(key, key.title(), True, loader))
    return registry.freeze()


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def document() -> RenderDocument:
    return RenderDocument()


@pytest.fixture
def unavailable_source() -> UnavailableFontSource:
    return UnavailableFontSource()


@pytest.fixture
def offline_engine() -> TextLayoutEngine:
    registry = make_registry(noto_sans=CountingLoader(fail=True), inter=CountingLoader(fail=True))
    resolver = FontResolver(registry, default_extended_font='noto-sans', fallback_font='helvetica')
    return TextLayoutEngine(resolver)


@pytest.fixture
def assembler() -> TemplateAssembler:
    return TemplateAssembler(SchemaBuilder())


@pytest.fixture
def math_quiz_analysis() -> dict:
    return {
        'documentStructure': {
            'type': 'quiz',
            'subject': 'Mathematics',
            'difficulty': 'easy',
            'confidence': 0.92,
            'sections': [
                {
                    'id': 's1',
                    'semanticRole': 'header',
                    'content': 'Math Quiz',
                    'position': {'page': 1, 'x': 0, 'y': 0, 'width': 100, 'height': 10},
                    'confidence': 0.95,
                },
                {
                    'id': 's2',
                    'semanticRole': 'content',
                    'content': 'Answer all questions',
                    'position': {'page': 1, 'x': 0, 'y': 12, 'width': 100, 'height': 10},
                    'confidence': 0.9,
                },
            ],
        },
        'extractedQuestions': [
            {
                'id': 'q1',
                'number': '1',
                'content': 'What is 2 + 2?',
                'type': 'multiple_choice',
                'options': ['3', '4', '5'],
                'correctAnswer': '4',
                'confidence': 0.9,
            }
        ],
        'extractedContent': {
            'title': 'Math Quiz',
            'instructions': ['Answer all questions', 'Show your work'],
        },
    }
