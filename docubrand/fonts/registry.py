from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

from docubrand.adapters.font_source import FontSource
from docubrand.render.document import EmbeddedFont, RenderDocument

FontLoader = Callable[[RenderDocument], Awaitable[EmbeddedFont]]


@dataclass(frozen=True)
class FontDescriptor:
    name: str
    display_name: str
    supports_extended: bool
    loader: FontLoader
    fallback: bool = False


def standard_font_loader(family: str) -> FontLoader:
    async def load(document: RenderDocument) -> EmbeddedFont:
        return document.embed_standard_font(family)

    return load


def sourced_font_loader(key: str, family: str, source: FontSource) -> FontLoader:
    async def load(document: RenderDocument) -> EmbeddedFont:
        data = await source.fetch(family)
        return document.embed_truetype(key, data, supports_extended=True)

    return load


class FontRegistry:
    """Catalog of named fonts. Frozen once the process has finished setting it up."""

    def __init__(self, descriptors: list[FontDescriptor] | None = None):
        self._fonts: dict[str, FontDescriptor] = {}
        self._frozen = False
        for descriptor in descriptors or []:
            self.register(descriptor)

    def register(self, descriptor: FontDescriptor) -> None:
        if self._frozen:
            raise RuntimeError('font registry is read-only after initialization')
        key = descriptor.name.strip().lower()
        if not key:
            raise ValueError('font descriptor name is required')
        self._fonts[key] = descriptor

    def freeze(self) -> FontRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str | None) -> FontDescriptor | None:
        return self._fonts.get(str(name or '').strip().lower())

    def list_all(self) -> list[FontDescriptor]:
        return list(self._fonts.values())

    def list_extended_coverage(self) -> list[FontDescriptor]:
        return [font for font in self._fonts.values() if font.supports_extended]

    def list_fallbacks(self) -> list[FontDescriptor]:
        return [font for font in self._fonts.values() if font.fallback]


def build_default_registry(source: FontSource) -> FontRegistry:
    registry = FontRegistry(
        [
            FontDescriptor('helvetica', 'Helvetica', False, standard_font_loader('helvetica'), fallback=True),
            FontDescriptor('times', 'Times New Roman', False, standard_font_loader('times'), fallback=True),
            FontDescriptor('inter', 'Inter', True, sourced_font_loader('inter', 'Inter', source)),
            FontDescriptor('roboto', 'Roboto', True, sourced_font_loader('roboto', 'Roboto', source)),
            FontDescriptor('open-sans', 'Open Sans', True, sourced_font_loader('open-sans', 'Open Sans', source)),
            FontDescriptor('noto-sans', 'Noto Sans', True, sourced_font_loader('noto-sans', 'Noto Sans', source)),
        ]
    )
    return registry.freeze()
