from __future__ import annotations

import asyncio
import logging
import weakref

from docubrand.fonts.glyphs import requires_extended_glyphs
from docubrand.fonts.registry import FontRegistry
from docubrand.render.document import EmbeddedFont, RenderDocument

logger = logging.getLogger(__name__)


class FontResolver:
    """Embeds each font at most once per document, substituting the fallback on failure."""

    def __init__(
        self,
        registry: FontRegistry,
        *,
        default_extended_font: str = 'inter',
        fallback_font: str = 'helvetica',
        load_timeout_seconds: float | None = None,
    ):
        self.registry = registry
        self.default_extended_font = default_extended_font
        self.fallback_font = fallback_font
        self.load_timeout_seconds = load_timeout_seconds
        self._cache: weakref.WeakKeyDictionary[RenderDocument, dict[str, asyncio.Task[EmbeddedFont]]] = (
            weakref.WeakKeyDictionary()
        )

    def resolve_font_name(self, text: str, preferred_name: str | None = None) -> str:
        if requires_extended_glyphs(text):
            if preferred_name:
                descriptor = self.registry.get(preferred_name)
                if descriptor is not None and descriptor.supports_extended:
                    return descriptor.name
            return self.default_extended_font
        return preferred_name or self.fallback_font

    async def embed(self, document: RenderDocument, font_name: str) -> EmbeddedFont:
        key = str(font_name or '').strip().lower() or self.fallback_font
        per_document = self._cache.setdefault(document, {})
        task = per_document.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(document, key))
            per_document[key] = task
        return await asyncio.shield(task)

    def cached_fonts(self, document: RenderDocument) -> list[str]:
        return sorted(self._cache.get(document, {}))

    async def _load(self, document: RenderDocument, key: str) -> EmbeddedFont:
        descriptor = self.registry.get(key)
        try:
            if descriptor is None:
                raise LookupError(f'Font not found: {key}')
            if self.load_timeout_seconds is not None:
                return await asyncio.wait_for(descriptor.loader(document), timeout=self.load_timeout_seconds)
            return await descriptor.loader(document)
        except Exception as exc:
            logger.warning(
                'Failed to embed font %s in document %s, using %s instead: %s',
                key,
                document.id,
                self.fallback_font,
                exc if str(exc) else type(exc).__name__,
            )
            return document.embed_standard_font(self.fallback_font, key=key, substituted=True)
