from __future__ import annotations

from dataclasses import dataclass

from docubrand.adapters.font_source import ChainFontSource, FontSource, GoogleFontSource, LocalFontSource
from docubrand.config import Settings
from docubrand.fonts.registry import FontRegistry, build_default_registry
from docubrand.fonts.resolver import FontResolver
from docubrand.render.pdf_renderer import TemplateRenderer
from docubrand.render.text_layout import TextLayoutEngine
from docubrand.templates.assembler import TemplateAssembler
from docubrand.templates.builder import LayoutConfig, SchemaBuilder
from docubrand.templates.repository import FileTemplateRepository


@dataclass
class DocuBrandApp:
    settings: Settings
    registry: FontRegistry
    resolver: FontResolver
    assembler: TemplateAssembler
    renderer: TemplateRenderer
    repository: FileTemplateRepository


def build_font_source(settings: Settings) -> FontSource:
    sources: list[FontSource] = [LocalFontSource(settings.font_dir)]
    if settings.enable_remote_fonts:
        sources.append(
            GoogleFontSource(
                settings.google_fonts_css_url,
                timeout_seconds=settings.font_fetch_timeout_seconds,
                cache_dir=settings.resolved_font_cache_dir(),
            )
        )
    return ChainFontSource(sources)


def build_app(settings: Settings, *, font_source: FontSource | None = None) -> DocuBrandApp:
    registry = build_default_registry(font_source or build_font_source(settings))
    resolver = FontResolver(
        registry,
        default_extended_font=settings.default_extended_font,
        fallback_font=settings.fallback_font,
        load_timeout_seconds=settings.font_fetch_timeout_seconds,
    )
    layout = LayoutConfig(
        page_width=settings.page_width_mm,
        page_height=settings.page_height_mm,
        margin=settings.page_margin_mm,
        content_width=settings.content_width_mm,
        item_spacing=settings.item_spacing_mm,
    )
    assembler = TemplateAssembler(
        SchemaBuilder(layout),
        default_author=settings.default_author,
        language=settings.default_language,
        version=settings.template_version,
    )
    renderer = TemplateRenderer(TextLayoutEngine(resolver, line_height=settings.line_height_multiplier))
    return DocuBrandApp(
        settings=settings,
        registry=registry,
        resolver=resolver,
        assembler=assembler,
        renderer=renderer,
        repository=FileTemplateRepository(settings.templates_dir()),
    )
