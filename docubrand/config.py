from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'DocuBrand Template System'

    data_dir: Path = Field(default=Path('./data'))
    log_level: str = Field(
        default='INFO',
        validation_alias=AliasChoices('DOCUBRAND_LOG_LEVEL', 'LOG_LEVEL'),
    )

    # Font sources
    font_dir: Path = Field(default=Path('./assets/fonts'))
    font_cache_dir: Path | None = None
    google_fonts_css_url: str = 'https://fonts.googleapis.com/css2'
    enable_remote_fonts: bool = True
    font_fetch_timeout_seconds: float = 15.0
    default_extended_font: str = 'inter'
    fallback_font: str = 'helvetica'

    # Page layout, millimetres
    page_width_mm: float = 210.0
    page_height_mm: float = 297.0
    page_margin_mm: float = 20.0
    content_width_mm: float = 170.0
    item_spacing_mm: float = 5.0
    line_height_multiplier: float = 1.2

    # Assembler defaults
    default_author: str = 'DocuBrand Template Generator'
    default_language: str = 'en'
    template_version: str = '1.0.0'

    def templates_dir(self) -> Path:
        return self.data_dir / 'templates'

    def resolved_font_cache_dir(self) -> Path:
        return self.font_cache_dir or (self.data_dir / '.cache' / 'fonts')


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.templates_dir().mkdir(parents=True, exist_ok=True)
    settings.resolved_font_cache_dir().mkdir(parents=True, exist_ok=True)
    return settings
