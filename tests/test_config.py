"""Tests for configuration management."""

import pytest

from docubrand.app import build_app
from docubrand.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv('LOG_LEVEL', raising=False)
        monkeypatch.delenv('DOCUBRAND_LOG_LEVEL', raising=False)

        settings = Settings(_env_file=None)

        assert settings.log_level == 'INFO'
        assert settings.default_extended_font == 'inter'
        assert settings.fallback_font == 'helvetica'
        assert settings.line_height_multiplier == 1.2
        assert settings.content_width_mm == 170

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv('DOCUBRAND_LOG_LEVEL', 'DEBUG')
        monkeypatch.setenv('DATA_DIR', str(tmp_path))
        monkeypatch.setenv('ENABLE_REMOTE_FONTS', 'false')
        monkeypatch.setenv('DEFAULT_LANGUAGE', 'vi')

        settings = Settings(_env_file=None)

        assert settings.log_level == 'DEBUG'
        assert settings.data_dir == tmp_path
        assert settings.enable_remote_fonts is False
        assert settings.templates_dir() == tmp_path / 'templates'
        assert settings.resolved_font_cache_dir() == tmp_path / '.cache' / 'fonts'

    def test_get_settings_creates_directories(self, monkeypatch, tmp_path):
        monkeypatch.setenv('DATA_DIR', str(tmp_path / 'data'))

        settings = get_settings()

        assert settings is get_settings()
        assert (tmp_path / 'data' / 'templates').is_dir()
        assert (tmp_path / 'data' / '.cache' / 'fonts').is_dir()


def test_build_app_wires_components(monkeypatch, tmp_path, unavailable_source):
    monkeypatch.setenv('DATA_DIR', str(tmp_path))
    monkeypatch.setenv('DEFAULT_LANGUAGE', 'vi')
    monkeypatch.setenv('PAGE_MARGIN_MM', '15')

    app = build_app(Settings(_env_file=None), font_source=unavailable_source)

    assert app.registry.frozen
    assert app.resolver.default_extended_font == 'inter'
    assert app.assembler.language == 'vi'
    assert app.assembler.builder.layout.margin == 15
    assert app.repository.root == tmp_path / 'templates'
    assert app.renderer.layout.resolver is app.resolver
