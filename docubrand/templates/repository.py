from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from docubrand.errors import TemplateStorageError
from docubrand.storage import read_json, template_path, write_json_atomic
from docubrand.types import Template, TemplateSummary, utcnow

logger = logging.getLogger(__name__)


class TemplateRepository(Protocol):
    def save(self, template: Template) -> Template:
        ...

    def load(self, template_id: str) -> Template | None:
        ...

    def list(self) -> list[TemplateSummary]:
        ...

    def delete(self, template_id: str) -> bool:
        ...

    def search(self, query: str) -> list[TemplateSummary]:
        ...


def _stamped(template: Template) -> Template:
    stored = template.model_copy(deep=True)
    stored.metadata.updated_at = utcnow()
    return stored


def _matches(template: Template, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    haystack = [template.name, template.description, template.category, *template.tags]
    return any(needle in str(value).lower() for value in haystack)


def _summaries(templates: list[Template]) -> list[TemplateSummary]:
    summaries = [TemplateSummary.from_template(template) for template in templates]
    summaries.sort(key=lambda summary: summary.updated_at, reverse=True)
    return summaries


class InMemoryTemplateRepository:
    def __init__(self):
        self._templates: dict[str, Template] = {}
        self._lock = threading.RLock()

    def save(self, template: Template) -> Template:
        stored = _stamped(template)
        with self._lock:
            self._templates[stored.id] = stored
        return stored.model_copy(deep=True)

    def load(self, template_id: str) -> Template | None:
        with self._lock:
            template = self._templates.get(template_id)
        return template.model_copy(deep=True) if template is not None else None

    def list(self) -> list[TemplateSummary]:
        with self._lock:
            templates = list(self._templates.values())
        return _summaries(templates)

    def delete(self, template_id: str) -> bool:
        with self._lock:
            return self._templates.pop(template_id, None) is not None

    def search(self, query: str) -> list[TemplateSummary]:
        with self._lock:
            templates = [template for template in self._templates.values() if _matches(template, query)]
        return _summaries(templates)

    def find_by_category(self, category: str) -> list[TemplateSummary]:
        with self._lock:
            templates = [template for template in self._templates.values() if template.category == category]
        return _summaries(templates)


class FileTemplateRepository:
    """One JSON document per template under ``root``, fronted by an in-memory cache.

    The cache only changes after the file operation has succeeded, so a failed
    write or delete leaves what ``load``/``list`` return untouched.
    """

    def __init__(self, root: Path):
        self.root = root
        self._lock = threading.RLock()
        self._cache: dict[str, Template] | None = None

    def _path(self, template_id: str) -> Path:
        return template_path(self.root, template_id)

    def _ensure_loaded(self) -> dict[str, Template]:
        if self._cache is not None:
            return self._cache
        cache: dict[str, Template] = {}
        if self.root.exists():
            for path in sorted(self.root.glob('*.json')):
                try:
                    template = Template.model_validate(read_json(path))
                except (OSError, ValueError, ValidationError) as exc:
                    logger.warning('Skipping unreadable template file %s: %s', path, exc)
                    continue
                cache[template.id] = template
        self._cache = cache
        logger.info('Loaded %d templates from %s', len(cache), self.root)
        return cache

    def save(self, template: Template) -> Template:
        stored = _stamped(template)
        with self._lock:
            cache = self._ensure_loaded()
            try:
                write_json_atomic(self._path(stored.id), stored.to_json_dict())
            except (OSError, ValueError) as exc:
                raise TemplateStorageError(f'Failed to save template {stored.id}: {exc}') from exc
            cache[stored.id] = stored
        logger.info('Saved template %s', stored.id)
        return stored.model_copy(deep=True)

    def load(self, template_id: str) -> Template | None:
        with self._lock:
            template = self._ensure_loaded().get(template_id)
        return template.model_copy(deep=True) if template is not None else None

    def list(self) -> list[TemplateSummary]:
        with self._lock:
            templates = list(self._ensure_loaded().values())
        return _summaries(templates)

    def delete(self, template_id: str) -> bool:
        with self._lock:
            cache = self._ensure_loaded()
            if template_id not in cache:
                return False
            try:
                self._path(template_id).unlink(missing_ok=True)
            except (OSError, ValueError) as exc:
                raise TemplateStorageError(f'Failed to delete template {template_id}: {exc}') from exc
            del cache[template_id]
        logger.info('Deleted template %s', template_id)
        return True

    def search(self, query: str) -> list[TemplateSummary]:
        with self._lock:
            templates = [template for template in self._ensure_loaded().values() if _matches(template, query)]
        return _summaries(templates)

    def find_by_category(self, category: str) -> list[TemplateSummary]:
        with self._lock:
            templates = [template for template in self._ensure_loaded().values() if template.category == category]
        return _summaries(templates)
