from __future__ import annotations

import json
from collections import Counter
from typing import Any

from pydantic import ValidationError

from docubrand.errors import TemplateImportError, TemplateNotFoundError
from docubrand.templates.repository import TemplateRepository
from docubrand.templates.validator import validate_template_structure
from docubrand.types import Template, new_template_id, utcnow


def duplicate_template(repository: TemplateRepository, template_id: str, new_name: str) -> Template:
    original = repository.load(template_id)
    if original is None:
        raise TemplateNotFoundError(template_id)
    now = utcnow()
    duplicated = original.model_copy(deep=True)
    duplicated.id = new_template_id()
    duplicated.name = new_name
    duplicated.version = '1.0.0'
    duplicated.metadata.created_at = now
    duplicated.metadata.updated_at = now
    duplicated.metadata.version = '1.0.0'
    return repository.save(duplicated)


def export_template(repository: TemplateRepository, template_id: str) -> str:
    template = repository.load(template_id)
    if template is None:
        raise TemplateNotFoundError(template_id)
    return json.dumps(template.to_json_dict(), ensure_ascii=False, indent=2)


def import_template(repository: TemplateRepository, payload: str | bytes | dict[str, Any]) -> Template:
    """Validate an exported template document and store it under a fresh id."""
    try:
        document = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
    except json.JSONDecodeError as exc:
        raise TemplateImportError(f'Failed to import template: invalid JSON ({exc.msg})') from exc
    if not isinstance(document, dict):
        raise TemplateImportError('Failed to import template: expected a JSON object')

    validation = validate_template_structure(document)
    if not validation.valid:
        raise TemplateImportError(
            'Failed to import template: ' + ', '.join(validation.errors),
            validation.errors,
        )
    try:
        template = Template.model_validate(document)
    except ValidationError as exc:
        raise TemplateImportError(f'Failed to import template: {exc.error_count()} invalid field(s)') from exc

    template.id = new_template_id()
    return repository.save(template)


def library_stats(repository: TemplateRepository) -> dict[str, Any]:
    summaries = repository.list()
    by_category = Counter(summary.category for summary in summaries)
    return {
        'total': len(summaries),
        'byCategory': dict(sorted(by_category.items())),
        'totalItems': sum(summary.item_count for summary in summaries),
    }
