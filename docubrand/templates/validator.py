from __future__ import annotations

import re
from collections import Counter
from typing import Any, Mapping

from pydantic import ValidationError

from docubrand.templates.binding import resolve_path
from docubrand.types import DataSchema, DataSchemaProperty, SchemaItem, Template, ValidationResult

REQUIRED_ITEM_FIELDS = ('name', 'type', 'position', 'width', 'height')

_PYTHON_TYPES: dict[str, tuple[type, ...]] = {
    'string': (str,),
    'number': (int, float),
    'integer': (int,),
    'boolean': (bool,),
    'array': (list, tuple),
    'object': (dict,),
}


def _json_type_name(value: Any) -> str:
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, int):
        return 'integer'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, (list, tuple)):
        return 'array'
    if isinstance(value, dict):
        return 'object'
    return type(value).__name__


def _type_matches(expected: str, value: Any) -> bool:
    if expected == 'null':
        return value is None
    python_types = _PYTHON_TYPES.get(expected)
    if python_types is None:
        return True
    if isinstance(value, bool) and expected != 'boolean':
        return False
    return isinstance(value, python_types)


def _is_missing(field: str, value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if field == 'position':
        if not isinstance(value, Mapping):
            return True
        return value.get('x') is None or value.get('y') is None
    return False


def _template_parts(template: Template | Mapping[str, Any]) -> tuple[Any, Mapping[str, Any] | None]:
    if isinstance(template, Template):
        pages = [[item.model_dump() for item in page] for page in template.schemas]
        i18n = template.i18n_config.model_dump()
        return pages, i18n
    i18n_raw = template.get('i18nConfig', template.get('i18n_config')) or {}
    if not isinstance(i18n_raw, Mapping):
        return template.get('schemas'), None
    i18n = {
        'default_language': i18n_raw.get('defaultLanguage', i18n_raw.get('default_language')),
        'fallback_language': i18n_raw.get('fallbackLanguage', i18n_raw.get('fallback_language')),
        'languages': i18n_raw.get('languages') or {},
    }
    return template.get('schemas'), i18n


def _rect(item: Mapping[str, Any]) -> tuple[float, float, float, float] | None:
    position = item.get('position')
    try:
        return (
            float(position['x']),
            float(position['y']),
            float(item['width']),
            float(item['height']),
        )
    except (KeyError, TypeError, ValueError):
        return None


def _overlaps(a: tuple[float, float, float, float], b: tuple[float, float, float, float]) -> bool:
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    return not (ax + aw <= bx or bx + bw <= ax or ay + ah <= by or by + bh <= ay)


def validate_template_structure(template: Template | Mapping[str, Any]) -> ValidationResult:
    """Check every item on every page and report all problems in one pass."""
    errors: list[str] = []
    warnings: list[str] = []
    if not isinstance(template, (Template, Mapping)):
        return ValidationResult(valid=False, errors=['Template must be a JSON object'])
    pages, i18n = _template_parts(template)
    if i18n is None:
        errors.append('i18nConfig must be an object')
        i18n = {}

    if not isinstance(pages, list) or not pages:
        errors.append('Template must have at least one page of schemas')
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    for page_index, page in enumerate(pages):
        if not isinstance(page, list):
            errors.append(f'Page {page_index}: schemas must be a list of items')
            continue
        if not page:
            warnings.append(f'Page {page_index} has no items')

        items: list[Mapping[str, Any] | None] = []
        for item_index, item in enumerate(page):
            if not isinstance(item, Mapping):
                errors.append(f'Page {page_index} item {item_index}: schema item must be an object')
                items.append(None)
                continue
            items.append(item)
            for field in REQUIRED_ITEM_FIELDS:
                if _is_missing(field, item.get(field)):
                    errors.append(f'Page {page_index} item {item_index}: missing required field "{field}"')
            for field in ('width', 'height'):
                value = item.get(field)
                if value is not None and not _is_missing(field, value) and not _type_matches('number', value):
                    errors.append(f'Page {page_index} item {item_index}: field "{field}" must be a number')

        names = Counter(item.get('name') for item in items if item is not None and item.get('name'))
        for item_index, item in enumerate(items):
            if item is None:
                continue
            name = item.get('name')
            if name and names[name] > 1:
                errors.append(f'Page {page_index} item {item_index}: duplicate name "{name}"')

        rects = [(index, _rect(item)) for index, item in enumerate(items) if item is not None]
        rects = [(index, rect) for index, rect in rects if rect is not None]
        for offset, (first_index, first) in enumerate(rects):
            for second_index, second in rects[offset + 1 :]:
                if _overlaps(first, second):
                    warnings.append(f'Page {page_index}: items {first_index} and {second_index} overlap')

    if i18n.get('languages'):
        if not i18n.get('default_language'):
            warnings.append('Default language should be specified')
        if not i18n.get('fallback_language'):
            warnings.append('Fallback language should be specified')

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _check_properties(
    data: Mapping[str, Any],
    properties: Mapping[str, DataSchemaProperty],
    required: list[str],
    *,
    prefix: str,
    errors: list[str],
    warnings: list[str],
    nested: bool,
) -> None:
    for key in required:
        if key not in data:
            errors.append(f'Required field "{prefix}{key}" is missing')
    for key, prop in properties.items():
        if key not in data:
            if key not in required and not nested:
                warnings.append(f'Optional field "{prefix}{key}" is not provided')
            continue
        value = data[key]
        if not _type_matches(prop.type, value):
            errors.append(f'Field "{prefix}{key}" expected {prop.type}, got {_json_type_name(value)}')
            continue
        if not nested and prop.type == 'object' and prop.properties and isinstance(value, Mapping):
            _check_properties(
                value,
                prop.properties,
                list(prop.required or []),
                prefix=f'{prefix}{key}.',
                errors=errors,
                warnings=warnings,
                nested=True,
            )


def _check_item_rules(item: SchemaItem, data: Mapping[str, Any], errors: list[str]) -> None:
    if item.data_binding is None or item.validation is None:
        return
    rules = item.validation
    path = item.data_binding.path
    value = resolve_path(data, path)
    if value is None:
        if rules.required:
            errors.append(f'Required data field is missing: {path}')
        return
    if not isinstance(value, str):
        return
    if rules.min_length is not None and len(value) < rules.min_length:
        errors.append(f'Data field {path} is shorter than {rules.min_length} characters')
    if rules.max_length is not None and len(value) > rules.max_length:
        errors.append(f'Data field {path} is longer than {rules.max_length} characters')
    if rules.pattern:
        try:
            matched = re.fullmatch(rules.pattern, value)
        except re.error as exc:
            errors.append(f'Invalid pattern {rules.pattern} for data field {path}: {exc}')
            return
        if matched is None:
            errors.append(f'Data field {path} does not match pattern {rules.pattern}')


def validate_data(template: Template | Mapping[str, Any], data: Any) -> ValidationResult:
    """Check ``data`` against the template's declared shape, one level of nesting deep."""
    errors: list[str] = []
    warnings: list[str] = []

    if isinstance(template, Template):
        schema = template.data_schema
        items = [item for page in template.schemas for item in page]
    elif not isinstance(template, Mapping):
        return ValidationResult(valid=False, errors=['Template must be a JSON object'])
    else:
        try:
            schema = DataSchema.model_validate(template.get('dataSchema', template.get('data_schema')) or {})
        except ValidationError as exc:
            return ValidationResult(valid=False, errors=[f'Invalid data schema: {exc.error_count()} error(s)'])
        items = []

    if not isinstance(data, Mapping):
        return ValidationResult(valid=False, errors=['Data object is required'], warnings=warnings)

    _check_properties(
        data,
        schema.properties,
        list(schema.required),
        prefix='',
        errors=errors,
        warnings=warnings,
        nested=False,
    )
    for item in items:
        _check_item_rules(item, data, errors)

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
