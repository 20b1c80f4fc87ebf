from __future__ import annotations

import re
from typing import Any

from docubrand.types import SchemaItem

_SEGMENT_PATTERN = re.compile(r'([^.\[\]]+)|\[(\d+)\]')


def parse_path(path: str) -> list[str | int]:
    """Split ``questions[0].options[2]`` into ``['questions', 0, 'options', 2]``."""
    segments: list[str | int] = []
    for key, index in _SEGMENT_PATTERN.findall(str(path or '')):
        segments.append(int(index) if index else key)
    return segments


def resolve_path(data: Any, path: str) -> Any:
    current = data
    for segment in parse_path(path):
        if isinstance(segment, int):
            if not isinstance(current, (list, tuple)) or segment >= len(current):
                return None
            current = current[segment]
        elif isinstance(current, dict):
            if segment not in current:
                return None
            current = current[segment]
        else:
            return None
    return current


def _as_text(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return '\n'.join(str(part) for part in value)
    return str(value)


def bind_item_content(item: SchemaItem, data: dict[str, Any] | None) -> str:
    if item.data_binding is None or data is None:
        return item.content
    value = resolve_path(data, item.data_binding.path)
    if value is not None:
        return _as_text(value)
    if item.data_binding.fallback is not None:
        return item.data_binding.fallback
    return item.content
