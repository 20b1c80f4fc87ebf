from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

_SAFE_ID_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


def safe_template_id(template_id: str) -> str:
    token = str(template_id or '').strip()
    if not token:
        raise ValueError('template_id is required')
    if not _SAFE_ID_PATTERN.match(token) or token.startswith('.'):
        raise ValueError(f'invalid template_id: {template_id}')
    return token


def template_path(root: Path, template_id: str) -> Path:
    return root / f'{safe_template_id(template_id)}.json'


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding='utf-8')
    tmp.replace(path)


def write_bytes_atomic(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_bytes(content)
    tmp.replace(path)


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding='utf-8'))
