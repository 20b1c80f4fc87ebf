"""Vietnamese glyph detection and ASCII transliteration."""

from __future__ import annotations

import re

_BASE_LETTER_GROUPS: dict[str, str] = {
    'a': 'àáạảãâầấậẩẫăằắặẳẵ',
    'e': 'èéẹẻẽêềếệểễ',
    'i': 'ìíịỉĩ',
    'o': 'òóọỏõôồốộổỗơờớợởỡ',
    'u': 'ùúụủũưừứựửữ',
    'y': 'ỳýỵỷỹ',
    'd': 'đ',
}

_TRANSLITERATION: dict[str, str] = {}
for _base, _letters in _BASE_LETTER_GROUPS.items():
    for _letter in _letters:
        _TRANSLITERATION[_letter] = _base
        _TRANSLITERATION[_letter.upper()] = _base.upper()

EXTENDED_GLYPHS = frozenset(_TRANSLITERATION)

_EXTENDED_PATTERN = re.compile('[' + ''.join(sorted(EXTENDED_GLYPHS)) + ']')
_NON_PRINTABLE_ASCII = re.compile(r'[^\x20-\x7E]')
_TRANSLATE_TABLE = str.maketrans(_TRANSLITERATION)

ELLIPSIS = '...'


def requires_extended_glyphs(text: str) -> bool:
    return _EXTENDED_PATTERN.search(str(text or '')) is not None


def to_ascii(text: str) -> str:
    return _NON_PRINTABLE_ASCII.sub('', str(text or '').translate(_TRANSLATE_TABLE))
