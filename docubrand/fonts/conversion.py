from __future__ import annotations

import io
import logging

from fontTools.ttLib import TTFont as FontToolsTTFont

logger = logging.getLogger(__name__)

_WOFF_SIGNATURES = (b'wOFF', b'wOF2')
_TRUETYPE_SIGNATURES = (b'\x00\x01\x00\x00', b'true')
_CFF_SIGNATURE = b'OTTO'


def font_flavor(data: bytes) -> str:
    head = bytes(data[:4])
    if head in _WOFF_SIGNATURES:
        return 'woff2' if head == b'wOF2' else 'woff'
    if head in _TRUETYPE_SIGNATURES:
        return 'truetype'
    if head == _CFF_SIGNATURE:
        return 'cff'
    return 'unknown'


def ensure_truetype(data: bytes) -> bytes:
    """Return TrueType-outline bytes that ReportLab can embed.

    WOFF and WOFF2 payloads are unwrapped with fontTools. CFF/PostScript
    outlines cannot be embedded by ReportLab and raise ``ValueError``.
    """
    flavor = font_flavor(data)
    if flavor == 'truetype':
        return bytes(data)
    if flavor == 'cff':
        raise ValueError('unsupported outlines (CFF/PostScript)')
    if flavor == 'unknown':
        raise ValueError('unrecognised font payload')

    font = FontToolsTTFont(io.BytesIO(data))
    if 'glyf' not in font:
        raise ValueError('unsupported outlines (CFF/PostScript)')
    font.flavor = None
    output = io.BytesIO()
    font.save(output)
    logger.debug('Converted %s font payload to TrueType (%d bytes)', flavor, output.tell())
    return output.getvalue()
