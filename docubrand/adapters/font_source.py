from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Iterable, Protocol

import httpx

from docubrand.errors import FontUnavailableError
from docubrand.storage import write_bytes_atomic

logger = logging.getLogger(__name__)

_FONT_URL_PATTERN = re.compile(r'url\((https://fonts\.gstatic\.com/[^)]+\.(?:ttf|woff2|woff))\)')


def _compact_family(family: str) -> str:
    return re.sub(r'\s+', '', str(family or ''))


class FontSource(Protocol):
    async def fetch(self, family: str) -> bytes:
        """Return embeddable bytes for ``family`` or raise FontUnavailableError."""
        ...


class LocalFontSource:
    """Bundled fonts laid out as ``<Family>-Regular.ttf`` under one directory."""

    def __init__(self, font_dir: Path):
        self.font_dir = font_dir

    def candidates(self, family: str) -> list[Path]:
        compact = _compact_family(family)
        return [
            self.font_dir / f'{compact}-Regular.ttf',
            self.font_dir / f'{compact}.ttf',
            self.font_dir / f'{compact}-Regular.woff2',
        ]

    async def fetch(self, family: str) -> bytes:
        for path in self.candidates(family):
            if path.exists() and path.is_file():
                return await asyncio.to_thread(path.read_bytes)
        raise FontUnavailableError(family, f'no bundled file under {self.font_dir}')


class GoogleFontSource:
    """Downloads regular-weight fonts through the Google Fonts CSS2 API."""

    def __init__(
        self,
        css_url: str,
        *,
        timeout_seconds: float = 15.0,
        cache_dir: Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.css_url = css_url
        self.timeout_seconds = timeout_seconds
        self.cache_dir = cache_dir
        self._transport = transport

    def stylesheet_url(self, family: str) -> str:
        family_param = re.sub(r'\s+', '+', str(family or '').strip())
        return f'{self.css_url}?family={family_param}:wght@400&display=swap'

    def _cache_path(self, family: str) -> Path | None:
        if self.cache_dir is None:
            return None
        return self.cache_dir / f'{_compact_family(family)}-Regular.font'

    async def fetch(self, family: str) -> bytes:
        cache_path = self._cache_path(family)
        if cache_path is not None and cache_path.exists():
            return await asyncio.to_thread(cache_path.read_bytes)

        try:
            async with httpx.AsyncClient(
                timeout=max(1.0, float(self.timeout_seconds)),
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                css_response = await client.get(self.stylesheet_url(family))
                css_response.raise_for_status()
                match = _FONT_URL_PATTERN.search(css_response.text)
                if not match:
                    raise FontUnavailableError(family, 'font URL not found in stylesheet')
                font_response = await client.get(match.group(1))
                font_response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FontUnavailableError(family, str(exc) or type(exc).__name__) from exc

        data = font_response.content
        if not data:
            raise FontUnavailableError(family, 'empty font payload')
        if cache_path is not None:
            try:
                await asyncio.to_thread(write_bytes_atomic, cache_path, data)
            except OSError as exc:
                logger.warning('Failed to cache font %s at %s: %s', family, cache_path, exc)
        return data


class ChainFontSource:
    def __init__(self, sources: Iterable[FontSource]):
        self.sources = list(sources)

    async def fetch(self, family: str) -> bytes:
        reasons: list[str] = []
        for source in self.sources:
            try:
                return await source.fetch(family)
            except FontUnavailableError as exc:
                reasons.append(exc.reason)
        raise FontUnavailableError(family, '; '.join(reasons) or 'no font sources configured')
