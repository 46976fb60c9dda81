from __future__ import annotations

import asyncio
import hashlib
import logging
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional
from urllib.parse import unquote, urlparse

import httpx

from ..errors import SourceLoadError
from ..models import SourceFile

logger = logging.getLogger(__name__)


class SourceLoader:
    """Build :class:`SourceFile` records from local paths or HTTP(S) URLs."""

    def __init__(
        self,
        timeout: float = 20.0,
        retries: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.retries = retries
        self.transport = transport

    async def load(self, source: str | Path) -> SourceFile:
        if isinstance(source, str) and urlparse(source).scheme in ("http", "https"):
            buffer = await self._fetch(source)
            name = PurePosixPath(unquote(urlparse(source).path)).name or "download"
            return self._build(buffer, name, path=None)

        path = Path(source)
        try:
            buffer = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise SourceLoadError(f"Unable to read {path}") from exc
        return self._build(buffer, path.name, path=str(path.parent))

    async def load_many(self, sources: Iterable[str | Path]) -> List[SourceFile]:
        return [await self.load(source) for source in sources]

    async def _fetch(self, url: str) -> bytes:
        last_error: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, follow_redirects=True, transport=self.transport
                ) as client:
                    logger.debug("Downloading image %s (attempt %s)", url, attempt + 1)
                    response = await client.get(url)
                    response.raise_for_status()
                    return response.content
            except httpx.HTTPError as exc:
                logger.warning("Failed to download %s: %s", url, exc)
                last_error = exc
        assert last_error is not None
        raise SourceLoadError(f"Unable to download {url}") from last_error

    @staticmethod
    def _build(buffer: bytes, name: str, path: Optional[str]) -> SourceFile:
        digest = hashlib.sha1(buffer, usedforsecurity=False).hexdigest()
        return SourceFile(buffer=buffer, name=name, hash=digest, path=path)
