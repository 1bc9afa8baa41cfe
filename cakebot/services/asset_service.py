"""
cakebot.services.asset_service — Random Cake GIFs
==================================================

The artwork host serves an ``index.txt`` listing one GIF filename per
line (blank lines and ``#`` comments are ignored).  The list is fetched
once per process and cached; each throw picks a random entry.
"""

from __future__ import annotations

import asyncio
import logging
import random

import httpx

logger = logging.getLogger(__name__)

INDEX_FILE = "index.txt"


def parse_index(text: str) -> list[str]:
    """Return the usable filenames from an ``index.txt`` body."""
    names = []
    for line in text.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            names.append(line)
    return names


class GifIndex:
    """Lazily loaded, cached list of GIF URLs under *assets_url*.

    Parameters
    ----------
    assets_url:
        Base URL ending in ``/``.
    transport:
        Optional httpx transport (tests pass :class:`httpx.MockTransport`).
    """

    def __init__(
        self,
        assets_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.assets_url = assets_url
        self._transport = transport
        self._rng = rng or random.Random()
        self._names: list[str] | None = None
        self._lock = asyncio.Lock()

    async def _load(self) -> list[str]:
        transport = self._transport or httpx.AsyncHTTPTransport(retries=1)
        async with httpx.AsyncClient(timeout=10, transport=transport) as client:
            resp = await client.get(self.assets_url + INDEX_FILE)
            resp.raise_for_status()
        names = parse_index(resp.text)
        logger.info("Loaded %d GIFs from %s%s", len(names), self.assets_url, INDEX_FILE)
        return names

    async def random_gif(self) -> str | None:
        """Return a random GIF URL, or ``None`` if the index is unavailable.

        A failed fetch is not cached, so the next throw retries.
        """
        async with self._lock:
            if self._names is None:
                try:
                    self._names = await self._load()
                except httpx.HTTPError as exc:
                    logger.warning("Could not load GIF index: %s", exc)
                    return None
        if not self._names:
            return None
        return self.assets_url + self._rng.choice(self._names)
