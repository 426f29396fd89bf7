"""
HTTP fetcher for the discovery pipeline and the catalog client. Wraps
aiohttp with a per-request deadline and turns every failure mode
(timeout, connection error, non-2xx, undecodable body) into
TransientFetchError.
"""
from __future__ import annotations
import aiohttp
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional

from .base import FetchResult, TransientFetchError

log = logging.getLogger("marktguru.auth.fetcher")

DEFAULT_TIMEOUT = 15


class Fetcher:
    def __init__(self, *, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    @asynccontextmanager
    async def _get(
        self,
        url: str,
        headers: Mapping[str, str] | None,
        params: Mapping[str, Any] | None,
    ) -> AsyncIterator[aiohttp.ClientResponse]:
        session = await self._get_session()
        try:
            async with session.get(url, headers=dict(headers or {}), params=params) as resp:
                yield resp
        except TransientFetchError:
            raise
        except asyncio.TimeoutError as e:
            raise TransientFetchError(f"Timed out fetching {url}", url=url) from e
        except aiohttp.ClientError as e:
            raise TransientFetchError(f"Request to {url} failed: {e}", url=url) from e
        except ValueError as e:
            # bad JSON or an unknown charset
            raise TransientFetchError(f"Could not decode response from {url}: {e}", url=url) from e

    # ── convenience methods ──────────────────

    async def fetch(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> FetchResult:
        """GET `url` and return its decoded body. Raises TransientFetchError."""
        async with self._get(url, headers, params) as resp:
            _raise_for_status(resp, url)
            return FetchResult(url=url, text=await resp.text(errors="replace"))

    async def get_text(self, url: str, *, headers: Mapping[str, str] | None = None) -> str:
        return (await self.fetch(url, headers=headers)).text

    async def get_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        async with self._get(url, headers, params) as resp:
            _raise_for_status(resp, url)
            return await resp.json(content_type=None)

    async def get_status(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> int:
        """GET `url` and return the status code without checking it."""
        async with self._get(url, headers, params) as resp:
            return resp.status


def _raise_for_status(resp: aiohttp.ClientResponse, url: str):
    if not 200 <= resp.status < 300:
        reason = f" {resp.reason}" if resp.reason else ""
        raise TransientFetchError(f"HTTP {resp.status}{reason} for {url}", url=url, status=resp.status)
