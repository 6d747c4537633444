"""aiohttp transport and proxy configuration."""

from __future__ import annotations

import asyncio
import logging

import aiohttp

from .errors import NetworkError
from .protocol import HttpResponse

logger = logging.getLogger(__name__)


class ProxyConfig:
    """HTTP proxy configuration."""

    def __init__(self, url: str | None = None, username: str | None = None, password: str | None = None):
        self.url = url
        self.username = username
        self.password = password

    @property
    def proxy_url(self) -> str | None:
        if not self.url:
            return None
        if self.username and self.password:
            protocol = self.url.split("://")[0] if "://" in self.url else "http"
            rest = self.url.split("://")[1] if "://" in self.url else self.url
            return f"{protocol}://{self.username}:{self.password}@{rest}"
        return self.url


class AiohttpTransport:
    """Default HttpTransport backed by a lazily created aiohttp session."""

    def __init__(
        self,
        *,
        proxy: ProxyConfig | None = None,
        timeout_s: float = 10.0,
        user_agent: str = "deltaex/1.0",
    ):
        self.proxy = proxy or ProxyConfig()
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self.session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            connector = aiohttp.TCPConnector()
            self.session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout_s),
            )
        return self.session

    async def fetch(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> HttpResponse:
        session = await self._ensure_session()
        request_headers = {"User-Agent": self.user_agent}
        request_headers.update(headers or {})

        try:
            async with session.request(
                method,
                url,
                data=body,
                headers=request_headers,
                proxy=self.proxy.proxy_url,
            ) as resp:
                text = await resp.text()
                return HttpResponse(resp.status, text)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("%s %s failed: %s", method, url.split("?")[0], e)
            raise NetworkError(f"delta {method} {url} failed: {e}") from e

    async def close(self) -> None:
        """Close connections."""
        if self.session:
            await self.session.close()
            self.session = None
