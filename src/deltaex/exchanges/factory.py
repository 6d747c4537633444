"""Build a configured Delta client."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..settings import Settings
from .base import ProxyConfig
from .delta import DeltaClient
from .protocol import HttpTransport

logger = logging.getLogger(__name__)


def create_delta_client(
    api_key: str | None = None,
    api_secret: str | None = None,
    *,
    sandbox: bool = False,
    proxy: dict[str, Any] | None = None,
    transport: HttpTransport | None = None,
    version: str = "v2",
    timeout_s: float = 10.0,
    common_currencies: Mapping[str, str] | None = None,
) -> DeltaClient:
    """Create a Delta client instance.

    Args:
        api_key: API key (private endpoints only)
        api_secret: API secret
        sandbox: Use the testnet environment
        proxy: Proxy configuration (url, username, password)
        transport: HTTP transport to use instead of aiohttp
        version: API version path segment
        timeout_s: Transport timeout in seconds
        common_currencies: Currency alias table (defaults to the built-in one)

    Returns:
        Configured client
    """
    proxy_config = None
    if proxy:
        proxy_config = ProxyConfig(
            url=proxy.get("url"),
            username=proxy.get("username"),
            password=proxy.get("password"),
        )

    return DeltaClient(
        api_key,
        api_secret,
        sandbox=sandbox,
        proxy=proxy_config,
        transport=transport,
        version=version,
        timeout_s=timeout_s,
        common_currencies=common_currencies,
    )


def create_client_from_settings(
    settings: Settings,
    transport: HttpTransport | None = None,
) -> DeltaClient:
    """Create a Delta client from loaded settings."""
    delta = settings.delta

    api_key = api_secret = None
    if delta.credentials:
        api_key = delta.credentials.api_key.get_secret_value()
        if delta.credentials.api_secret is not None:
            api_secret = delta.credentials.api_secret.get_secret_value()
    else:
        logger.info("No delta credentials configured, private endpoints are unavailable")

    proxy = None
    if settings.proxy.enabled and settings.proxy.url:
        proxy = {
            "url": settings.proxy.url,
            "username": settings.proxy.username,
            "password": settings.proxy.password.get_secret_value() if settings.proxy.password else None,
        }

    client = create_delta_client(
        api_key,
        api_secret,
        sandbox=delta.sandbox,
        proxy=proxy,
        transport=transport,
        version=delta.version,
        timeout_s=delta.timeout_s,
        common_currencies=delta.common_currencies,
    )
    logger.info("Initialized delta client (sandbox=%s)", delta.sandbox)
    return client
