"""Request signing for the Delta REST API."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable
from urllib.parse import urlencode

from .errors import CredentialsMissing

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([^}]+)\}")

BODY_METHODS = frozenset({"POST", "PUT"})


@dataclass
class SignedRequest:
    """Everything the transport needs to send one request."""

    url: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str | None = None


def generate_signature(secret: str, message: str) -> str:
    """Hex-encoded HMAC-SHA256 of ``message`` keyed by ``secret``."""
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def implode_params(path: str, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Substitute ``{name}`` placeholders and return the leftover query.

    - ("tickers/{symbol}", {"symbol": "BTCUSDT", "x": 1}) -> ("tickers/BTCUSDT", {"x": 1})
    """
    used = set(_PLACEHOLDER.findall(path))
    filled = _PLACEHOLDER.sub(lambda m: str(params[m.group(1)]), path)
    query = {k: v for k, v in params.items() if k not in used}
    return filled, query


class RequestSigner:
    """Builds URLs, bodies and auth headers for public and private calls."""

    def __init__(
        self,
        api_key: str | None,
        api_secret: str | None,
        *,
        version: str = "v2",
        clock: Callable[[], float] = time.time,
    ):
        self.api_key = api_key
        self.api_secret = api_secret or ""
        self.version = version
        self.clock = clock

    def request_path(self, path: str, params: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        filled, query = implode_params(path, params)
        return f"/{self.version}/{filled}", query

    def check_credentials(self) -> None:
        if not self.api_key:
            raise CredentialsMissing("delta requires an api key for private endpoints")

    def auth_string(
        self,
        method: str,
        timestamp: str,
        request_path: str,
        query: dict[str, Any],
    ) -> tuple[str, str, str | None]:
        """Return ``(auth, query_string, body)`` for a private request."""
        auth = method + timestamp + request_path
        query_string = ""
        body = None
        if method in BODY_METHODS:
            body = json.dumps(query, separators=(",", ":"))
            auth += body
        elif query:
            query_string = "?" + urlencode(query)
            auth += query_string
        return auth, query_string, body

    def sign(
        self,
        base_url: str,
        path: str,
        api: str = "public",
        method: str = "GET",
        params: dict[str, Any] | None = None,
        *,
        timestamp: int | None = None,
    ) -> SignedRequest:
        """Build a request for ``path``.

        Args:
            base_url: API root, e.g. https://api.delta.exchange
            path: Endpoint path relative to the version, may hold placeholders
            api: 'public' or 'private'
            method: HTTP method
            params: Path and query/body parameters
            timestamp: Unix seconds to sign with (defaults to the clock)

        Returns:
            SignedRequest with url, headers and body

        Raises:
            CredentialsMissing: Private call without an api key
        """
        method = method.upper()
        request_path, query = self.request_path(path, dict(params or {}))
        url = base_url + request_path

        if api == "public":
            if query:
                url += "?" + urlencode(query)
            return SignedRequest(url=url, method=method)

        self.check_credentials()
        ts = str(int(self.clock()) if timestamp is None else int(timestamp))
        auth, query_string, body = self.auth_string(method, ts, request_path, query)
        url += query_string

        headers = {
            "api-key": self.api_key,
            "timestamp": ts,
            "signature": generate_signature(self.api_secret, auth),
        }
        if body is not None:
            headers["Content-Type"] = "application/json"

        logger.debug("Signed %s %s", method, request_path)
        return SignedRequest(url=url, method=method, headers=headers, body=body)
