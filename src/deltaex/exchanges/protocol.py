"""Protocol definition for the HTTP transport the adapter is built on."""

from __future__ import annotations

from typing import Protocol


class HttpResponse:
    """Status code and raw text of an HTTP response."""

    def __init__(self, status: int, text: str):
        self.status = status
        self.text = text


class HttpTransport(Protocol):
    """Capability the Delta client needs from an HTTP stack.

    Implementations own connection pooling, proxies and timeouts. Rate
    limiting and retries also belong here, never to the adapter.
    """

    async def fetch(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: str | None = None,
    ) -> HttpResponse:
        """Send a request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            url: Absolute URL including any query string
            headers: Request headers
            body: Pre-encoded request body

        Returns:
            HttpResponse with status and text

        Raises:
            NetworkError: If the request could not be completed
        """
        ...

    async def close(self) -> None:
        """Release pooled connections."""
        ...
