"""Asynchronous transports used by the request models.

A transport performs exactly one HTTP call per invocation and reports the
outcome as a :class:`~apicache.models.TransportResponse` (success) or a
:class:`~apicache.exceptions.TransportError` (failure). Retry, backoff and
timeouts belong to the transport, never to the cache layer.

:class:`HttpxTransport` is the default implementation, wrapping
:class:`httpx.AsyncClient`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from apicache.exceptions import TransportError
from apicache.models import HTTPMethod, TransportResponse
from apicache.output import debug


class Transport(ABC):
    """Interface for the live-call collaborator of :class:`~apicache.orchestrator.ApiModel`."""

    @abstractmethod
    async def call(
        self,
        method: HTTPMethod,
        url: str,
        body: Optional[Any] = None,
    ) -> TransportResponse:
        """Send one request.

        Args:
            method: HTTP verb.
            url: Absolute URL, query string included for GET requests.
            body: JSON-serialisable body for non-GET requests.

        Returns:
            The response payload and status.

        Raises:
            TransportError: On an HTTP error status or a network failure.
        """

    async def aclose(self) -> None:
        """Release transport resources. The default implementation does nothing."""

    async def __aenter__(self) -> Transport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


class HttpxTransport(Transport):
    """:class:`Transport` backed by :class:`httpx.AsyncClient`.

    Responses with a status below 400 are successes. Anything else, and any
    :class:`httpx.HTTPError` raised while sending (connection, timeout,
    protocol or redirect failures), raises :class:`TransportError`; those
    carry status ``0``.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        client: Pre-built client to use instead of creating one (handy for
            :class:`httpx.MockTransport` in tests). A supplied client is not
            closed by :meth:`aclose`.

    Example::

        async with HttpxTransport(timeout=10) as transport:
            response = await transport.call(HTTPMethod.GET, "https://api.example.com/users")
    """

    def __init__(
        self,
        timeout: float = 30,
        verify_ssl: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._owns_client = client is None
        self._client: Optional[httpx.AsyncClient] = client

    async def call(
        self,
        method: HTTPMethod,
        url: str,
        body: Optional[Any] = None,
    ) -> TransportResponse:
        client = self._get_client()
        verb = HTTPMethod(method).value
        kwargs: dict[str, Any] = {"headers": {"Accept": "application/json"}}
        if body is not None and verb != HTTPMethod.GET.value:
            kwargs["json"] = body

        debug(f"{verb} {url}")
        try:
            response = await client.request(verb, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"Connection failed: {exc}", data=str(exc), status=0) from exc

        data = _extract_data(response)
        if response.status_code >= 400:
            raise TransportError(
                f"HTTP {response.status_code} for {verb} {url}",
                data=data,
                status=response.status_code,
            )
        return TransportResponse(data=data, status=response.status_code)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
            )
        return self._client


def _extract_data(response: httpx.Response) -> Any:
    """Decode the body as JSON, falling back to text; ``None`` when empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
