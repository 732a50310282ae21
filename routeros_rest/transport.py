"""HTTP transport with a one-shot TLS fallback.

RestTransport owns the httpx clients (one per protocol, created lazily and
shared by concurrent calls) and sends requests. When an https request
fails its TLS handshake, the request is rebuilt from its config with an
http URL and sent exactly once more. There is no loop and no backoff.

Design principles:
- Use httpx for async HTTP and its connection pool
- Map httpx transport errors to RouterOSTransportError
- Never log credentials
- Verify certificates unless explicitly told not to
"""

import asyncio
import logging

import httpx

from routeros_rest.config import get_settings
from routeros_rest.exceptions import RouterOSTimeoutError, RouterOSTransportError
from routeros_rest.protocol import (
    Protocol,
    determine_protocol_from_url,
    replace_protocol,
    should_retry_on_tls_failure,
)
from routeros_rest.request import RequestConfig, build_request_from_config, redact_url

logger = logging.getLogger(__name__)


def create_client(
    protocol: Protocol | str,
    *,
    verify_ssl: bool = True,
    timeout: httpx.Timeout | None = None,
    limits: httpx.Limits | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an HTTP client for a protocol.

    Args:
        protocol: http or https
        verify_ssl: Certificate verification for https (ignored for http)
        timeout: Request timeout
        limits: Connection pool limits
        http_transport: Custom httpx transport (tests use httpx.MockTransport)

    Returns:
        Configured httpx.AsyncClient
    """
    kwargs: dict = {"follow_redirects": False}
    if timeout is not None:
        kwargs["timeout"] = timeout
    if limits is not None:
        kwargs["limits"] = limits
    if Protocol(protocol) == Protocol.HTTPS:
        kwargs["verify"] = verify_ssl
    if http_transport is not None:
        kwargs["transport"] = http_transport
    return httpx.AsyncClient(**kwargs)


def map_transport_error(error: httpx.TransportError, request: httpx.Request) -> RouterOSTransportError:
    """Wrap an httpx transport error with method/URL context."""
    url = redact_url(str(request.url))
    message = f"{request.method} {url}: {type(error).__name__}: {error}"
    if isinstance(error, httpx.TimeoutException):
        return RouterOSTimeoutError(f"Request timeout: {message}", request.method, url)
    return RouterOSTransportError(f"Transport error: {message}", request.method, url)


class RestTransport:
    """Sends RouterOS REST requests over pooled httpx clients.

    A single instance may be shared by concurrent calls.

    Example:
        async with RestTransport(verify_ssl=False) as transport:
            result = await execute(config, transport=transport)
    """

    def __init__(
        self,
        *,
        verify_ssl: bool | None = None,
        timeout_seconds: float | None = None,
        tls_fallback_enabled: bool | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Unset arguments fall back to the global settings.

        Args:
            verify_ssl: Verify https certificates
            timeout_seconds: Per-request timeout
            tls_fallback_enabled: Allow the https -> http retry
            http_transport: Custom httpx transport shared by both clients
        """
        settings = get_settings()
        self.verify_ssl = settings.verify_ssl if verify_ssl is None else verify_ssl
        self.tls_fallback_enabled = (
            settings.tls_fallback_enabled if tls_fallback_enabled is None else tls_fallback_enabled
        )
        self.timeout = httpx.Timeout(
            settings.timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.limits = httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
            keepalive_expiry=settings.keepalive_expiry_seconds,
        )
        self._http_transport = http_transport
        self._clients: dict[Protocol, httpx.AsyncClient] = {}
        self._lock = asyncio.Lock()

    async def get_client(self, protocol: Protocol | str) -> httpx.AsyncClient:
        """Get or create the client for a protocol."""
        protocol = Protocol(protocol)
        async with self._lock:
            client = self._clients.get(protocol)
            if client is None:
                client = create_client(
                    protocol,
                    verify_ssl=self.verify_ssl,
                    timeout=self.timeout,
                    limits=self.limits,
                    http_transport=self._http_transport,
                )
                self._clients[protocol] = client
            return client

    async def close(self) -> None:
        """Close all clients and their connections."""
        async with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            await client.aclose()

    async def __aenter__(self) -> "RestTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _send_once(
        self, client: httpx.AsyncClient, request: httpx.Request, attempt: int
    ) -> httpx.Response:
        logger.debug(
            "Sending %s %s",
            request.method,
            redact_url(str(request.url)),
            extra={
                "method": request.method,
                "url": redact_url(str(request.url)),
                "protocol": request.url.scheme,
                "attempt": attempt,
            },
        )
        return await client.send(request, stream=True)

    async def send(
        self, client: httpx.AsyncClient, request: httpx.Request, config: RequestConfig
    ) -> httpx.Response:
        """Send a request, falling back to http once on a TLS handshake failure.

        Args:
            client: Client matching the request's protocol
            request: Request built from config
            config: Original request config, used to rebuild the fallback request

        Returns:
            Open (streaming) response; the caller must close it

        Raises:
            RouterOSTimeoutError: On timeout
            RouterOSTransportError: On any other network failure, including a
                failed fallback attempt
        """
        try:
            return await self._send_once(client, request, attempt=1)
        except httpx.TransportError as e:
            if not (
                self.tls_fallback_enabled and should_retry_on_tls_failure(e, request.url.scheme)
            ):
                raise map_transport_error(e, request) from e
            logger.warning(
                "TLS handshake failed for %s %s, retrying over http",
                request.method,
                redact_url(str(request.url)),
                extra={"method": request.method, "url": redact_url(str(request.url))},
            )

        fallback_config = config.with_url(
            replace_protocol(config.url, Protocol.HTTPS, Protocol.HTTP)
        )
        fallback_request = build_request_from_config(fallback_config)
        fallback_client = await self.get_client(determine_protocol_from_url(fallback_config.url))

        try:
            return await self._send_once(fallback_client, fallback_request, attempt=2)
        except httpx.TransportError as e:
            raise map_transport_error(e, fallback_request) from e
