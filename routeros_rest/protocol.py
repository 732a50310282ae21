"""Protocol negotiation for RouterOS REST requests.

Decides whether a device is reached over http or https:
- determine_protocol_for_host: TCP probe of the HTTPS port
- determine_protocol_from_url: prefix inspection, no network I/O
- replace_protocol: builds the plain-HTTP fallback URL
- should_retry_on_tls_failure: the TLS fallback trigger

The probe only checks that something listens on the port. A host that
accepts the TCP connection is treated as HTTPS-capable even if the
handshake would later fail; the transport's one-shot fallback covers that.
"""

import asyncio
import logging
import ssl
from abc import ABC, abstractmethod
from enum import Enum

from routeros_rest.config import get_settings

logger = logging.getLogger(__name__)

# Text markers used only when an error carries no ssl.SSLError in its chain
_TLS_FAILURE_MARKERS = ("handshake failure", "handshake_failure", "wrong_version_number")


class Protocol(str, Enum):
    """URL scheme used to reach a device."""

    HTTP = "http"
    HTTPS = "https"


class Dialer(ABC):
    """Opens TCP connections for the protocol probe.

    Injected into determine_protocol_for_host so tests can run without
    sockets.
    """

    @abstractmethod
    async def connect(self, host: str, port: int, timeout: float) -> asyncio.StreamWriter:
        """Open a connection or raise OSError/TimeoutError."""


class TCPDialer(Dialer):
    """Dialer backed by asyncio.open_connection."""

    async def connect(self, host: str, port: int, timeout: float) -> asyncio.StreamWriter:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout)
        return writer


async def _close_connection(writer: asyncio.StreamWriter) -> None:
    """Close a probe connection, logging (never raising) close failures."""
    try:
        writer.close()
        await writer.wait_closed()
    except OSError as e:
        logger.warning("Failed to close probe connection: %s", e)


async def determine_protocol_for_host(
    host: str,
    *,
    dialer: Dialer | None = None,
    port: int | None = None,
    timeout: float | None = None,
) -> Protocol:
    """Probe host's HTTPS port and pick a protocol.

    Args:
        host: Device hostname or IP (no scheme, no port)
        dialer: Connection opener (default: TCPDialer)
        port: Port to probe (default: settings.probe_port, 443)
        timeout: Connect timeout in seconds (default: settings.probe_timeout_seconds)

    Returns:
        Protocol.HTTPS if the port accepts a connection, else Protocol.HTTP
    """
    settings = get_settings()
    dialer = dialer or TCPDialer()
    port = port if port is not None else settings.probe_port
    timeout = timeout if timeout is not None else settings.probe_timeout_seconds

    try:
        writer = await dialer.connect(host, port, timeout)
    except (OSError, TimeoutError, ValueError) as e:
        # ValueError covers host names that fail IDNA encoding
        logger.debug(
            "Port %s closed on %s, using http: %s",
            port,
            host,
            type(e).__name__,
            extra={"host": host, "protocol": Protocol.HTTP.value},
        )
        return Protocol.HTTP

    await _close_connection(writer)
    logger.debug(
        "Port %s open on %s, using https",
        port,
        host,
        extra={"host": host, "protocol": Protocol.HTTPS.value},
    )
    return Protocol.HTTPS


def determine_protocol_from_url(url: str) -> Protocol:
    """Pick the protocol from a URL (or host string) prefix."""
    if url.startswith(Protocol.HTTPS.value):
        return Protocol.HTTPS
    return Protocol.HTTP


def _protocol_text(protocol: Protocol | str) -> str:
    return protocol.value if isinstance(protocol, Protocol) else protocol


def replace_protocol(url: str, old: Protocol | str, new: Protocol | str) -> str:
    """Replace the first occurrence of old with new in url.

    old and new are usually Protocol members, but any strings work.
    """
    return url.replace(_protocol_text(old), _protocol_text(new), 1)


def _error_chain(error: BaseException):
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def is_tls_handshake_failure(error: BaseException) -> bool:
    """Check whether an error is a failed TLS handshake.

    Looks for an ssl.SSLError in the exception chain. Certificate
    verification failures are not handshake failures: the server does
    speak TLS, it just isn't trusted. Text matching is the fallback for
    errors that carry no ssl exception at all.
    """
    for exc in _error_chain(error):
        if isinstance(exc, ssl.SSLCertVerificationError):
            return False
        if isinstance(exc, ssl.SSLError):
            return True

    text = " ".join(str(exc) for exc in _error_chain(error)).lower()
    return any(marker in text for marker in _TLS_FAILURE_MARKERS)


def should_retry_on_tls_failure(error: BaseException, protocol: Protocol | str) -> bool:
    """True iff the error is a TLS handshake failure on an https attempt."""
    return protocol == Protocol.HTTPS and is_tls_handshake_failure(error)
