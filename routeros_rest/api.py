"""RouterOS REST verb helpers.

RouterOS CLI verbs map onto HTTP methods:

    print  -> GET     add -> PUT      set -> PATCH
    remove -> DELETE  run -> POST

Every call builds "<proto>://<host>/rest/<command>" and goes through
pipeline.execute. The protocol comes from, in order: an explicit
``protocol`` argument, a scheme prefix on ``host``, or a TCP probe of the
host's HTTPS port.
"""

import logging
from typing import Any

from routeros_rest.exceptions import (
    RouterOSAuthenticationError,
    RouterOSNotFoundError,
)
from routeros_rest.pipeline import execute
from routeros_rest.protocol import (
    Dialer,
    Protocol,
    determine_protocol_for_host,
    determine_protocol_from_url,
)
from routeros_rest.request import HTTPMethod, RequestConfig, encode_payload
from routeros_rest.transport import RestTransport

logger = logging.getLogger(__name__)

Payload = bytes | str | dict[str, Any] | list[Any] | None

AUTH_CHECK_COMMAND = "system/resource"


def split_host(host: str) -> tuple[Protocol | None, str]:
    """Separate an optional scheme prefix from a host string.

    Example:
        split_host("https://10.0.0.1")  # (Protocol.HTTPS, "10.0.0.1")
        split_host("10.0.0.1")          # (None, "10.0.0.1")
    """
    if "://" in host:
        scheme, bare_host = host.split("://", 1)
        if scheme in (Protocol.HTTP.value, Protocol.HTTPS.value):
            return determine_protocol_from_url(host), bare_host.rstrip("/")
    return None, host


def build_rest_url(protocol: Protocol | str, host: str, command: str) -> str:
    """Build the REST URL for a command, e.g. https://10.0.0.1/rest/ip/address."""
    return f"{Protocol(protocol).value}://{host}/rest/{command.lstrip('/')}"


class RouterOSRestClient:
    """Client for one RouterOS device.

    Holds the device address and credentials and shares one RestTransport
    (and so one connection pool) across calls. Credentials are sent with
    every request; there is no login session.

    Example:
        async with RouterOSRestClient("192.168.88.1", "admin", "secret") as client:
            addresses = await client.print("ip/address")
            await client.set("system/identity", {"name": "core-1"})
    """

    def __init__(
        self,
        host: str,
        username: str = "",
        password: str = "",
        *,
        protocol: Protocol | str | None = None,
        verify_ssl: bool | None = None,
        timeout_seconds: float | None = None,
        transport: RestTransport | None = None,
        dialer: Dialer | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            host: Device hostname or IP, optionally prefixed with http:// or https://
            username: RouterOS username
            password: RouterOS password
            protocol: Force http or https and skip the port probe
            verify_ssl: Verify https certificates (default: settings.verify_ssl)
            timeout_seconds: Per-request timeout (default: settings.timeout_seconds)
            transport: Shared transport; the client creates and owns one if omitted
            dialer: Connection opener for the protocol probe
        """
        scheme, bare_host = split_host(host)
        self.host = bare_host
        self.username = username
        self.password = password
        self._protocol = Protocol(protocol) if protocol is not None else scheme
        self._dialer = dialer
        self._owns_transport = transport is None
        self.transport = transport or RestTransport(
            verify_ssl=verify_ssl, timeout_seconds=timeout_seconds
        )

    def __repr__(self) -> str:
        return f"RouterOSRestClient(host={self.host!r}, username={self.username!r})"

    async def resolve_protocol(self) -> Protocol:
        """Return the protocol for this device, probing it on first use."""
        if self._protocol is None:
            self._protocol = await determine_protocol_for_host(self.host, dialer=self._dialer)
            logger.info(
                "Resolved %s to %s",
                self.host,
                self._protocol.value,
                extra={"host": self.host, "protocol": self._protocol.value},
            )
        return self._protocol

    async def url_for(self, command: str) -> str:
        """Build the full REST URL for a command."""
        return build_rest_url(await self.resolve_protocol(), self.host, command)

    async def request(self, method: HTTPMethod, command: str, payload: Payload = None) -> Any:
        """Execute a REST call against this device.

        Returns:
            Decoded JSON value
        """
        config = RequestConfig(
            url=await self.url_for(command),
            method=method,
            payload=encode_payload(payload),
            username=self.username,
            password=self.password,
        )
        return await execute(config, transport=self.transport)

    async def print(self, command: str) -> Any:
        """GET a resource, e.g. ``await client.print("ip/address")``."""
        return await self.request(HTTPMethod.GET, command)

    async def add(self, command: str, payload: Payload = None) -> Any:
        """PUT a new record, e.g. ``await client.add("ip/address", {...})``."""
        return await self.request(HTTPMethod.PUT, command, payload)

    async def set(self, command: str, payload: Payload = None) -> Any:
        """PATCH an existing record, e.g. ``await client.set("ip/address/*1", {...})``."""
        return await self.request(HTTPMethod.PATCH, command, payload)

    async def remove(self, command: str) -> Any:
        """DELETE a record, e.g. ``await client.remove("ip/address/*1")``."""
        return await self.request(HTTPMethod.DELETE, command)

    async def run(self, command: str, payload: Payload = None) -> Any:
        """POST a console command, e.g. ``await client.run("ip/address/print", {...})``."""
        return await self.request(HTTPMethod.POST, command, payload)

    delete = remove
    command = run

    async def auth(self) -> None:
        """Check the credentials against the device.

        Raises:
            RouterOSAuthenticationError: If the device answers 401 or 404
        """
        try:
            await self.print(AUTH_CHECK_COMMAND)
        except (RouterOSAuthenticationError, RouterOSNotFoundError) as e:
            raise RouterOSAuthenticationError(
                "unauthorized", e.status_code, e.reason, e.response_body
            ) from e

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self) -> "RouterOSRestClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


# ========================================
# Module-level helpers
# ========================================


async def print_(
    host: str,
    username: str,
    password: str,
    command: str,
    *,
    protocol: Protocol | str | None = None,
    transport: RestTransport | None = None,
) -> Any:
    """GET ``command`` from host."""
    async with RouterOSRestClient(
        host, username, password, protocol=protocol, transport=transport
    ) as client:
        return await client.print(command)


async def add(
    host: str,
    username: str,
    password: str,
    command: str,
    payload: Payload = None,
    *,
    protocol: Protocol | str | None = None,
    transport: RestTransport | None = None,
) -> Any:
    """PUT payload to ``command`` on host."""
    async with RouterOSRestClient(
        host, username, password, protocol=protocol, transport=transport
    ) as client:
        return await client.add(command, payload)


async def set_(
    host: str,
    username: str,
    password: str,
    command: str,
    payload: Payload = None,
    *,
    protocol: Protocol | str | None = None,
    transport: RestTransport | None = None,
) -> Any:
    """PATCH payload to ``command`` on host."""
    async with RouterOSRestClient(
        host, username, password, protocol=protocol, transport=transport
    ) as client:
        return await client.set(command, payload)


async def remove(
    host: str,
    username: str,
    password: str,
    command: str,
    *,
    protocol: Protocol | str | None = None,
    transport: RestTransport | None = None,
) -> Any:
    """DELETE ``command`` on host."""
    async with RouterOSRestClient(
        host, username, password, protocol=protocol, transport=transport
    ) as client:
        return await client.remove(command)


async def run(
    host: str,
    username: str,
    password: str,
    command: str,
    payload: Payload = None,
    *,
    protocol: Protocol | str | None = None,
    transport: RestTransport | None = None,
) -> Any:
    """POST payload to ``command`` on host."""
    async with RouterOSRestClient(
        host, username, password, protocol=protocol, transport=transport
    ) as client:
        return await client.run(command, payload)


delete = remove
command = run


async def auth_device(
    host: str,
    username: str,
    password: str,
    *,
    protocol: Protocol | str | None = None,
    transport: RestTransport | None = None,
) -> None:
    """Verify credentials against host.

    Raises:
        RouterOSAuthenticationError: If the device rejects the credentials
    """
    async with RouterOSRestClient(
        host, username, password, protocol=protocol, transport=transport
    ) as client:
        await client.auth()
