"""Request validation and construction.

RequestConfig describes one API call. validate_config rejects malformed
URLs and unsupported methods before any client or socket exists;
build_request turns a validated config into an httpx.Request.

Validation and construction are separate so the TLS fallback can build a
second request for a rewritten URL without re-running validation.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import httpx

from routeros_rest.exceptions import RouterOSRequestError, RouterOSValidationError

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"


class HTTPMethod(str, Enum):
    """HTTP methods accepted by the RouterOS REST API."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


_VALID_METHODS = frozenset(m.value for m in HTTPMethod)
_VALID_SCHEMES = frozenset({"http", "https"})


def method_name(method: HTTPMethod | str) -> str:
    """Plain string form of a method (enum member or raw string)."""
    return method.value if isinstance(method, HTTPMethod) else str(method)


@dataclass(frozen=True)
class RequestConfig:
    """One REST call, before transport.

    Attributes:
        url: Full request URL (e.g. "https://192.168.88.1/rest/ip/address")
        method: HTTP method
        payload: Raw JSON body bytes, or None
        username: Basic auth username ("" for none)
        password: Basic auth password ("" for none), never shown in repr
    """

    url: str
    method: HTTPMethod | str
    payload: bytes | None = None
    username: str = ""
    password: str = field(default="", repr=False)

    def with_url(self, url: str) -> "RequestConfig":
        """Return a copy of this config pointing at a different URL."""
        return replace(self, url=url)


def redact_url(url: str) -> str:
    """Strip userinfo from a URL so it is safe for logs and error messages."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if "@" not in parts.netloc:
        return url
    netloc = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit(parts._replace(netloc=netloc))


def is_valid_url(url: str) -> bool:
    """Check that url parses and its scheme is exactly http or https.

    Example:
        is_valid_url("http://example.com")   # True
        is_valid_url("https://example.com")  # True
        is_valid_url("ftp://example.com")    # False
        is_valid_url("invalid_url")          # False
    """
    try:
        parsed = urlsplit(url)
    except (TypeError, ValueError):
        return False
    return parsed.scheme in _VALID_SCHEMES


def is_valid_http_method(method: HTTPMethod | str) -> bool:
    """Check method against GET/POST/PUT/PATCH/DELETE (case-sensitive)."""
    return isinstance(method, str) and method_name(method) in _VALID_METHODS


def validate_config(config: RequestConfig) -> None:
    """Validate URL and method of a request config.

    Raises:
        RouterOSValidationError: If the URL or the HTTP method is invalid
    """
    if not is_valid_url(config.url):
        raise RouterOSValidationError(f"invalid URL: {redact_url(str(config.url))}")

    if not is_valid_http_method(config.method):
        raise RouterOSValidationError(f"invalid HTTP method: {method_name(config.method)}")


def create_request_body(payload: bytes | None) -> httpx.ByteStream | None:
    """Wrap payload bytes as a request body stream.

    Empty or missing payloads produce no body at all, whatever the method.
    """
    if not payload:
        return None
    return httpx.ByteStream(bytes(payload))


def encode_payload(payload: bytes | str | dict[str, Any] | list[Any] | None) -> bytes | None:
    """Normalize a caller payload to JSON bytes.

    Bytes pass through untouched, strings are UTF-8 encoded, and dicts/lists
    are serialized with json.dumps.
    """
    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload).encode("utf-8")


def build_request(
    method: HTTPMethod | str,
    url: str,
    body: httpx.ByteStream | None,
    username: str = "",
    password: str = "",
) -> httpx.Request:
    """Assemble a transport request.

    Args:
        method: HTTP method
        url: Absolute http(s) URL
        body: Body stream from create_request_body, or None
        username: Basic auth username
        password: Basic auth password

    Returns:
        httpx.Request carrying body as its stream, with Content-Type set and
        Basic auth applied only when username or password is non-empty

    Raises:
        RouterOSRequestError: If the URL cannot be parsed or the method is invalid
    """
    try:
        parsed_url = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise RouterOSRequestError(f"error parsing URL {redact_url(str(url))}: {e}") from e

    if parsed_url.scheme not in _VALID_SCHEMES:
        raise RouterOSRequestError(f"error parsing URL {redact_url(url)}: unsupported scheme")

    if not is_valid_http_method(method):
        raise RouterOSRequestError(f"invalid HTTP method: {method_name(method)}")

    headers = {"Content-Type": CONTENT_TYPE_JSON}
    if body is not None:
        # stream= skips httpx's automatic Host and framing headers
        headers["Host"] = parsed_url.netloc.decode("ascii")
        headers["Content-Length"] = str(sum(len(chunk) for chunk in body))

    try:
        request = httpx.Request(method_name(method), parsed_url, headers=headers, stream=body)
    except (httpx.InvalidURL, ValueError, TypeError) as e:
        raise RouterOSRequestError(
            f"request creation failed for {method_name(method)} {redact_url(url)}: {e}"
        ) from e

    if username or password:
        request = next(httpx.BasicAuth(username, password).sync_auth_flow(request))

    return request


def build_request_from_config(config: RequestConfig) -> httpx.Request:
    """Build a fresh request for config (used for the first attempt and the fallback)."""
    return build_request(
        config.method,
        config.url,
        create_request_body(config.payload),
        config.username,
        config.password,
    )
