"""Response classification, error mapping and JSON decoding.

Successful (2xx) responses are decoded as JSON into plain Python values.
Everything else becomes a RouterOSHTTPError subclass chosen by status code
and is never decoded.
"""

import json
import logging
from typing import Any

import httpx

from routeros_rest.exceptions import (
    RouterOSAuthenticationError,
    RouterOSAuthorizationError,
    RouterOSClientError,
    RouterOSDecodeError,
    RouterOSHTTPError,
    RouterOSNotFoundError,
    RouterOSResponseError,
    RouterOSServerError,
)

logger = logging.getLogger(__name__)

# Longest body excerpt kept in exception messages
MAX_BODY_IN_MESSAGE = 2048

# Statuses that carry no body by definition
NO_CONTENT_STATUSES = frozenset({204, 205})


def _truncate(text: str, limit: int = MAX_BODY_IN_MESSAGE) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "...(truncated)"


def is_success_status(status_code: int) -> bool:
    """200-299 inclusive is success."""
    return 200 <= status_code <= 299


async def close_response(response: httpx.Response) -> None:
    """Close a response body, logging (never raising) close failures.

    httpx ignores repeated closes, so this is safe on already-closed responses.
    """
    try:
        await response.aclose()
    except (httpx.HTTPError, OSError) as e:
        logger.warning("Failed to close response body: %s", e)


def http_error_for_status(
    message: str, status_code: int, reason: str, response_body: str
) -> RouterOSHTTPError:
    """Map a status code to the matching RouterOSHTTPError subclass."""
    if status_code == 401:
        return RouterOSAuthenticationError(message, status_code, reason, response_body)
    elif status_code == 403:
        return RouterOSAuthorizationError(message, status_code, reason, response_body)
    elif status_code == 404:
        return RouterOSNotFoundError(message, status_code, reason, response_body)
    elif 400 <= status_code < 500:
        return RouterOSClientError(message, status_code, reason, response_body)
    elif 500 <= status_code < 600:
        return RouterOSServerError(message, status_code, reason, response_body)
    return RouterOSHTTPError(message, status_code, reason, response_body)


async def build_http_error(response: httpx.Response | None) -> RouterOSHTTPError:
    """Read an error response and turn it into an exception.

    The body is read in full and closed. A read failure is logged and the
    error is built with an empty body instead.

    Args:
        response: Non-2xx response

    Returns:
        RouterOSHTTPError (or subclass) with message
        "HTTP error: <code> <reason>, Response body: <body>"

    Raises:
        RouterOSResponseError: If response is None or has no body stream
    """
    if response is None:
        raise RouterOSResponseError("nil HTTP response")

    if getattr(response, "stream", None) is None:
        raise RouterOSResponseError("nil HTTP response body")

    body = ""
    try:
        await response.aread()
        body = response.text
    except (httpx.HTTPError, httpx.StreamError, OSError) as e:
        logger.warning(
            "Failed to read error response body: %s",
            e,
            extra={"status_code": response.status_code},
        )
    finally:
        await close_response(response)

    status_text = f"{response.status_code} {response.reason_phrase}".strip()
    message = f"HTTP error: {status_text}, Response body: {_truncate(body)}"
    return http_error_for_status(message, response.status_code, response.reason_phrase, body)


async def decode_json(response: httpx.Response) -> Any:
    """Decode a response body as JSON.

    Closing the response is left to the caller.

    Returns:
        dict, list, scalar, or None for 204/205 responses

    Raises:
        RouterOSDecodeError: If the body cannot be read in full or is not valid JSON
    """
    try:
        raw = await response.aread()
    except (httpx.HTTPError, httpx.StreamError) as e:
        raise RouterOSDecodeError(f"failed to read response body: {e}") from e

    if response.status_code in NO_CONTENT_STATUSES and not raw.strip():
        return None

    try:
        return json.loads(raw)
    except ValueError as e:
        text = raw.decode("utf-8", errors="replace")
        raise RouterOSDecodeError(
            f"invalid JSON response: {e}", response_body=_truncate(text)
        ) from e
