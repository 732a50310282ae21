"""Request execution pipeline.

    validate -> protocol -> client -> body -> request -> send (TLS fallback once)
        -> status check -> decode JSON | HTTP error

execute() either returns the decoded JSON value or raises a RouterOSError;
it never does both.
"""

import logging
from typing import Any

from routeros_rest.observability.logging import get_correlation_id
from routeros_rest.protocol import determine_protocol_from_url
from routeros_rest.request import (
    RequestConfig,
    build_request,
    create_request_body,
    method_name,
    redact_url,
    validate_config,
)
from routeros_rest.response import (
    build_http_error,
    close_response,
    decode_json,
    is_success_status,
)
from routeros_rest.transport import RestTransport

logger = logging.getLogger(__name__)


async def _execute_with(config: RequestConfig, transport: RestTransport) -> Any:
    protocol = determine_protocol_from_url(config.url)
    client = await transport.get_client(protocol)

    body = create_request_body(config.payload)
    request = build_request(config.method, config.url, body, config.username, config.password)

    response = await transport.send(client, request, config)
    try:
        if not is_success_status(response.status_code):
            error = await build_http_error(response)
            logger.info(
                "%s %s failed with HTTP %s",
                request.method,
                redact_url(str(response.request.url)),
                response.status_code,
                extra={
                    "method": request.method,
                    "url": redact_url(str(response.request.url)),
                    "status_code": response.status_code,
                },
            )
            raise error

        return await decode_json(response)
    finally:
        await close_response(response)


async def execute(config: RequestConfig, *, transport: RestTransport | None = None) -> Any:
    """Run one REST call.

    Args:
        config: Request to perform
        transport: Shared transport; a one-shot transport is created and
            closed around the call when omitted

    Returns:
        Decoded JSON value (dict, list, scalar or None)

    Raises:
        RouterOSValidationError: Invalid URL or method (no network I/O happens)
        RouterOSRequestError: Request could not be assembled
        RouterOSTransportError: Network/TLS failure (after the optional fallback)
        RouterOSHTTPError: Non-2xx response
        RouterOSDecodeError: 2xx response with an invalid JSON body

    Example:
        config = RequestConfig(
            url="https://192.168.88.1/rest/system/resource",
            method=HTTPMethod.GET,
            username="admin",
            password="secret",
        )
        resource = await execute(config)
    """
    validate_config(config)

    # Reuses the caller's correlation ID, or starts one for this context
    correlation_id = get_correlation_id()
    logger.debug(
        "Executing %s %s [%s]",
        method_name(config.method),
        redact_url(config.url),
        correlation_id,
        extra={"method": method_name(config.method), "url": redact_url(config.url)},
    )

    if transport is not None:
        return await _execute_with(config, transport)

    async with RestTransport() as one_shot:
        return await _execute_with(config, one_shot)
