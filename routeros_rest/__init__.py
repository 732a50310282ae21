"""Async client for the MikroTik RouterOS v7 REST API.

Builds Basic-auth JSON requests, picks http or https per device, retries
once over http when the https handshake fails, and decodes JSON responses
into plain Python values.
"""

__version__ = "0.1.0"

from routeros_rest.api import (
    RouterOSRestClient,
    add,
    auth_device,
    command,
    delete,
    print_,
    remove,
    run,
    set_,
)
from routeros_rest.config import Settings, get_settings, load_settings_from_file, set_settings
from routeros_rest.exceptions import (
    RouterOSAuthenticationError,
    RouterOSAuthorizationError,
    RouterOSClientError,
    RouterOSDecodeError,
    RouterOSError,
    RouterOSHTTPError,
    RouterOSNotFoundError,
    RouterOSRequestError,
    RouterOSResponseError,
    RouterOSServerError,
    RouterOSTimeoutError,
    RouterOSTransportError,
    RouterOSValidationError,
)
from routeros_rest.pipeline import execute
from routeros_rest.protocol import Protocol
from routeros_rest.request import HTTPMethod, RequestConfig
from routeros_rest.transport import RestTransport

__all__ = [
    "__version__",
    # Pipeline
    "execute",
    "RequestConfig",
    "HTTPMethod",
    "Protocol",
    "RestTransport",
    # Verb helpers
    "RouterOSRestClient",
    "print_",
    "add",
    "set_",
    "remove",
    "delete",
    "run",
    "command",
    "auth_device",
    # Settings
    "Settings",
    "get_settings",
    "set_settings",
    "load_settings_from_file",
    # Exceptions
    "RouterOSError",
    "RouterOSValidationError",
    "RouterOSRequestError",
    "RouterOSTransportError",
    "RouterOSTimeoutError",
    "RouterOSResponseError",
    "RouterOSHTTPError",
    "RouterOSClientError",
    "RouterOSAuthenticationError",
    "RouterOSAuthorizationError",
    "RouterOSNotFoundError",
    "RouterOSServerError",
    "RouterOSDecodeError",
]
