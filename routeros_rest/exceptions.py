"""RouterOS REST client exceptions.

Strongly-typed exceptions for the request pipeline. Low-level httpx and
JSON errors are mapped to these and chained with ``raise ... from``.

Exception hierarchy:
- RouterOSError (base)
  - RouterOSValidationError (bad request config, raised before any I/O)
  - RouterOSRequestError (request assembly failed)
  - RouterOSTransportError (network/TLS failure)
    - RouterOSTimeoutError
  - RouterOSResponseError (no response or no body to inspect)
  - RouterOSHTTPError (non-2xx responses)
    - RouterOSClientError (4xx)
      - RouterOSAuthenticationError (401)
      - RouterOSAuthorizationError (403)
      - RouterOSNotFoundError (404)
    - RouterOSServerError (5xx)
  - RouterOSDecodeError (malformed JSON in a 2xx response)
"""


class RouterOSError(Exception):
    """Base exception for all RouterOS client errors."""

    pass


class RouterOSValidationError(RouterOSError, ValueError):
    """Raised when a request config has an invalid URL or HTTP method."""

    pass


class RouterOSRequestError(RouterOSError):
    """Raised when a transport request cannot be assembled."""

    pass


# Transport errors
class RouterOSTransportError(RouterOSError):
    """Raised for network failures (DNS, TCP connect, TLS, read/write).

    Attributes:
        method: HTTP method of the failed request
        url: Request URL with any userinfo removed
    """

    def __init__(self, message: str, method: str | None = None, url: str | None = None):
        super().__init__(message)
        self.method = method
        self.url = url


class RouterOSTimeoutError(RouterOSTransportError):
    """Raised when a request exceeds its timeout."""

    pass


class RouterOSResponseError(RouterOSError):
    """Raised when there is no response (or no response body) to build an error from."""

    pass


# HTTP status errors
class RouterOSHTTPError(RouterOSError):
    """Raised for non-2xx responses.

    Attributes:
        status_code: HTTP status code
        reason: HTTP reason phrase
        response_body: Raw response body (empty string if unreadable)
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        reason: str = "",
        response_body: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.response_body = response_body


class RouterOSClientError(RouterOSHTTPError):
    """Raised for client errors (HTTP 4xx)."""

    pass


class RouterOSAuthenticationError(RouterOSClientError):
    """Raised for authentication failures (HTTP 401)."""

    def __init__(
        self,
        message: str = "Authentication failed",
        status_code: int = 401,
        reason: str = "Unauthorized",
        response_body: str = "",
    ):
        super().__init__(message, status_code, reason, response_body)


class RouterOSAuthorizationError(RouterOSClientError):
    """Raised for authorization failures (HTTP 403)."""

    pass


class RouterOSNotFoundError(RouterOSClientError):
    """Raised when resource not found (HTTP 404)."""

    pass


class RouterOSServerError(RouterOSHTTPError):
    """Raised for server errors (HTTP 5xx)."""

    pass


class RouterOSDecodeError(RouterOSError):
    """Raised when a successful response body is not valid JSON."""

    def __init__(self, message: str, response_body: str = ""):
        super().__init__(message)
        self.response_body = response_body
