"""Observability helpers: structured logging with correlation IDs."""

from routeros_rest.observability.logging import (
    CorrelationIDFilter,
    JSONFormatter,
    correlation_id_var,
    get_correlation_id,
    set_correlation_id,
    setup_logging,
)

__all__ = [
    "CorrelationIDFilter",
    "JSONFormatter",
    "correlation_id_var",
    "get_correlation_id",
    "set_correlation_id",
    "setup_logging",
]
