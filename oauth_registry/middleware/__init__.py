"""
Middleware modules for the registry API.

Provides request processing middleware for:
- Correlation ID tracking for request tracing
- Log record enrichment with the active correlation context
"""

from .correlation import (
    CorrelationIdMiddleware,
    CorrelationLogFilter,
    correlation_id_ctx,
    request_id_ctx,
)

__all__ = [
    "CorrelationIdMiddleware",
    "CorrelationLogFilter",
    "correlation_id_ctx",
    "request_id_ctx",
]
