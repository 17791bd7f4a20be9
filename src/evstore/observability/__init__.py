"""Observability – logging and correlation context."""

from evstore.observability.correlation import CorrelationContext, RequestContext
from evstore.observability.logging import CorrelationProcessor, JsonLoggerFactory, get_logger

__all__ = [
    "CorrelationContext",
    "CorrelationProcessor",
    "JsonLoggerFactory",
    "RequestContext",
    "get_logger",
]
