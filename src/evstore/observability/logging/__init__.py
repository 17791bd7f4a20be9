"""Observability – structured logging helpers."""
from evstore.observability.logging.factory import JsonLoggerFactory
from evstore.observability.logging.processors import CorrelationProcessor, get_logger

__all__ = ["CorrelationProcessor", "JsonLoggerFactory", "get_logger"]
