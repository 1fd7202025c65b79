"""API middleware."""

from feedmill.api.middleware.error_handler import ErrorHandlerMiddleware
from feedmill.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
