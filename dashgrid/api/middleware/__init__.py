"""API middleware for dashgrid."""

from dashgrid.api.middleware.logging import LoggingMiddleware

__all__ = [
    "LoggingMiddleware",
]
