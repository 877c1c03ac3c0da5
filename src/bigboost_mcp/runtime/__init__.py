"""Runtime - admission control and observability."""

from .observability import BoundLogger, configure_logging, get_logger, log_context
from .rate_limit import RateLimiter, monotonic_ms

__all__ = [
    "RateLimiter", "monotonic_ms",
    "BoundLogger", "configure_logging", "get_logger", "log_context",
]
