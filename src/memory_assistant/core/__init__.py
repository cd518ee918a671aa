from .base import ApplicationError, ErrorCode, ErrorLevel, ServiceErrorDetails
from .circuit_breaker import CircuitBreaker, CircuitState, RetryWithCircuitBreaker

__all__ = [
    "ApplicationError",
    "CircuitBreaker",
    "CircuitState",
    "ErrorCode",
    "ErrorLevel",
    "RetryWithCircuitBreaker",
    "ServiceErrorDetails",
]
