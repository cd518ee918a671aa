"""Circuit breaker and retry policy for provider calls."""

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from memory_assistant.core.base import ErrorCode, ServiceErrorDetails
from memory_assistant.core.errors import RateLimitError, ServiceError, TimeoutError
from memory_assistant.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, rejecting calls
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker(Generic[T]):
    """
    Circuit breaker for handling provider failures gracefully.

    - CLOSED: calls go through
    - OPEN: calls are rejected immediately with a ServiceError
    - HALF_OPEN: a limited number of trial calls check whether the provider recovered

    The circuit opens after ``failure_threshold`` consecutive failures of one
    of ``expected_exception_types`` and moves to half-open after
    ``recovery_timeout`` seconds.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        expected_exception_types: tuple[type[Exception], ...] = (Exception,),
        success_threshold: int = 2,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception_types = expected_exception_types
        self.success_threshold = success_threshold

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time: float | None = None
        self.last_exception: Exception | None = None

    def _should_attempt_reset(self) -> bool:
        if self.last_failure_time is None:
            return False
        return time.monotonic() - self.last_failure_time >= self.recovery_timeout

    def _record_success(self) -> None:
        if self.state == CircuitState.HALF_OPEN:
            self.success_count += 1
            if self.success_count >= self.success_threshold:
                logger.info(f"Circuit breaker '{self.name}' closing after recovery")
                self.state = CircuitState.CLOSED
                self.failure_count = 0
                self.success_count = 0
                self.last_exception = None
        elif self.state == CircuitState.CLOSED:
            self.failure_count = 0

    def _record_failure(self, exception: Exception) -> None:
        self.last_failure_time = time.monotonic()
        self.last_exception = exception

        if self.state == CircuitState.HALF_OPEN:
            logger.warning(f"Circuit breaker '{self.name}' reopening after half-open failure")
            self.state = CircuitState.OPEN
            self.failure_count = 1
            self.success_count = 0
        elif self.state == CircuitState.CLOSED:
            self.failure_count += 1
            if self.failure_count >= self.failure_threshold:
                logger.error(
                    f"Circuit breaker '{self.name}' opening after {self.failure_count} failures",
                    last_exception=str(exception),
                )
                self.state = CircuitState.OPEN

    def _check_state(self) -> None:
        if self.state == CircuitState.OPEN and self._should_attempt_reset():
            logger.info(f"Circuit breaker '{self.name}' attempting reset (half-open)")
            self.state = CircuitState.HALF_OPEN
            self.success_count = 0

    def _open_error(self, operation: str) -> ServiceError:
        error_msg = f"Circuit breaker '{self.name}' is open"
        if self.last_exception:
            error_msg += f" (last error: {self.last_exception})"
        return ServiceError(
            message=error_msg,
            code=ErrorCode.CIRCUIT_OPEN,
            details=ServiceErrorDetails(
                source="circuit_breaker",
                operation=operation,
                service_name=self.name,
                status_code=503,
            ),
        )

    async def call_async(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Call an async function through the circuit breaker.

        Raises:
            ServiceError: If circuit is open
            Original exception: If the function fails
        """
        self._check_state()
        if self.state == CircuitState.OPEN:
            raise self._open_error("call_async")

        try:
            result = await func(*args, **kwargs)
        except self.expected_exception_types as e:
            self._record_failure(e)
            raise

        self._record_success()
        return result

    def get_state(self) -> dict[str, Any]:
        """Get current circuit breaker state for monitoring."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "last_failure_time": self.last_failure_time,
            "last_exception": str(self.last_exception) if self.last_exception else None,
        }


class RetryWithCircuitBreaker:
    """
    Combines retry with exponential backoff and a circuit breaker.

    Transient failures (``retryable_exceptions``) are retried; persistent
    failures trip the breaker so later calls fail fast.
    """

    def __init__(
        self,
        circuit_breaker: CircuitBreaker,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        backoff_factor: float = 2.0,
        max_delay: float = 60.0,
        retryable_exceptions: tuple[type[Exception], ...] = (
            RateLimitError,
            TimeoutError,
        ),
    ):
        self.circuit_breaker = circuit_breaker
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay
        self.retryable_exceptions = retryable_exceptions

    async def call_async(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Call an async function with retries and circuit breaker.

        Raises:
            The last retryable exception once all attempts are used,
            any non-retryable exception immediately.
        """
        delay = self.initial_delay

        for attempt in range(1, self.max_retries + 1):
            try:
                return await self.circuit_breaker.call_async(func, *args, **kwargs)
            except self.retryable_exceptions as e:
                if attempt == self.max_retries:
                    logger.error(
                        f"All {self.max_retries} attempts failed for '{self.circuit_breaker.name}'",
                        error=e,
                    )
                    raise
                logger.warning(
                    f"Attempt {attempt}/{self.max_retries} failed for '{self.circuit_breaker.name}', "
                    f"retrying in {delay:.1f}s",
                    error=e,
                )
                await asyncio.sleep(delay)
                delay = min(delay * self.backoff_factor, self.max_delay)

        raise self.circuit_breaker._open_error("retry_exhausted")
