"""Retry utilities for asynchronous operations using Tenacity."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import IRC_CONNECT_ATTEMPTS, IRC_CONNECT_BACKOFF_MAX
from ..errors import NetworkError

T = TypeVar("T")


class RetryableException(Exception):
    """Exception raised to indicate an operation should be retried."""

    pass


class RetryExhaustedError(NetworkError):
    """Exception raised when all retry attempts have been exhausted."""

    def __init__(
        self, message: str, attempts: int, final_exception: BaseException | None = None
    ) -> None:
        super().__init__(
            message,
            data={
                "attempts": attempts,
                "final_error": repr(final_exception) if final_exception else None,
            },
        )
        self.attempts = attempts
        self.final_exception = final_exception


async def retry_async(
    operation: Callable[[int], Awaitable[tuple[T | None, bool]]],
    max_attempts: int = IRC_CONNECT_ATTEMPTS,
    max_wait: float = IRC_CONNECT_BACKOFF_MAX,
) -> T:
    """Retry an asynchronous operation with exponential backoff using Tenacity.

    Args:
        operation: Async callable that takes attempt number and returns (result, should_retry).
        max_attempts: Maximum number of attempts.
        max_wait: Upper bound in seconds for a single backoff sleep.

    Returns:
        The result from operation if successful.

    Raises:
        RetryExhaustedError: If all attempts are exhausted.
    """
    attempt_count = 0
    last_error: BaseException | None = None

    def before_retry(retry_state):
        nonlocal attempt_count
        attempt_count = retry_state.attempt_number

    async def wrapped_operation() -> T | None:
        nonlocal last_error
        try:
            result, should_retry = await operation(attempt_count)
        except (TimeoutError, OSError, NetworkError) as e:
            # For transport failures, always retry if attempts remain
            last_error = e
            raise RetryableException("Exception occurred, retrying") from e
        if not should_retry:
            return result
        raise RetryableException("Operation indicated retry is needed")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, max=max_wait),
        retry=retry_if_exception_type(RetryableException),
        before=before_retry,
        reraise=True,
    )

    try:
        return await retrying(wrapped_operation)
    except RetryableException as e:
        raise RetryExhaustedError(
            f"Operation failed after {max_attempts} attempts",
            attempts=max_attempts,
            final_exception=last_error,
        ) from e
