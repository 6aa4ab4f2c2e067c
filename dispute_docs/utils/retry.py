"""Shared retry policy with exponential backoff and jitter."""

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Optional

from .errors import DocumentGenerationError, RetryExhaustedError

logger = logging.getLogger(__name__)


def is_retryable(error: Exception) -> bool:
    """
    Default classifier: our own errors carry their retryability,
    anything else (unexpected exception) is not retried.
    """
    if isinstance(error, DocumentGenerationError):
        return error.retryable
    return False


class RetryPolicy:
    """
    Retry an async operation with exponential backoff plus additive jitter.

    The first attempt is always made; up to ``max_retries`` further attempts
    follow while the classifier reports the failure as retryable.

    Attributes:
        max_retries: Additional attempts after the first
        base_delay: Delay before the first retry, doubled per attempt
        jitter: Upper bound of the random delay added to each wait
    """

    def __init__(
        self,
        max_retries: int = 2,
        base_delay: float = 1.0,
        jitter: float = 0.5,
        classify: Callable[[Exception], bool] = is_retryable,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.jitter = jitter
        self.classify = classify
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff(self, attempt: int) -> float:
        """
        Delay to wait after the given (1-based) failed attempt.

        Args:
            attempt: Number of the attempt that just failed

        Returns:
            Seconds to sleep: base * 2^(attempt-1) + uniform(0, jitter)
        """
        return self.base_delay * (2 ** (attempt - 1)) + self._rng.uniform(0, self.jitter)

    async def run(self, operation: Callable[[], Awaitable[Any]], operation_name: str = "operation") -> Any:
        """
        Execute ``operation`` under this policy.

        Args:
            operation: Zero-argument coroutine function to call per attempt
            operation_name: Label used in logs and the final error

        Returns:
            Whatever the first successful attempt returns

        Raises:
            Exception: The original error when it is classified non-retryable
            RetryExhaustedError: When every attempt failed with retryable errors
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                logger.debug(f"{operation_name}: attempt {attempt}/{self.max_attempts}")
                return await operation()
            except Exception as e:
                retryable = self.classify(e)
                logger.warning(
                    f"{operation_name} failed (attempt {attempt}/{self.max_attempts}, "
                    f"retryable={retryable}): {str(e)}"
                )

                if not retryable:
                    raise

                if attempt >= self.max_attempts:
                    raise RetryExhaustedError.after_attempts(operation_name, attempt, e) from e

                delay = self.backoff(attempt)
                logger.info(f"Retrying {operation_name} in {delay:.2f} seconds...")
                await self._sleep(delay)
