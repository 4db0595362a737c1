from __future__ import annotations

import time
from typing import Callable, TypeVar

from app.errors import NetworkError, RetryAbandoned, RetryExhausted

T = TypeVar("T")


class RetryPolicy:
    """Retry network failures on a fixed (optionally growing) interval.

    Defaults reproduce the naive behaviour of the original screen: wait five
    seconds, try again, forever. Only ``NetworkError`` is retried; anything
    else (notably ``ParseError``) propagates on the first occurrence.
    """

    def __init__(
        self,
        *,
        interval_sec: float = 5.0,
        max_attempts: int | None = None,
        backoff_factor: float = 1.0,
        max_interval_sec: float | None = None,
    ) -> None:
        if interval_sec < 0:
            raise ValueError("interval_sec must be >= 0")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None")
        if backoff_factor < 1.0:
            raise ValueError("backoff_factor must be >= 1.0")

        self.interval_sec = interval_sec
        self.max_attempts = max_attempts
        self.backoff_factor = backoff_factor
        self.max_interval_sec = max_interval_sec

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the ``attempt``-th failure (1-based)."""
        delay = self.interval_sec * (self.backoff_factor ** max(attempt - 1, 0))
        if self.max_interval_sec is not None:
            delay = min(delay, self.max_interval_sec)
        return delay

    def run(
        self,
        operation: Callable[[], T],
        *,
        on_retry: Callable[[NetworkError, int, float], None] | None = None,
        should_continue: Callable[[], bool] | None = None,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> T:
        attempt = 0
        while True:
            if should_continue is not None and not should_continue():
                raise RetryAbandoned(f"abandoned after {attempt} attempt(s)")

            attempt += 1
            try:
                return operation()
            except NetworkError as exc:
                if self.max_attempts is not None and attempt >= self.max_attempts:
                    raise RetryExhausted(
                        f"gave up after {attempt} attempt(s): {exc}", attempts=attempt
                    ) from exc

                delay = self.delay_for(attempt)
                print(
                    f"[RETRY][scheduled] attempt={attempt} delay_sec={delay} error={exc}",
                    flush=True,
                )
                if on_retry is not None:
                    on_retry(exc, attempt, delay)
                sleep_fn(delay)
