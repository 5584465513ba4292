"""
Retry utilities for calls into content sources and destinations
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable

from site_migrator.exceptions import (
    RemoteUnavailableError,
    ThrottledError,
    TransientRemoteError,
)
from site_migrator.utils.logging import log_with_context

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    ThrottledError,
    TransientRemoteError,
    ConnectionError,
    TimeoutError,
)


def _rewind_streams(args: tuple[Any, ...], kwargs: dict[str, Any]) -> bool:
    """Seek every stream argument back to its start before a retry.

    Returns False if a stream cannot be rewound.
    """
    for value in (*args, *kwargs.values()):
        if not callable(getattr(value, "read", None)):
            continue
        seekable = getattr(value, "seekable", None)
        if not (callable(seekable) and seekable()):
            return False
        value.seek(0)
    return True


class RetryingProvider:
    """Wrapper that adds retry logic to every method of a content provider.

    Throttling and clearly transient faults are retried with exponential
    backoff.  Once the attempts are used up the last error is re-raised as
    :class:`RemoteUnavailableError`.  ``EntityGoneError`` and every other
    error propagate on the first occurrence.
    """

    def __init__(
        self,
        wrapped_obj: Any,
        max_retries: int = 3,
        retry_delay: float = 2,
        max_delay: float = 60,
        backoff_factor: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._wrapped_obj = wrapped_obj
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._max_delay = max_delay
        self._backoff_factor = backoff_factor
        self._sleep = sleep

    @property
    def wrapped(self) -> Any:
        return self._wrapped_obj

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._wrapped_obj, name)
        if callable(attr) and not name.startswith("_"):
            return self._wrap(name, attr)
        return attr

    def _delay_for(self, attempt: int, error: BaseException) -> float:
        retry_after = getattr(error, "retry_after", None)
        if retry_after is not None:
            return min(float(retry_after), self._max_delay)
        return min(self._retry_delay * (self._backoff_factor**attempt), self._max_delay)

    def _wrap(self, name: str, method: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(method)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(self._max_retries + 1):
                try:
                    return method(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    kind = "Throttled" if isinstance(e, ThrottledError) else "Transient error"
                    if attempt >= self._max_retries:
                        log_with_context(
                            logging.ERROR,
                            f"{kind} on {name}, max retries reached. Last error: {e}",
                            component="retry",
                        )
                        raise RemoteUnavailableError(
                            f"{name} failed after {attempt + 1} attempts: {e}"
                        ) from e

                    if not _rewind_streams(args, kwargs):
                        log_with_context(
                            logging.ERROR,
                            f"{kind} on {name} with a stream that cannot be rewound, "
                            f"not retrying: {e}",
                            component="retry",
                        )
                        raise RemoteUnavailableError(
                            f"{name} failed and cannot be retried: {e}"
                        ) from e

                    sleep_time = self._delay_for(attempt, e)
                    log_with_context(
                        logging.WARNING,
                        f"{kind} on {name}: {e}. Retrying in {sleep_time:.1f} seconds...",
                        component="retry",
                    )
                    self._sleep(sleep_time)

            raise RuntimeError("Exited retry loop unexpectedly.")

        return wrapper
