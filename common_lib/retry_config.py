"""재시도 로직 설정(Retry logic configuration)."""
from __future__ import annotations

from typing import Any, Callable

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)


def _is_retryable_exception(exc: BaseException) -> bool:
    """재시도 가능한 예외인지 확인(Check if exception is retryable).

    Retryable: connection errors, read timeouts and 5xx responses.
    Client errors (404 for a missing workflow directory, 401 for a bad
    token) are never retried.
    """
    if isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout)):
        return True

    if isinstance(exc, httpx.HTTPStatusError):
        return 500 <= exc.response.status_code < 600

    return False


def get_retry_decorator(attempts: int = 3) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    소스 호스트 API 호출용 재시도 데코레이터(Retry decorator for source-host API calls).

    Configuration:
    - Max attempts: 3 (original attempt + 2 retries)
    - Backoff: Exponential (1s, 2s, 4s)

    Returns:
        Retry decorator function
    """
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        retry=retry_if_exception(_is_retryable_exception),
        reraise=True,
    )
