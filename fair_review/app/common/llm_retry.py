"""LLM call helpers: retry policy for transport failures and structured logging."""

from __future__ import annotations

import functools
import logging
import time
from typing import Any, Callable, Dict, Optional, TypeVar

import httpx
from tenacity import (
    after_log,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


RETRYABLE_HTTP_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
)


def is_retryable_http_error(exception: BaseException) -> bool:
    """Check if HTTP error is retryable (5xx or connection issues)."""
    if isinstance(exception, RETRYABLE_HTTP_EXCEPTIONS):
        return True

    if isinstance(exception, httpx.HTTPStatusError):
        return 500 <= exception.response.status_code < 600

    return False


def log_llm_request(
    provider: str,
    model: str,
    prompt_chars: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Log LLM request with structured data."""
    log_data = {
        "event": "llm_request",
        "provider": provider,
        "model": model,
        "prompt_chars": prompt_chars,
    }
    if metadata:
        log_data.update(metadata)

    logger.info(f"LLM request to {provider}/{model}", extra=log_data)


def log_llm_response(
    provider: str,
    model: str,
    duration_ms: float,
    success: bool,
    error: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Log LLM response with structured data."""
    log_data = {
        "event": "llm_response",
        "provider": provider,
        "model": model,
        "duration_ms": round(duration_ms, 2),
        "success": success,
    }
    if error:
        log_data["error"] = error
    if metadata:
        log_data.update(metadata)

    if success:
        logger.info(f"LLM response from {provider}/{model} ({duration_ms:.0f}ms)", extra=log_data)
    else:
        logger.error(f"LLM request failed: {error}", extra=log_data)


def create_llm_retry_decorator(
    max_attempts: int = 1,
    min_wait_seconds: float = 2.0,
    max_wait_seconds: float = 30.0,
) -> Callable:
    """Create a retry decorator for LLM transport calls.

    Only connection problems, timeouts and 5xx responses are retried; with the
    default of one attempt nothing is retried at all.

    Args:
        max_attempts: Maximum number of attempts, including the first one
        min_wait_seconds: Minimum wait time between retries
        max_wait_seconds: Maximum wait time between retries

    Returns:
        Retry decorator
    """
    return retry(
        retry=retry_if_exception(is_retryable_http_error),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=min_wait_seconds,
            max=max_wait_seconds,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.INFO),
        reraise=True,
    )


def with_llm_logging(
    provider: str,
    model: str,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator to add structured logging to LLM calls.

    The wrapped function receives the prompt as its last positional argument.
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            start_time = time.time()
            prompt = args[-1] if args and isinstance(args[-1], str) else None

            log_llm_request(provider, model, prompt_chars=len(prompt) if prompt else None)

            try:
                result = func(*args, **kwargs)
                duration_ms = (time.time() - start_time) * 1000
                log_llm_response(provider, model, duration_ms, success=True)
                return result
            except Exception as exc:
                duration_ms = (time.time() - start_time) * 1000
                log_llm_response(provider, model, duration_ms, success=False, error=str(exc))
                raise

        return wrapper
    return decorator


def safe_timeout(timeout_value: Any, default: float = 60.0) -> Optional[float]:
    """Convert timeout configuration to a safe float value.

    Args:
        timeout_value: Timeout value from config (could be 0, None, string, etc.)
        default: Default timeout in seconds

    Returns:
        Float timeout value or None (for infinite wait)
    """
    try:
        numeric = float(timeout_value) if timeout_value is not None else default
    except (TypeError, ValueError):
        logger.warning(f"Invalid timeout value: {timeout_value}, using default {default}s")
        return default

    # 0 or negative means wait forever (None in httpx)
    if numeric <= 0:
        logger.info("LLM timeout set to infinite (0 or negative value)")
        return None

    if numeric > 300:
        logger.warning(f"Very long timeout configured: {numeric}s")

    return numeric
