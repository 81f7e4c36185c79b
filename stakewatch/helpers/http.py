"""Shared httpx plumbing for the staking, Etherscan and label clients."""

from asyncio import sleep
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import wraps

from typing import Any, ParamSpec, TypeVar

import httpx

from stakewatch.helpers.constants import (
    DEFAULT_TIMEOUT,
    MAX_RETRIES,
    RETRY_BASE_DELAY,
    RETRY_MAX_DELAY,
)
from stakewatch.helpers.logging import get_logger


logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def _describe(error: Exception) -> str:
    if isinstance(error, httpx.TimeoutException):
        return "timeout"
    if isinstance(error, httpx.HTTPStatusError):
        return f"HTTP {error.response.status_code}"
    return f"{type(error).__name__}: {error}"


def retry_with_backoff(
    max_retries: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    max_delay: float = RETRY_MAX_DELAY,
    *,
    log_errors: bool = True,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Retry a staking API call, doubling the pause after each failure.

    Any exception counts as a failure, including the client's own
    ``StakingAPIError`` for a response without a ``result``. The last one is
    re-raised once ``max_retries`` attempts are used up.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            last_exception: Exception | None = None

            for attempt in range(1, max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    last_exception = e
                    if attempt == max_retries:
                        break
                    if log_errors:
                        logger.warning(
                            "%s failed (attempt %d/%d): %s",
                            func.__name__,
                            attempt,
                            max_retries,
                            _describe(e),
                        )
                    await sleep(min(base_delay * 2 ** (attempt - 1), max_delay))

            if last_exception is None:
                msg = f"{func.__name__} failed without exception"
                raise RuntimeError(msg)
            if log_errors:
                logger.error("%s failed after %d attempts", func.__name__, max_retries)
            raise last_exception

        return wrapper

    return decorator


def create_http_client(
    timeout: float = DEFAULT_TIMEOUT, **kwargs: Any
) -> httpx.AsyncClient:
    """One AsyncClient per CLI run, shared by every provider client."""
    headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
    return httpx.AsyncClient(timeout=timeout, headers=headers, **kwargs)


def handle_http_errors(
    default_return: T | None = None,
    *,
    log_errors: bool = True,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T | None]]]:
    """Turn any failure of an optional lookup into ``default_return``.

    Used for the label service, where a miss must leave the static
    classification in place. A 404 is logged at debug level only.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T | None]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T | None:
            try:
                return await func(*args, **kwargs)
            except httpx.HTTPStatusError as e:
                if log_errors:
                    if e.response.status_code == 404:
                        logger.debug("%s returned 404", func.__name__)
                    else:
                        logger.warning(
                            "%s HTTP error: %s %s",
                            func.__name__,
                            e.response.status_code,
                            e.response.text[:100] if e.response.text else "",
                        )
                return default_return
            except Exception as e:
                if log_errors:
                    logger.warning("%s failed: %s", func.__name__, _describe(e))
                return default_return

        return wrapper

    return decorator


@asynccontextmanager
async def log_and_suppress_errors(
    operation_name: str,
    *,
    log_level: str = "warning",
    suppress: bool = True,
) -> AsyncIterator[None]:
    """Log a failed step such as one validator's unbond fetch and carry on.

    With ``suppress=False`` the exception is re-raised after logging.
    """
    try:
        yield
    except Exception as e:
        log_method = getattr(logger, log_level, logger.warning)
        log_method("%s failed: %s", operation_name, e)

        if not suppress:
            raise


__all__ = [
    "create_http_client",
    "handle_http_errors",
    "log_and_suppress_errors",
    "retry_with_backoff",
]
