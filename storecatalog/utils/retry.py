"""Rate-limit aware retry helpers."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

RATE_LIMIT_RETRIES = 5
RATE_LIMIT_BASE_DELAY = 3.0


def is_rate_limited(exc: BaseException) -> bool:
    """True when ``exc`` carries a 429 status.

    The message is only consulted for errors with no status at all.
    """
    status = getattr(exc, "status", None)
    if status == 429:
        return True
    response = getattr(exc, "response", None)
    if response is not None:
        return getattr(response, "status_code", None) == 429
    return status is None and "429" in str(exc)


def retry_on_rate_limit(
    func: Callable[..., Awaitable] | None = None,
    *,
    retries: int = RATE_LIMIT_RETRIES,
    base_delay: float = RATE_LIMIT_BASE_DELAY,
):
    """Retry ``func`` on rate-limit errors with a strictly doubling delay.

    Any other exception propagates on the first occurrence. After ``retries``
    re-attempts the last rate-limit error is raised.
    """

    def decorate(fn: Callable[..., Awaitable]):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            delay = base_delay
            for attempt in range(retries + 1):
                try:
                    return await fn(*args, **kwargs)
                except Exception as exc:
                    if not is_rate_limited(exc) or attempt == retries:
                        raise
                    logger.warning(
                        "Rate limited (attempt %s/%s); retrying in %.0fs", attempt + 1, retries, delay
                    )
                    await asyncio.sleep(delay)
                    delay *= 2

        return wrapper

    if func is not None:
        return decorate(func)
    return decorate
