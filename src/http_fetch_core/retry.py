"""
Retry-until-success driver.

Long-running polling clients wrap their work in
``retry_until_success``: recoverable HTTP failures are logged, followed
by a pause, and the work is started again, without limit. Every other
failure propagates immediately.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .exceptions import StatusError, TransientCondition, TransientTransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_TIMEOUT = 10.0


async def retry_until_success(
    operation: Callable[[], Awaitable[T]],
    timeout: float = DEFAULT_RETRY_TIMEOUT,
) -> T:
    """
    Run ``operation`` until it completes without raising a recoverable error.

    Recoverable errors are a surfaced ``ClientOrServerError`` or
    ``AuthenticationError``, and a ``TransientTransportError`` whose
    condition is ``TRY_AGAIN`` (resource temporarily unavailable).

    Args:
        operation: Zero-argument callable returning an awaitable; it is
            called afresh for every attempt
        timeout: Seconds to sleep between attempts

    Returns:
        The result of the first successful attempt
    """
    if timeout < 0:
        raise ValueError("timeout must be non-negative")

    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except StatusError as e:
            logger.info(f"Status: {e.status} ({e.label}), attempt {attempt}")
        except TransientTransportError as e:
            if e.condition is not TransientCondition.TRY_AGAIN:
                raise
            logger.info(f"TCP try again, attempt {attempt}")
        await asyncio.sleep(timeout)
