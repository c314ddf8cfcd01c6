"""
Polling example using http_fetch_core.

A long-running client polls a status endpoint. Error statuses and
temporary name resolution failures are retried every few seconds by
``retry_until_success``; anything else stops the poller.
"""

import asyncio
import logging
import sys

from http_fetch_core import (
    BasicAuthResolver,
    FetchConfig,
    FetchError,
    Fetcher,
    retry_until_success,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

STATUS_URI = "http://httpbin.org/basic-auth/monitor/secret"


async def main(interval: float = 5.0) -> int:
    fetcher = Fetcher(
        auth_resolver=BasicAuthResolver("monitor", "secret"),
        config=FetchConfig.create(max_redirects=float("inf"), max_retries=2),
    )

    async def poll():
        async with await fetcher.fetch(STATUS_URI) as result:
            return await result.aread()

    try:
        body = await retry_until_success(poll, timeout=interval)
    except FetchError as e:
        logger.error(f"Giving up ({e.error_class.value}): {e}")
        return 1

    logger.info(body.decode("utf-8", errors="replace"))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
