"""
Basic fetch example using http_fetch_core.

This example demonstrates opening a resource that may redirect,
inspecting the communication trail and handling classified errors.
"""

import asyncio
import logging

from http_fetch_core import (
    FetchConfig,
    FetchError,
    Fetcher,
    RedirectLimitExceeded,
    http_get,
    http_post,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def fetch_with_redirects():
    """Follow a redirect chain and print every hop."""
    logger.info("Fetching through redirects...")

    fetcher = Fetcher(config=FetchConfig(max_redirects=5, max_retries=1))
    try:
        async with await fetcher.fetch("http://httpbin.org/redirect/3") as result:
            body = await result.aread()
    except RedirectLimitExceeded as e:
        logger.error(f"Too many redirects after {len(e.trail)} hops")
        return
    except FetchError as e:
        logger.error(f"Fetch failed ({e.error_class.value}): {e}")
        for hop in e.trail:
            logger.error(f"  {hop.status} {hop.uri}")
        return

    for number, hop in enumerate(result.trail, start=1):
        logger.info(f"Hop {number}: {hop.status} {hop.uri} ({hop.elapsed:.3f}s)")
    logger.info(f"Final URI: {result.uri}, {len(body)} bytes")


async def get_and_post():
    """Use the convenience wrappers with a consumer callback."""

    async def content_type(stream, trail):
        await stream.aread()
        return trail.header("content-type")

    logger.info(f"GET content type: {await http_get('http://httpbin.org/get', content_type)}")

    await http_post(
        "http://httpbin.org/post",
        '{"message": "Hello, World!"}',
        content_type="application/json",
    )


async def main():
    await fetch_with_redirects()
    await get_and_post()


if __name__ == "__main__":
    asyncio.run(main())
