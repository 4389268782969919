#!/usr/bin/env python3
"""
Retry Example

Three ways of retrying API calls on transient status codes:
the decorator, the functional wrapper and RetryableClient.

Usage:
    python examples/retry_example.py
"""

import asyncio

from limitless_auth import (
    APIError,
    ClientConfig,
    ConsoleLogger,
    RetryableClient,
    RetryPolicy,
    build_http_client,
    retry_on_errors,
    with_retry,
)


def log_retry(attempt, error, delay):
    print(f"   ⏳ attempt {attempt + 1} failed with {getattr(error, 'status', '?')}, retrying in {delay}s")


async def main():
    logger = ConsoleLogger("info")

    async with build_http_client(ClientConfig.from_env(), logger=logger) as http:

        print("\n📝 Decorator")

        @retry_on_errors(status_codes={429, 500, 503}, max_retries=3, delays=[1, 2, 3], on_retry=log_retry)
        async def active_markets():
            return await http.get("/markets/active")

        markets = await active_markets()
        print(f"✅ Active markets: {type(markets).__name__}")

        print("\n📝 Wrapper around a failing endpoint (404 listed on purpose)")
        try:
            await with_retry(
                lambda: http.get("/non-existent-endpoint"),
                status_codes=[404, 429, 500, 503],
                max_retries=3,
                delays=[1, 2, 3],
                on_retry=log_retry,
                logger=logger,
            )
        except APIError as e:
            print(f"❌ Gave up after retries: {e.status} {e.message}")

        print("\n📝 RetryableClient")
        client = RetryableClient(http, RetryPolicy(max_retries=2, exponential_base=2, jitter=0.1), logger)
        markets = await client.get("/markets/active")
        print(f"✅ RetryableClient returned {type(markets).__name__}")


if __name__ == "__main__":
    asyncio.run(main())
