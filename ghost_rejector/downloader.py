#!/usr/bin/env python3
"""
downloader.py - Async Filter List Fetcher

Fetches filter-list text concurrently. http(s) locations are downloaded with
aiohttp, anything else is read as a local file path with aiofiles.

A failed location never raises out of fetch_all(); it comes back as a
FetchResult with success=False so the caller can skip that source and go on.
There is no retry: a transient failure needs a fresh run.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from functools import partial
from typing import NamedTuple
from urllib.parse import urlparse

import aiofiles
import aiohttp


# Default configuration
DEFAULT_TIMEOUT = 30
DEFAULT_CONCURRENCY = 4

HTTP_SCHEMES = frozenset({"http", "https"})

#: An async callable returning the text found at a location
Fetcher = Callable[[str], Awaitable[str]]


class FetchError(Exception):
    """A location could not be retrieved."""

    def __init__(self, location: str, reason: str):
        super().__init__(f"{location}: {reason}")
        self.location = location
        self.reason = reason


class FetchResult(NamedTuple):
    """Result of a single fetch operation."""
    location: str
    success: bool
    text: str | None = None
    error: str | None = None


def decode_body(content: bytes) -> str:
    """Decode list content, dropping a BOM and replacing undecodable bytes."""
    return content.decode("utf-8-sig", errors="replace")


def is_http_location(location: str) -> bool:
    return urlparse(location).scheme.lower() in HTTP_SCHEMES


async def fetch_http(session: aiohttp.ClientSession, url: str, timeout: float) -> str:
    """Download a list over HTTP. Raises FetchError on any failure."""
    try:
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            allow_redirects=True,
        ) as response:
            if response.status >= 400:
                raise FetchError(url, f"HTTP {response.status}")
            content = await response.read()
    except asyncio.TimeoutError:
        raise FetchError(url, "Timeout") from None
    except aiohttp.ClientError as e:
        raise FetchError(url, str(e) or type(e).__name__) from e
    return decode_body(content)


async def read_local(path: str) -> str:
    """Read a list from disk. Raises FetchError if the file can't be read."""
    try:
        async with aiofiles.open(path, "rb") as f:
            content = await f.read()
    except OSError as e:
        raise FetchError(path, e.strerror or str(e)) from e
    return decode_body(content)


async def fetch_location(
    session: aiohttp.ClientSession | None,
    location: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Fetch the text at a URL or local path."""
    if is_http_location(location):
        if session is None:
            raise FetchError(location, "no HTTP session available")
        return await fetch_http(session, location, timeout)
    return await read_local(location)


async def fetch_all(
    locations: Sequence[str],
    *,
    fetch: Fetcher | None = None,
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[FetchResult]:
    """
    Fetch all locations concurrently with rate limiting.

    Args:
        locations: URLs or file paths
        fetch: Replacement fetcher; the default uses aiohttp/aiofiles
        concurrency: Max simultaneous fetches
        timeout: Per-request timeout in seconds (HTTP only)

    Returns:
        One FetchResult per location, in input order
    """
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def fetch_with_semaphore(fetcher: Fetcher, location: str) -> FetchResult:
        async with semaphore:
            try:
                text = await fetcher(location)
            except FetchError as e:
                return FetchResult(location, success=False, error=e.reason)
        return FetchResult(location, success=True, text=text)

    async def gather(fetcher: Fetcher) -> list[FetchResult]:
        tasks = [fetch_with_semaphore(fetcher, location) for location in locations]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        # Anything other than FetchError still only fails its own location
        final_results = []
        for location, result in zip(locations, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                final_results.append(
                    FetchResult(location, success=False, error=str(result) or type(result).__name__)
                )
            else:
                final_results.append(result)
        return final_results

    if fetch is not None:
        return await gather(fetch)

    if not any(is_http_location(location) for location in locations):
        return await gather(partial(fetch_location, None, timeout=timeout))

    connector = aiohttp.TCPConnector(limit=max(concurrency, 1), limit_per_host=2)
    async with aiohttp.ClientSession(connector=connector) as session:
        return await gather(partial(fetch_location, session, timeout=timeout))
