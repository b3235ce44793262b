"""
Shared pytest fixtures for the rule builder tests.

Provides:
- Sample filter-list text
- An in-memory fetcher standing in for HTTP downloads
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from ghost_rejector.downloader import FetchError  # noqa: E402
from ghost_rejector.sources import FilterSource  # noqa: E402


SAMPLE_LIST = """\
[Adblock Plus 2.0]
! Title: Sample privacy list
!comment
||ads.example.com^$third-party
||ads.example.com^
@@||ok.example.com^
##.banner
example.org#%#//scriptlet('abort-on-property-read', 'ads')
||metrics.example.net^
/banner\\d+/
||tracker.example.io^$script,image
"""


@pytest.fixture
def sample_list() -> str:
    return SAMPLE_LIST


@pytest.fixture
def fixed_now() -> datetime:
    """2025-01-15 12:30:45 UTC."""
    return datetime(2025, 1, 15, 12, 30, 45, tzinfo=timezone.utc)


@pytest.fixture
def make_fetcher() -> Callable[[Mapping[str, str]], Callable]:
    """Build an async fetcher serving text by location; unknown locations fail."""

    def factory(pages: Mapping[str, str]):
        calls: list[str] = []

        async def fetch(location: str) -> str:
            calls.append(location)
            if location not in pages:
                raise FetchError(location, "HTTP 404")
            return pages[location]

        fetch.calls = calls  # type: ignore[attr-defined]
        return fetch

    return factory


@pytest.fixture
def two_sources() -> tuple[FilterSource, FilterSource]:
    return (
        FilterSource("easyprivacy", "EasyPrivacy", "https://lists.test/easyprivacy.txt", 1, True),
        FilterSource("easylist", "EasyList", "https://lists.test/easylist.txt", 2, True),
    )
