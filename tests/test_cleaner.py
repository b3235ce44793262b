"""Tests for line classification and domain extraction."""

from __future__ import annotations

import pytest

from ghost_rejector.cleaner import clean_line, extract_domain, should_skip_line


@pytest.mark.parametrize(
    "line",
    [
        "! Title: EasyPrivacy",
        "!",
        "[Adblock Plus 2.0]",
        "@@||ok.example.com^",
        "@@||ok.example.com^$document",
        "example.com##.ad-banner",
        "##.banner",
        "example.com#%#//scriptlet('set-constant', 'ads', 'false')",
        "example.com###ad-slot",
        "||example.com^##div",
    ],
)
def test_should_skip_line_rejects_non_candidates(line: str) -> None:
    assert should_skip_line(line)


@pytest.mark.parametrize(
    "line",
    [
        "||ads.example.com^",
        "||ads.example.com^$third-party",
        "/banner/ads/",
        "ads.js",
        "example.com#ad",
    ],
)
def test_should_skip_line_keeps_candidates(line: str) -> None:
    assert not should_skip_line(line)


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("||ads.example.com^", "ads.example.com"),
        ("||ads.example.com^$third-party", "ads.example.com"),
        ("||ads.example.com^$script,image,domain=a.com|b.com", "ads.example.com"),
        ("||ads.example.com$third-party^", "ads.example.com"),
        ("||example.com/pixel^", "example.com/pixel"),
        ("||1.2.3.4^", "1.2.3.4"),
        # No label validation: anything that passes the syntax checks is kept
        ("||not a domain^", "not a domain"),
    ],
)
def test_extract_domain(line: str, expected: str) -> None:
    assert extract_domain(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "ads.example.com",
        "|https://ads.example.com^",
        "||ads.example.com",
        "||^",
        "||^$third-party",
        "||$third-party^",
        "||example.com/banner/^",
        "/banner\\d+/",
    ],
)
def test_extract_domain_returns_none(line: str) -> None:
    assert extract_domain(line) is None


def test_clean_line_trims_whitespace() -> None:
    result = clean_line("   ||ads.example.com^\t\n")
    assert result.domain == "ads.example.com"
    assert not result.discarded
    assert result.reason is None


@pytest.mark.parametrize(
    ("line", "reason"),
    [
        ("", "empty"),
        ("   ", "empty"),
        ("! comment", "comment"),
        ("[Adblock Plus 2.0]", "header"),
        ("@@||ok.example.com^", "exception"),
        ("example.com##.ad", "cosmetic"),
        ("/ads/banner.js", "unsupported"),
        ("||example.com/regex/^", "unsupported"),
    ],
)
def test_clean_line_reasons(line: str, reason: str) -> None:
    result = clean_line(line)
    assert result.discarded
    assert result.domain is None
    assert result.reason == reason
