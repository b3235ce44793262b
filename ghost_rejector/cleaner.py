#!/usr/bin/env python3
"""
cleaner.py - Line Classification and Domain Extraction for EasyList-style Lists

This module decides which filter-list lines can become a browser block rule.
It's the first stage of the pipeline, running BEFORE the compiler.

Only one rule shape is translated:

    ||tracker.example.com^              →  tracker.example.com
    ||tracker.example.com^$third-party  →  tracker.example.com  (options dropped)

Everything else is skipped:

    ! comment                 comment
    [Adblock Plus 2.0]        section header
    @@||ok.example.com^       exception (turning it into a block would invert it)
    example.com##.ad-banner   cosmetic (also #%# and ###)
    /banner\\d+/              regex and plain substring rules

Nothing here raises: a line that does not fit is simply not a candidate.
"""
from __future__ import annotations

from typing import Final, NamedTuple


# =============================================================================
# MARKERS
# =============================================================================

COMMENT_PREFIX: Final[str] = "!"
HEADER_PREFIX: Final[str] = "["
EXCEPTION_PREFIX: Final[str] = "@@"

#: Cosmetic markers, matched anywhere in the line
COSMETIC_MARKERS: Final[tuple[str, ...]] = ("##", "#%#", "###")

DOMAIN_ANCHOR: Final[str] = "||"
SEPARATOR: Final[str] = "^"
OPTIONS_MARKER: Final[str] = "$"


# =============================================================================
# DATA STRUCTURES
# =============================================================================

class CleanResult(NamedTuple):
    """
    Result of cleaning a single line.

    Attributes:
        domain: Extracted domain, or None if discarded
        discarded: True if line was discarded
        reason: Reason for discard (for stats), or None if kept
    """
    domain: str | None
    discarded: bool
    reason: str | None


# =============================================================================
# CLASSIFICATION
# =============================================================================

def should_skip_line(line: str) -> bool:
    """
    Check if a trimmed line can never produce a block rule.

    Example:
        >>> should_skip_line("! Title: EasyPrivacy")
        True
        >>> should_skip_line("@@||ok.example.com^")
        True
        >>> should_skip_line("||ads.example.com^")
        False
    """
    return _skip_reason(line) is not None


def _skip_reason(line: str) -> str | None:
    if line.startswith(COMMENT_PREFIX):
        return "comment"
    if line.startswith(HEADER_PREFIX):
        return "header"
    if line.startswith(EXCEPTION_PREFIX):
        return "exception"
    if any(marker in line for marker in COSMETIC_MARKERS):
        return "cosmetic"
    return None


def extract_domain(line: str) -> str | None:
    """
    Extract the bare domain from a ``||domain^`` rule.

    Options after ``$`` are discarded, not interpreted. The domain itself is not
    validated beyond these syntactic checks.

    Returns:
        The domain, or None if the line is not a simple domain block rule

    Example:
        >>> extract_domain("||ads.example.com^$third-party")
        'ads.example.com'
        >>> extract_domain("||^") is None
        True
        >>> extract_domain("||example.com/banner/^") is None
        True
    """
    if not line.startswith(DOMAIN_ANCHOR) or SEPARATOR not in line:
        return None

    rest = line[len(DOMAIN_ANCHOR):]
    caret = rest.find(SEPARATOR)
    if caret <= 0:
        return None
    domain = rest[:caret]

    if OPTIONS_MARKER in domain:
        domain = domain.split(OPTIONS_MARKER, 1)[0]
        if not domain:
            return None

    # Regex-delimited pattern in domain position
    if "/" in domain and domain.endswith("/"):
        return None

    return domain


def clean_line(line: str) -> CleanResult:
    """
    Classify a raw line and extract its domain.

    Example:
        >>> clean_line("  ||ads.example.com^  ")
        CleanResult(domain='ads.example.com', discarded=False, reason=None)
        >>> clean_line("##.banner").reason
        'cosmetic'
    """
    line = line.strip()
    if not line:
        return CleanResult(None, True, "empty")

    reason = _skip_reason(line)
    if reason is not None:
        return CleanResult(None, True, reason)

    domain = extract_domain(line)
    if domain is None:
        return CleanResult(None, True, "unsupported")

    return CleanResult(domain, False, None)
