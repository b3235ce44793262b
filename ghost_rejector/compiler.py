#!/usr/bin/env python3
"""
compiler.py - Filter List Parser and Cross-Source Rule Merger

This module is the core of the rule build. It turns filter-list text into
blocking rules and merges the rules of several lists into one rule set.

TWO DEDUPLICATION LAYERS:
    1. parse_filter_list() keeps a seen-domain set per parse. It bounds the work
       done for a single list: a domain repeated in one list costs one rule.
    2. merge_rules() keeps a seen-urlFilter set per merge. It guarantees the
       final rule set has no two rules with the same urlFilter, whichever list
       they came from. The first registered source wins.

IDS:
    Parsed rules are numbered 1..n per list. The merge renumbers everything
    1..n in output order, so ids are contiguous and unique in the final set.

CAP:
    A parse stops consuming input once it has emitted max_rules rules. The merge
    applies the same cap so blocking ids never reach reserved_rule_id(max_rules).
"""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from ghost_rejector.cleaner import clean_line
from ghost_rejector.rules import MAX_RULES, NetworkRule, create_block_rule


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class ParseStats:
    """Statistics from parsing one filter list."""
    lines_read: int = 0
    rules_emitted: int = 0
    duplicate_pruned: int = 0
    capped: bool = False

    # Skipped lines by reason (comment, header, exception, cosmetic, ...)
    skipped: dict[str, int] = field(default_factory=dict)

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())


@dataclass
class MergeStats:
    """Statistics from merging rule sets."""
    sources_merged: int = 0
    total_input: int = 0
    total_output: int = 0
    duplicate_pruned: int = 0
    empty_filter_skipped: int = 0
    cap_pruned: int = 0


# ============================================================================
# PARSING
# ============================================================================

def parse_filter_list(
    lines: Iterable[str],
    max_rules: int = MAX_RULES,
) -> tuple[list[NetworkRule], ParseStats]:
    """
    Parse filter-list lines into blocking rules in a single forward pass.

    Args:
        lines: Filter-list lines (a file object or any iterable of strings)
        max_rules: Stop once this many rules have been emitted

    Returns:
        Tuple of (rules, stats). Rules keep the order of their source lines.

    Example:
        >>> rules, stats = parse_filter_list(["! comment", "||ads.example.com^"])
        >>> [r.condition.url_filter for r in rules]
        ['*ads.example.com*']
    """
    if max_rules < 1:
        raise ValueError(f"max_rules must be positive, got {max_rules}")

    stats = ParseStats()
    rules: list[NetworkRule] = []
    seen_domains: set[str] = set()

    for line in lines:
        stats.lines_read += 1
        result = clean_line(line)

        if result.discarded:
            stats.skipped[result.reason] = stats.skipped.get(result.reason, 0) + 1
            continue

        domain = result.domain
        if domain in seen_domains:
            stats.duplicate_pruned += 1
            continue

        seen_domains.add(domain)
        rules.append(create_block_rule(len(rules) + 1, domain))

        if len(rules) >= max_rules:
            stats.capped = True
            break

    stats.rules_emitted = len(rules)
    return rules, stats


def parse_filter_file(
    path: str | Path,
    max_rules: int = MAX_RULES,
) -> tuple[list[NetworkRule], ParseStats]:
    """Parse a filter list stored on disk."""
    # newline="\n": only LF ends a line, a trailing CR is stripped per line
    with open(path, encoding="utf-8-sig", errors="replace", newline="\n") as f:
        return parse_filter_list(f, max_rules)


def split_lines(text: str) -> list[str]:
    """
    Split list text into lines on LF only.

    Other characters str.splitlines() treats as breaks (\\x85, \\u2028, lone CR, ...)
    stay inside their line, so "! note\\u2028||x^" remains one comment line.

    Example:
        >>> split_lines("! a\\u2028b\\r\\n||c.test^\\n")
        ['! a\\u2028b\\r', '||c.test^']
    """
    lines = text.split("\n")
    if lines and not lines[-1]:
        lines.pop()
    return lines


# ============================================================================
# MERGING
# ============================================================================

def merge_rules(
    rule_sets: Sequence[Sequence[NetworkRule]],
    max_rules: int = MAX_RULES,
) -> tuple[list[NetworkRule], MergeStats]:
    """
    Merge rule sets into one, deduplicated by urlFilter and renumbered from 1.

    Rule sets are visited in the order given (source registration order), so
    when two sources produce the same urlFilter the earlier source wins.

    Returns:
        Tuple of (merged_rules, stats)
    """
    stats = MergeStats(sources_merged=len(rule_sets))
    merged: list[NetworkRule] = []
    seen_filters: set[str] = set()

    for rule_set in rule_sets:
        for rule in rule_set:
            stats.total_input += 1
            url_filter = rule.condition.url_filter
            if not url_filter:
                stats.empty_filter_skipped += 1
                continue

            if url_filter in seen_filters:
                stats.duplicate_pruned += 1
                continue

            if len(merged) >= max_rules:
                stats.cap_pruned += 1
                continue

            seen_filters.add(url_filter)
            merged.append(dataclasses.replace(rule, id=len(merged) + 1))

    stats.total_output = len(merged)
    return merged, stats
