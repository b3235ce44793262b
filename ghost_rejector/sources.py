#!/usr/bin/env python3
"""
sources.py - Filter List Source Registry

Holds the configured filter lists and turns the enabled ones into a single
merged rule set: fetch every enabled source, parse each one, then merge.

The merge only starts after all fetches have finished. A source that fails to
fetch is skipped with a warning; the build only fails when no source at all
produced rules.

Source priority is recorded but not used: on conflicting rules the source
registered first wins.
"""
from __future__ import annotations

import sys
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

from ghost_rejector.compiler import MergeStats, ParseStats, merge_rules, parse_filter_list, split_lines
from ghost_rejector.downloader import DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT, Fetcher, fetch_all
from ghost_rejector.rules import MAX_RULES, NetworkRule


VERBOSE = False  # Set True (or pass --verbose) for per-source detail


class FilterSource(NamedTuple):
    """A filter list the builder can pull rules from."""
    id: str
    name: str
    location: str
    priority: int
    enabled: bool


RULE_SOURCES: tuple[FilterSource, ...] = (
    FilterSource(
        id="easyprivacy",
        name="EasyPrivacy",
        location="https://easylist.to/easylist/easyprivacy.txt",
        priority=1,
        enabled=True,
    ),
    FilterSource(
        id="easylist",
        name="EasyList",
        location="https://easylist.to/easylist/easylist.txt",
        priority=2,
        enabled=False,
    ),
)

#: Parse step per recognised source id
SourceParser = Callable[[Iterable[str], int], tuple[list[NetworkRule], ParseStats]]

SOURCE_PARSERS: dict[str, SourceParser] = {
    "easyprivacy": parse_filter_list,
    "easylist": parse_filter_list,
}


class SourceUnavailableError(RuntimeError):
    """No configured source produced any rules."""


@dataclass
class SourceReport:
    """What happened to one enabled source."""
    source: FilterSource
    rules: int = 0
    parse_stats: ParseStats | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class MergeOutcome:
    """Merged rules plus per-source and merge statistics."""
    rules: list[NetworkRule]
    stats: MergeStats
    reports: list[SourceReport] = field(default_factory=list)


def enabled_sources(sources: Iterable[FilterSource]) -> list[FilterSource]:
    """Enabled sources with a known parser, in registration order."""
    selected = []
    for source in sources:
        if not source.enabled:
            continue
        if source.id not in SOURCE_PARSERS:
            print(f"Warning: Unknown source {source.id!r} ({source.name}), skipping", file=sys.stderr)
            continue
        selected.append(source)
    return selected


def select_sources(
    source_ids: Sequence[str],
    sources: Sequence[FilterSource] = RULE_SOURCES,
) -> list[FilterSource]:
    """
    Restrict a registry to the given ids and force them enabled.

    Raises:
        ValueError: if an id is not registered
    """
    by_id = {source.id: source for source in sources}
    missing = [source_id for source_id in source_ids if source_id not in by_id]
    if missing:
        raise ValueError(f"Unknown source id(s): {', '.join(missing)}")
    wanted = set(source_ids)
    return [source._replace(enabled=True) for source in sources if source.id in wanted]


async def fetch_and_merge_all(
    sources: Sequence[FilterSource] = RULE_SOURCES,
    *,
    fetch: Fetcher | None = None,
    max_rules: int = MAX_RULES,
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: int = DEFAULT_TIMEOUT,
) -> MergeOutcome:
    """
    Fetch, parse and merge every enabled source.

    Raises:
        SourceUnavailableError: if no source produced a rule set
    """
    selected = enabled_sources(sources)
    results = await fetch_all(
        [source.location for source in selected],
        fetch=fetch,
        concurrency=concurrency,
        timeout=timeout,
    )

    rule_sets: list[list[NetworkRule]] = []
    reports: list[SourceReport] = []

    for source, result in zip(selected, results):
        print(f"\n[Source: {source.name}]")
        if not result.success:
            print(f"Warning: Could not fetch {source.name} ({source.location}): {result.error}", file=sys.stderr)
            reports.append(SourceReport(source, error=result.error))
            continue

        parser = SOURCE_PARSERS[source.id]
        rules, parse_stats = parser(split_lines(result.text), max_rules)
        print(f"   Parsed {len(rules):,} blocking rules")
        if VERBOSE:
            print(f"   Lines read: {parse_stats.lines_read:,}, skipped: {parse_stats.total_skipped:,}")
            if parse_stats.duplicate_pruned:
                print(f"   Duplicates skipped: {parse_stats.duplicate_pruned:,}")
            if parse_stats.capped:
                print(f"   Stopped at the {max_rules:,} rule cap")

        rule_sets.append(rules)
        reports.append(SourceReport(source, rules=len(rules), parse_stats=parse_stats))

    if not rule_sets:
        if not selected:
            raise SourceUnavailableError("No enabled filter list sources configured")
        failed = ", ".join(f"{r.source.name} ({r.error})" for r in reports)
        raise SourceUnavailableError(f"Could not load any filter list source: {failed}")

    print("\n[Merging sources]")
    merged, merge_stats = merge_rules(rule_sets, max_rules)
    if merge_stats.duplicate_pruned:
        print(f"   Removed {merge_stats.duplicate_pruned:,} duplicates across sources")
    if merge_stats.cap_pruned:
        print(f"   Dropped {merge_stats.cap_pruned:,} rules over the {max_rules:,} rule cap")

    return MergeOutcome(merged, merge_stats, reports)
