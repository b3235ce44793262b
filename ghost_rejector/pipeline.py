#!/usr/bin/env python3
"""
pipeline.py

Main build pipeline for the extension's rule files.

Usage:
    python -m ghost_rejector.pipeline [--rules-out PATH] [--signatures-out PATH]

Pipeline stages:
1. Fetch every enabled filter list, parse and merge it into blocking rules
2. Append the Global Privacy Control header rule
3. Generate CMP signatures
4. Write net_rules.json and signatures.json

Nothing is written when stage 1 fails.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
import time
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from ghost_rejector import sources as source_registry
from ghost_rejector.downloader import DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT, Fetcher
from ghost_rejector.rules import MAX_RULES, create_gpc_rule
from ghost_rejector.signatures import generate_cmp_signatures
from ghost_rejector.sources import RULE_SOURCES, FilterSource, fetch_and_merge_all, select_sources
from ghost_rejector.writer import save_json


DEFAULT_RULES_OUT = "../extension/rules/net_rules.json"
DEFAULT_SIGNATURES_OUT = "../extension/rules/signatures.json"


async def build(
    rules_out: str | Path = DEFAULT_RULES_OUT,
    signatures_out: str | Path = DEFAULT_SIGNATURES_OUT,
    *,
    sources: Sequence[FilterSource] = RULE_SOURCES,
    fetch: Fetcher | None = None,
    max_rules: int = MAX_RULES,
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: int = DEFAULT_TIMEOUT,
    now: datetime | None = None,
) -> dict[str, int]:
    """
    Run the full build.

    Returns:
        Statistics dictionary

    Raises:
        SourceUnavailableError: if no source produced rules
        PersistenceError: if an output file can't be written
    """
    stats = {
        "sources_enabled": 0,
        "sources_loaded": 0,
        "sources_failed": 0,
        "rules_parsed": 0,
        "duplicate_pruned": 0,
        "cap_pruned": 0,
        "blocking_rules": 0,
        "network_rules": 0,
        "signatures": 0,
    }

    # =========================================================================
    # Stage 1: Fetch, parse and merge filter lists
    # =========================================================================
    print("📥 [1/4] Fetching filter lists...")
    outcome = await fetch_and_merge_all(
        sources,
        fetch=fetch,
        max_rules=max_rules,
        concurrency=concurrency,
        timeout=timeout,
    )
    stats["sources_enabled"] = len(outcome.reports)
    stats["sources_loaded"] = sum(1 for r in outcome.reports if r.ok)
    stats["sources_failed"] = stats["sources_enabled"] - stats["sources_loaded"]
    stats["rules_parsed"] = outcome.stats.total_input
    stats["duplicate_pruned"] = outcome.stats.duplicate_pruned
    stats["cap_pruned"] = outcome.stats.cap_pruned
    stats["blocking_rules"] = len(outcome.rules)
    print(f"   Merged {len(outcome.rules):,} blocking rules")

    # =========================================================================
    # Stage 2: GPC header rule
    # =========================================================================
    print("🛡️  [2/4] Adding GPC header rule...")
    rules = [*outcome.rules, create_gpc_rule(max_rules)]
    stats["network_rules"] = len(rules)

    # =========================================================================
    # Stage 3: CMP signatures
    # =========================================================================
    print("🍪 [3/4] Generating CMP signatures...")
    signatures = generate_cmp_signatures(now)
    stats["signatures"] = len(signatures)

    # =========================================================================
    # Stage 4: Write output
    # =========================================================================
    print("💾 [4/4] Saving files...")
    await save_json(rules_out, [rule.to_dict() for rule in rules])
    await save_json(signatures_out, [signature.to_dict() for signature in signatures])

    return stats


def print_summary(stats: dict[str, int], rules_out: str, signatures_out: str) -> None:
    """Print formatted summary."""
    print("\n" + "=" * 60)
    print("📊 BUILD SUMMARY")
    print("=" * 60)
    print(f"\n📁 Sources: {stats['sources_loaded']}/{stats['sources_enabled']} loaded")
    if stats["sources_failed"]:
        print(f"   Failed:  {stats['sources_failed']}")
    print(f"\n📈 Rules:")
    print(f"   Parsed:             {stats['rules_parsed']:>10,}")
    print(f"   Cross-source dups:  {stats['duplicate_pruned']:>10,}")
    if stats["cap_pruned"]:
        print(f"   Over cap:           {stats['cap_pruned']:>10,}")
    print(f"   Blocking rules:     {stats['blocking_rules']:>10,}")
    print(f"   Network rules:      {stats['network_rules']:>10,}")
    print(f"\n🍪 CMP signatures:     {stats['signatures']:>10,}")
    print(f"\n📦 Output:")
    print(f"   {rules_out}")
    print(f"   {signatures_out}")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build declarative network rules and CMP signatures")
    parser.add_argument("--rules-out", default=DEFAULT_RULES_OUT, help="Output path for net_rules.json")
    parser.add_argument("--signatures-out", default=DEFAULT_SIGNATURES_OUT, help="Output path for signatures.json")
    parser.add_argument("--max-rules", type=int, default=MAX_RULES, help="Max blocking rules")
    parser.add_argument("--timeout", type=int, default=DEFAULT_TIMEOUT, help="Request timeout in seconds")
    parser.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY, help="Max concurrent downloads")
    parser.add_argument(
        "--source",
        action="append",
        dest="source_ids",
        metavar="ID",
        help="Only build from this source id (repeatable, enables disabled sources)",
    )
    parser.add_argument("--verbose", action="store_true", help="Print per-source detail")

    args = parser.parse_args(argv)
    if args.max_rules < 1:
        parser.error("--max-rules must be positive")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    source_registry.VERBOSE = args.verbose

    try:
        sources = select_sources(args.source_ids) if args.source_ids else RULE_SOURCES

        print("🚀 Ghost Rejector Builder")
        print("-" * 60)

        start_time = time.time()
        stats = asyncio.run(build(
            args.rules_out,
            args.signatures_out,
            sources=sources,
            max_rules=args.max_rules,
            concurrency=args.concurrency,
            timeout=args.timeout,
        ))
        total_time = time.time() - start_time

        print_summary(stats, args.rules_out, args.signatures_out)
        print(f"\n⏱️  Total time: {total_time:.1f}s")
        print("✅ Build completed successfully!")

        return 0

    except Exception as e:
        print(f"\n❌ ERROR: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
