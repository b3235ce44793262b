#!/usr/bin/env python3
"""
rules.py - Declarative Network Rule Model

Rules produced here are consumed by the browser's declarativeNetRequest engine,
so the JSON shape returned by ``to_dict()`` is a fixed contract:

    {
      "id": 1,
      "priority": 1,
      "action": {"type": "block"},
      "condition": {"urlFilter": "*ads.example.com*", "resourceTypes": [...]}
    }

ID LAYOUT:
    Blocking rules are numbered 1..max_rules. The Global Privacy Control header
    rule always takes reserved_rule_id(max_rules), which sits above every id a
    blocking rule can get.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final


# ============================================================================
# CONFIGURATION
# ============================================================================

#: Maximum number of blocking rules taken from a single source
MAX_RULES: Final[int] = 5000

ACTION_BLOCK: Final[str] = "block"
ACTION_MODIFY_HEADERS: Final[str] = "modifyHeaders"

HEADER_OPERATIONS: Final[frozenset[str]] = frozenset({"set", "remove", "append"})

#: Resource types a tracker block applies to. main_frame/sub_frame are left out
#: so the page itself still loads.
BLOCK_RESOURCE_TYPES: Final[tuple[str, ...]] = (
    "script",
    "image",
    "xmlhttprequest",
    "other",
    "stylesheet",
    "font",
    "media",
)

GPC_HEADER: Final[str] = "Sec-GPC"
GPC_RESOURCE_TYPES: Final[tuple[str, ...]] = ("main_frame", "sub_frame")


def reserved_rule_id(max_rules: int = MAX_RULES) -> int:
    """Id reserved for the supplementary header rule, above any blocking id."""
    return max_rules + 1


GPC_RULE_ID: Final[int] = reserved_rule_id(MAX_RULES)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class RequestHeader:
    """A single request header modification."""
    header: str
    operation: str
    value: str = ""

    def __post_init__(self) -> None:
        if self.operation not in HEADER_OPERATIONS:
            raise ValueError(
                f"Unsupported header operation {self.operation!r} for {self.header}"
            )

    def to_dict(self) -> dict[str, str]:
        return {"header": self.header, "operation": self.operation, "value": self.value}


@dataclass(frozen=True)
class RuleAction:
    """What to do with a matched request: block it or rewrite its headers."""
    type: str
    request_headers: tuple[RequestHeader, ...] = ()

    def __post_init__(self) -> None:
        if self.type not in (ACTION_BLOCK, ACTION_MODIFY_HEADERS):
            raise ValueError(f"Unknown rule action: {self.type!r}")
        if self.type == ACTION_BLOCK and self.request_headers:
            raise ValueError("Block actions carry no header operations")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.request_headers:
            data["requestHeaders"] = [h.to_dict() for h in self.request_headers]
        return data


@dataclass(frozen=True)
class RuleCondition:
    """When a rule applies."""
    url_filter: str = ""
    resource_types: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.url_filter:
            data["urlFilter"] = self.url_filter
        if self.resource_types:
            data["resourceTypes"] = list(self.resource_types)
        return data


@dataclass(frozen=True)
class NetworkRule:
    """A compiled rule, immutable once created."""
    id: int
    priority: int
    action: RuleAction
    condition: RuleCondition

    def __post_init__(self) -> None:
        if self.id < 1:
            raise ValueError(f"Rule id must be positive, got {self.id}")

    @property
    def is_block(self) -> bool:
        return self.action.type == ACTION_BLOCK

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority,
            "action": self.action.to_dict(),
            "condition": self.condition.to_dict(),
        }


# ============================================================================
# RULE CONSTRUCTORS
# ============================================================================

def create_block_rule(rule_id: int, domain: str) -> NetworkRule:
    """
    Create a blocking rule for every request to a domain.

    Example:
        >>> create_block_rule(1, "ads.example.com").condition.url_filter
        '*ads.example.com*'
    """
    return NetworkRule(
        id=rule_id,
        priority=1,
        action=RuleAction(ACTION_BLOCK),
        condition=RuleCondition(
            url_filter=f"*{domain}*",
            resource_types=BLOCK_RESOURCE_TYPES,
        ),
    )


def create_gpc_rule(max_rules: int = MAX_RULES) -> NetworkRule:
    """
    Create the rule that sends ``Sec-GPC: 1`` with every page request.

    GPC tells sites the user does not consent to sale or sharing of their data.
    """
    return NetworkRule(
        id=reserved_rule_id(max_rules),
        priority=1,
        action=RuleAction(
            ACTION_MODIFY_HEADERS,
            (RequestHeader(GPC_HEADER, "set", "1"),),
        ),
        condition=RuleCondition(resource_types=GPC_RESOURCE_TYPES),
    )
