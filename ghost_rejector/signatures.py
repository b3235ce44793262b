#!/usr/bin/env python3
"""
signatures.py - Consent Management Platform (CMP) Signatures

For each supported CMP this builds:
    - detectors:     globals and selectors that reveal the CMP on a page
    - cookie:        the consent cookie the CMP's own script would have written
                     had the user rejected every optional category
    - hideSelectors: banner / overlay / preference-center elements to hide

The cookie values are read by the CMP's unmodified script, so field names,
field order and separators must match its format exactly. Only the timestamp
changes between builds.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Final


CONSENT_STAMP: Final[str] = "ghost-rejector"

ONETRUST_VERSION: Final[str] = "202501.1.0"

#: Groups: 1 Strictly Necessary on; 2 Performance, 3 Functional, 4 Targeting off
ONETRUST_GROUPS: Final[str] = "1:1,2:0,3:0,4:0"

#: JavaScript Date.toString() layout after the day and month names, spaces as '+'.
#: Names come from the tables below; %a/%b would follow the process locale.
ONETRUST_DATESTAMP_FORMAT: Final[str] = "%d+%Y+%H:%M:%S+GMT%z+(%Z)"

_WEEKDAYS: Final[tuple[str, ...]] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS: Final[tuple[str, ...]] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class CMPCookie:
    name: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class CMPSignature:
    """Everything needed to detect and silence one CMP."""
    id: str
    name: str
    detectors: tuple[str, ...]
    cookie: CMPCookie
    hide_selectors: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "detectors": list(self.detectors),
            "cookie": self.cookie.to_dict(),
            "hideSelectors": list(self.hide_selectors),
        }


def _resolve_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    if now.tzinfo is None:
        return now.astimezone()
    return now


def unix_millis(moment: datetime) -> int:
    """Milliseconds since the epoch, truncated."""
    return (moment - _EPOCH) // timedelta(milliseconds=1)


def unix_seconds(moment: datetime) -> int:
    return (moment - _EPOCH) // timedelta(seconds=1)


# =============================================================================
# OneTrust
# =============================================================================

def format_datestamp(moment: datetime) -> str:
    """Format like Date.toString(), e.g. Wed+Jan+15+2025+12:30:45+GMT+0000+(UTC)."""
    weekday = _WEEKDAYS[moment.weekday()]
    month = _MONTHS[moment.month - 1]
    return f"{weekday}+{month}+{moment.strftime(ONETRUST_DATESTAMP_FORMAT)}"


def build_onetrust_cookie_value(now: datetime | None = None) -> str:
    """
    Build the OptanonConsent cookie value: URL-parameter style, '&' separated.

    Example:
        >>> moment = datetime(2025, 1, 15, 12, 30, 45, tzinfo=timezone.utc)
        >>> build_onetrust_cookie_value(moment).split("&")[1]
        'datestamp=Wed+Jan+15+2025+12:30:45+GMT+0000+(UTC)'
    """
    now = _resolve_now(now)
    datestamp = format_datestamp(now)
    return (
        "isGpcEnabled=0"
        f"&datestamp={datestamp}"
        f"&version={ONETRUST_VERSION}"
        "&browserGpcFlag=0"
        "&isIABGlobal=false"
        "&hosts="
        f"&consentId={CONSENT_STAMP}-{unix_seconds(now)}"
        "&interactionCount=1"
        "&landingPath=NotLandingPage"
        f"&groups={ONETRUST_GROUPS}"
    )


def create_onetrust_signature(now: datetime | None = None) -> CMPSignature:
    return CMPSignature(
        id="onetrust",
        name="OneTrust",
        detectors=(
            "window.OneTrust",
            "window.OptanonWrapper",
            "#onetrust-banner-sdk",
            "#onetrust-consent-sdk",
            ".optanon-alert-box-wrapper",
        ),
        cookie=CMPCookie("OptanonConsent", build_onetrust_cookie_value(now)),
        hide_selectors=(
            "#onetrust-banner-sdk",
            "#onetrust-consent-sdk",
            ".onetrust-pc-dark-filter",
            "#onetrust-pc-sdk",
            ".optanon-alert-box-wrapper",
            ".optanon-alert-box-bg",
            "div[class*='onetrust']",
            "div[id*='onetrust']",
            ".ot-sdk-container",
            ".ot-sdk-row",
        ),
    )


# =============================================================================
# Cookiebot
# =============================================================================

def build_cookiebot_cookie_value(now: datetime | None = None) -> str:
    """
    Build the CookieConsent cookie value.

    Looks like JSON but isn't (unquoted keys, single-quoted strings), so it is
    produced from a template rather than serialized.
    """
    utc = unix_millis(_resolve_now(now))
    return (
        f"{{stamp:'{CONSENT_STAMP}',necessary:true,preferences:false,"
        f"statistics:false,marketing:false,method:'explicit',ver:1,"
        f"utc:{utc},region:'eu'}}"
    )


def create_cookiebot_signature(now: datetime | None = None) -> CMPSignature:
    return CMPSignature(
        id="cookiebot",
        name="Cookiebot",
        detectors=(
            "window.Cookiebot",
            "#CybotCookiebotDialog",
            "#CookiebotWidget",
        ),
        cookie=CMPCookie("CookieConsent", build_cookiebot_cookie_value(now)),
        hide_selectors=(
            "#CybotCookiebotDialog",
            "#CookiebotWidget",
            ".CybotCookiebotDialogBodyButton",
        ),
    )


def generate_cmp_signatures(now: datetime | None = None) -> list[CMPSignature]:
    """One signature per supported CMP, all stamped with the same instant."""
    now = _resolve_now(now)
    return [
        create_onetrust_signature(now),
        create_cookiebot_signature(now),
    ]
