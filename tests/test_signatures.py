"""Tests for CMP signature generation."""

from __future__ import annotations

import locale
from datetime import datetime, timedelta, timezone

import pytest

from ghost_rejector.signatures import (
    build_cookiebot_cookie_value,
    build_onetrust_cookie_value,
    format_datestamp,
    generate_cmp_signatures,
    unix_millis,
)

# 2025-01-15 12:30:45 UTC
FIXED_SECONDS = 1736944245


def test_onetrust_cookie_value_format(fixed_now: datetime) -> None:
    assert build_onetrust_cookie_value(fixed_now) == (
        "isGpcEnabled=0"
        "&datestamp=Wed+Jan+15+2025+12:30:45+GMT+0000+(UTC)"
        "&version=202501.1.0"
        "&browserGpcFlag=0"
        "&isIABGlobal=false"
        "&hosts="
        f"&consentId=ghost-rejector-{FIXED_SECONDS}"
        "&interactionCount=1"
        "&landingPath=NotLandingPage"
        "&groups=1:1,2:0,3:0,4:0"
    )


def test_onetrust_datestamp_uses_local_offset() -> None:
    moment = datetime(2025, 7, 1, 9, 5, 7, tzinfo=timezone(timedelta(hours=2), "CEST"))

    value = build_onetrust_cookie_value(moment)

    assert "&datestamp=Tue+Jul+01+2025+09:05:07+GMT+0200+(CEST)&" in value


def test_cookiebot_cookie_value_format(fixed_now: datetime) -> None:
    assert build_cookiebot_cookie_value(fixed_now) == (
        "{stamp:'ghost-rejector',necessary:true,preferences:false,statistics:false,"
        f"marketing:false,method:'explicit',ver:1,utc:{FIXED_SECONDS * 1000},region:'eu'}}"
    )


def test_unix_millis_truncates() -> None:
    moment = datetime(1970, 1, 1, 0, 0, 1, 999_999, tzinfo=timezone.utc)
    assert unix_millis(moment) == 1999


def test_generate_cmp_signatures(fixed_now: datetime) -> None:
    onetrust, cookiebot = generate_cmp_signatures(fixed_now)

    assert onetrust.id == "onetrust"
    assert onetrust.name == "OneTrust"
    assert onetrust.cookie.name == "OptanonConsent"
    assert "window.OneTrust" in onetrust.detectors
    assert "#onetrust-banner-sdk" in onetrust.hide_selectors

    assert cookiebot.id == "cookiebot"
    assert cookiebot.cookie.name == "CookieConsent"
    assert cookiebot.detectors == ("window.Cookiebot", "#CybotCookiebotDialog", "#CookiebotWidget")


def test_signature_to_dict_shape(fixed_now: datetime) -> None:
    data = generate_cmp_signatures(fixed_now)[1].to_dict()

    assert list(data) == ["id", "name", "detectors", "cookie", "hideSelectors"]
    assert data["cookie"] == {
        "name": "CookieConsent",
        "value": build_cookiebot_cookie_value(fixed_now),
    }
    assert data["hideSelectors"] == [
        "#CybotCookiebotDialog",
        "#CookiebotWidget",
        ".CybotCookiebotDialogBodyButton",
    ]


def test_signatures_are_deterministic_for_fixed_instant(fixed_now: datetime) -> None:
    first = [s.to_dict() for s in generate_cmp_signatures(fixed_now)]
    second = [s.to_dict() for s in generate_cmp_signatures(fixed_now)]
    assert first == second


def test_default_instant_is_now() -> None:
    before = datetime.now(timezone.utc)
    value = build_cookiebot_cookie_value()
    after = datetime.now(timezone.utc)

    utc = int(value.split("utc:")[1].split(",")[0])
    assert unix_millis(before) <= utc <= unix_millis(after)


def test_datestamp_names_for_every_month() -> None:
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    # 2024-01-01 .. 2024-12-01 fall on these weekdays
    weekdays = ["Mon", "Thu", "Fri", "Mon", "Wed", "Sat", "Mon", "Thu", "Sun", "Tue", "Fri", "Sun"]

    for month, (month_name, weekday) in enumerate(zip(months, weekdays), start=1):
        moment = datetime(2024, month, 1, tzinfo=timezone.utc)
        assert format_datestamp(moment) == f"{weekday}+{month_name}+01+2024+00:00:00+GMT+0000+(UTC)"


@pytest.mark.parametrize("name", ["de_DE.UTF-8", "fr_FR.UTF-8", "de_DE", "fr_FR"])
def test_datestamp_ignores_process_locale(name: str, fixed_now: datetime) -> None:
    saved = locale.setlocale(locale.LC_TIME)
    try:
        locale.setlocale(locale.LC_TIME, name)
    except locale.Error:
        pytest.skip(f"locale {name} not installed")
    try:
        value = build_onetrust_cookie_value(fixed_now)
    finally:
        locale.setlocale(locale.LC_TIME, saved)

    assert "&datestamp=Wed+Jan+15+2025+12:30:45+GMT+0000+(UTC)&" in value
