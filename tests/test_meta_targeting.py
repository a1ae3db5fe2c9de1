from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from adagent.services.meta_targeting import (
    OBJECTIVE_MAP,
    budget_to_minor_units,
    build_targeting,
    format_meta_datetime,
    map_objective,
    map_optimization_goal,
    parse_age_range,
    parse_countries,
    parse_genders,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("sales", "OUTCOME_SALES"),
        ("Leads", "OUTCOME_LEADS"),
        ("  traffic ", "OUTCOME_TRAFFIC"),
        ("awareness", "OUTCOME_AWARENESS"),
        ("engagement", "OUTCOME_ENGAGEMENT"),
        ("app_promotion", "OUTCOME_APP_PROMOTION"),
        ("unknown", "OUTCOME_SALES"),
        ("", "OUTCOME_SALES"),
        (None, "OUTCOME_SALES"),
    ],
)
def test_map_objective(value, expected):
    assert map_objective(value) == expected


def test_objective_map_is_read_only():
    with pytest.raises(TypeError):
        OBJECTIVE_MAP["sales"] = "OUTCOME_LEADS"  # type: ignore[index]


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Increase sales", "OFFSITE_CONVERSIONS"),
        ("maximize conversions", "OFFSITE_CONVERSIONS"),
        ("Link Clicks", "LINK_CLICKS"),
        ("impressions", "IMPRESSIONS"),
        ("reach", "REACH"),
        ("landing page views", "LANDING_PAGE_VIEWS"),
        ("leads", "LEAD_GENERATION"),
        ("something else", "OFFSITE_CONVERSIONS"),
        (None, "OFFSITE_CONVERSIONS"),
    ],
)
def test_map_optimization_goal(value, expected):
    assert map_optimization_goal(value) == expected


def test_parse_countries_maps_names_and_keeps_two_letter_codes():
    assert parse_countries("Egypt, saudi arabia, fr, Atlantis") == ["EG", "SA", "FR"]


def test_parse_countries_defaults_to_egypt():
    assert parse_countries("") == ["EG"]
    assert parse_countries(None) == ["EG"]
    assert parse_countries("Atlantis, Narnia") == ["EG"]


@pytest.mark.parametrize(
    "value,expected",
    [
        ("25-45", (25, 45)),
        ("18 – 34", (18, 34)),
        ("ages 30 - 50 mostly", (30, 50)),
        ("adults", (18, 65)),
        (None, (18, 65)),
    ],
)
def test_parse_age_range(value, expected):
    assert parse_age_range(value) == expected


def test_parse_genders():
    assert parse_genders("Male") == [1]
    assert parse_genders("women") == [2]
    assert parse_genders("all") is None
    assert parse_genders(None) is None


def test_build_targeting_with_full_brief():
    targeting = build_targeting(
        {"target_locations": "Egypt, UAE", "age_range": "25-45", "gender": "female"}
    )

    assert targeting == {
        "geo_locations": {"countries": ["EG", "AE"]},
        "age_min": 25,
        "age_max": 45,
        "genders": [2],
        "targeting_automation": {"advantage_audience": 1},
    }


def test_build_targeting_falls_back_to_operating_countries_and_defaults():
    targeting = build_targeting({"operating_countries": "Germany"})

    assert targeting["geo_locations"] == {"countries": ["DE"]}
    assert (targeting["age_min"], targeting["age_max"]) == (18, 65)
    assert "genders" not in targeting
    assert targeting["targeting_automation"] == {"advantage_audience": 1}


def test_build_targeting_empty_brief():
    targeting = build_targeting({})

    assert targeting["geo_locations"] == {"countries": ["EG"]}
    assert "genders" not in targeting


@pytest.mark.parametrize(
    "amount,expected",
    [
        (Decimal("50.00"), 5000),
        ("10.005", 1001),
        (12.345, 1235),
        (7, 700),
        (Decimal("0"), 0),
    ],
)
def test_budget_to_minor_units(amount, expected):
    assert budget_to_minor_units(amount) == expected


@pytest.mark.parametrize("amount", ["-1", "abc", "NaN", Decimal("1e30")])
def test_budget_to_minor_units_rejects_invalid(amount):
    with pytest.raises(ValueError):
        budget_to_minor_units(amount)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2025-01-01T00:00:00Z", "2025-01-01T00:00:00+00:00"),
        ("2025-01-01T02:30:00+02:00", "2025-01-01T00:30:00+00:00"),
        ("2025-01-01", "2025-01-01T00:00:00+00:00"),
        ("2025-01-01T10:15:30.123456", "2025-01-01T10:15:30+00:00"),
        (datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc), "2025-03-04T05:06:07+00:00"),
        (date(2025, 3, 4), "2025-03-04T00:00:00+00:00"),
    ],
)
def test_format_meta_datetime(value, expected):
    assert format_meta_datetime(value) == expected


def test_format_meta_datetime_passes_through_unparseable_values():
    assert format_meta_datetime("next tuesday") == "next tuesday"
