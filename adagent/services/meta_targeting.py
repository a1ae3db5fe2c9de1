"""
Translate campaign-draft vocabulary and free-text brief fields into Meta Graph parameters.

Everything here is pure: no I/O, no logging, deterministic for a given input.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

DEFAULT_OBJECTIVE = "OUTCOME_SALES"
DEFAULT_OPTIMIZATION_GOAL = "OFFSITE_CONVERSIONS"
DEFAULT_COUNTRY_CODE = "EG"
DEFAULT_AGE_MIN = 18
DEFAULT_AGE_MAX = 65

GENDER_MALE = 1
GENDER_FEMALE = 2

OBJECTIVE_MAP: Mapping[str, str] = MappingProxyType(
    {
        "sales": "OUTCOME_SALES",
        "leads": "OUTCOME_LEADS",
        "traffic": "OUTCOME_TRAFFIC",
        "awareness": "OUTCOME_AWARENESS",
        "engagement": "OUTCOME_ENGAGEMENT",
        "app_promotion": "OUTCOME_APP_PROMOTION",
    }
)

OPTIMIZATION_GOAL_MAP: Mapping[str, str] = MappingProxyType(
    {
        "increase sales": "OFFSITE_CONVERSIONS",
        "maximize conversions": "OFFSITE_CONVERSIONS",
        "link clicks": "LINK_CLICKS",
        "impressions": "IMPRESSIONS",
        "reach": "REACH",
        "landing page views": "LANDING_PAGE_VIEWS",
        "leads": "LEAD_GENERATION",
    }
)

COUNTRY_CODES: Mapping[str, str] = MappingProxyType(
    {
        "egypt": "EG",
        "saudi arabia": "SA",
        "uae": "AE",
        "united arab emirates": "AE",
        "usa": "US",
        "united states": "US",
        "uk": "GB",
        "united kingdom": "GB",
        "kuwait": "KW",
        "qatar": "QA",
        "bahrain": "BH",
        "oman": "OM",
        "jordan": "JO",
        "iraq": "IQ",
        "lebanon": "LB",
        "morocco": "MA",
        "tunisia": "TN",
        "algeria": "DZ",
        "libya": "LY",
        "sudan": "SD",
        "germany": "DE",
        "france": "FR",
        "italy": "IT",
        "spain": "ES",
        "canada": "CA",
        "australia": "AU",
        "india": "IN",
        "pakistan": "PK",
        "turkey": "TR",
        "nigeria": "NG",
        "south africa": "ZA",
        "brazil": "BR",
    }
)

# Hyphen or en-dash between the bounds.
_AGE_RANGE_RE = re.compile(r"(\d+)\s*[-–]\s*(\d+)")

_MALE_TERMS = frozenset({"male", "men"})
_FEMALE_TERMS = frozenset({"female", "women"})


def _normalize_keyword(value: Optional[str]) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().casefold()


def map_objective(value: Optional[str]) -> str:
    return OBJECTIVE_MAP.get(_normalize_keyword(value), DEFAULT_OBJECTIVE)


def map_optimization_goal(value: Optional[str]) -> str:
    return OPTIMIZATION_GOAL_MAP.get(_normalize_keyword(value), DEFAULT_OPTIMIZATION_GOAL)


def parse_countries(value: Optional[str]) -> list[str]:
    if not isinstance(value, str) or not value.strip():
        return [DEFAULT_COUNTRY_CODE]
    countries: list[str] = []
    for token in value.split(","):
        name = token.strip().lower()
        if not name:
            continue
        code = COUNTRY_CODES.get(name)
        if code is None and len(name) == 2:
            code = name.upper()
        if code is not None:
            countries.append(code)
    return countries or [DEFAULT_COUNTRY_CODE]


def parse_age_range(value: Optional[str]) -> tuple[int, int]:
    if isinstance(value, str):
        match = _AGE_RANGE_RE.search(value)
        if match:
            return int(match.group(1)), int(match.group(2))
    return DEFAULT_AGE_MIN, DEFAULT_AGE_MAX


def parse_genders(value: Optional[str]) -> Optional[list[int]]:
    term = _normalize_keyword(value)
    if term in _MALE_TERMS:
        return [GENDER_MALE]
    if term in _FEMALE_TERMS:
        return [GENDER_FEMALE]
    return None


def build_targeting(brief: Mapping[str, Any]) -> dict[str, Any]:
    locations = brief.get("target_locations") or brief.get("operating_countries")
    age_min, age_max = parse_age_range(brief.get("age_range"))

    targeting: dict[str, Any] = {
        "geo_locations": {"countries": parse_countries(locations)},
        "age_min": age_min,
        "age_max": age_max,
    }
    genders = parse_genders(brief.get("gender"))
    if genders is not None:
        targeting["genders"] = genders
    targeting["targeting_automation"] = {"advantage_audience": 1}
    return targeting


def budget_to_minor_units(amount: Union[Decimal, float, int, str]) -> int:
    """
    Convert a major-unit amount to the integer minor units Meta expects.

    Rounds half-up to two decimal places first, so 10.005 becomes 1001.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid budget amount: {amount!r}") from exc
    if not value.is_finite() or value < 0:
        raise ValueError(f"Invalid budget amount: {amount!r}")
    try:
        cents = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) * 100
    except InvalidOperation as exc:
        raise ValueError(f"Invalid budget amount: {amount!r}") from exc
    return int(cents)


def format_meta_datetime(value: Union[str, datetime, date]) -> Any:
    """
    Normalize to a UTC ISO-8601 timestamp. Unparseable strings are returned unchanged;
    Meta then rejects them at the ad-set step.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return value
    else:
        return value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).replace(microsecond=0).isoformat()
