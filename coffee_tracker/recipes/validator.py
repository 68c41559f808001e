"""
Recipe write-path rules: input transform, field lengths, required fields.

All three functions operate on the raw camelCase request body (a plain dict)
BEFORE RecipeInput structural validation runs, so a request with several
problems gets every one of them back in a single 400 response.

FIELD_LENGTH_LIMITS is the single source of varchar ceilings for both create
and update; it mirrors migration 001_initial_schema and must be bumped with it.
"""
from __future__ import annotations

import copy
import logging
import math
from collections.abc import Mapping
from datetime import date
from typing import Any, Optional

from coffee_tracker.recipes.brewing import calculate_coffee_water_ratio, calculate_extraction_yield

logger = logging.getLogger(__name__)

FIELD_LENGTH_LIMITS_VERSION = "001_initial_schema"

# Dot-notation path in the request body → varchar ceiling (characters).
FIELD_LENGTH_LIMITS: dict[str, int] = {
    "recipeName": 200,
    "beanInfo.origin": 100,
    "beanInfo.processingMethod": 50,
    "beanInfo.coffeeBeanBrand": 100,
    "beanInfo.roastingLevel": 20,
    "brewingParameters.brewingMethod": 50,
    "brewingParameters.grinderModel": 100,
    "brewingParameters.grinderUnit": 50,
    "brewingParameters.filteringTools": 100,
    "brewingParameters.turbulence": 200,     # only when stored as free text
    "sensationRecord.evaluationSystem": 20,
}

RECIPE_NAME_MAX_LENGTH = FIELD_LENGTH_LIMITS["recipeName"]
_ELLIPSIS = "..."
_FALLBACK_NAME = "Unknown Recipe"

# Keys owned by the server; clients echo them back on update.
_SERVER_OWNED_KEYS = ("recipeId", "dateCreated", "dateModified")

# (path, label) pairs checked by validate_required_fields()
_REQUIRED_POSITIVE_NUMBERS: list[tuple[str, str]] = [
    ("measurements.coffeeBeans", "Coffee beans amount"),
    ("measurements.water", "Water amount"),
]
_REQUIRED_STRINGS: list[tuple[str, str]] = [
    ("brewingParameters.grinderModel", "Grinder model"),
    ("brewingParameters.grinderUnit", "Grinder setting"),
    ("beanInfo.origin", "Coffee origin"),
    ("beanInfo.processingMethod", "Processing method"),
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _lookup(data: Any, path: str) -> Any:
    """Follow a dot path through nested mappings; None when any hop is missing."""
    value = data
    for key in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _is_positive_number(value: Any) -> bool:
    # JSON true/false must not pass as 1/0
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number > 0


def _is_non_blank_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _generated_name(origin: Any, on: date) -> str:
    """Build '<origin> - YYYY-MM-DD', truncating origin with '...' to fit the column."""
    date_suffix = f" - {on.isoformat()}"
    if not _is_non_blank_string(origin):
        return f"{_FALLBACK_NAME}{date_suffix}"

    origin = origin.strip()
    name = f"{origin}{date_suffix}"
    if len(name) <= RECIPE_NAME_MAX_LENGTH:
        return name

    max_origin = RECIPE_NAME_MAX_LENGTH - len(date_suffix) - len(_ELLIPSIS)
    truncated = f"{origin[:max_origin]}{_ELLIPSIS}{date_suffix}"
    logger.debug("Generated recipe name truncated to %d chars", len(truncated))
    return truncated


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def transform_recipe_input(raw: Mapping[str, Any], today: Optional[date] = None) -> dict[str, Any]:
    """
    Fill in derived and defaulted fields on a raw recipe body.

    - coffeeWaterRatio computed (water / coffee, 2 dp) when missing
    - extractionYield computed when missing and dose, beverage weight, TDS are positive
    - recipeName generated from origin and date when blank

    A provided recipeName is trimmed but never truncated, so the length
    validator still sees an over-long name. The input mapping is not mutated.
    """
    data: dict[str, Any] = copy.deepcopy(dict(raw))
    for key in _SERVER_OWNED_KEYS:
        data.pop(key, None)

    measurements = data.get("measurements")
    if isinstance(measurements, dict):
        if not measurements.get("coffeeWaterRatio"):
            ratio = calculate_coffee_water_ratio(measurements.get("coffeeBeans"), measurements.get("water"))
            if ratio is not None:
                measurements["coffeeWaterRatio"] = ratio
        if not measurements.get("extractionYield"):
            extraction_yield = calculate_extraction_yield(
                measurements.get("coffeeBeans"),
                measurements.get("brewedCoffeeWeight"),
                measurements.get("tds"),
            )
            if extraction_yield is not None:
                measurements["extractionYield"] = extraction_yield

    name = data.get("recipeName")
    if _is_non_blank_string(name):
        data["recipeName"] = name.strip()
    else:
        data["recipeName"] = _generated_name(_lookup(data, "beanInfo.origin"), today or date.today())

    return data


def validate_field_lengths(data: Mapping[str, Any]) -> list[str]:
    """
    Check every string in FIELD_LENGTH_LIMITS against its varchar ceiling.

    Non-string values are skipped (structured turbulence steps, absent fields);
    type problems are RecipeInput's job.

    Returns:
        e.g. ["Field 'recipeName' is too long (201 chars, limit: 200)"]; empty = valid.
    """
    violations: list[str] = []
    for path, limit in FIELD_LENGTH_LIMITS.items():
        value = _lookup(data, path)
        if isinstance(value, str) and len(value) > limit:
            violations.append(f"Field '{path}' is too long ({len(value)} chars, limit: {limit})")
    if violations:
        logger.info("Field length validation failed: %d violation(s)", len(violations))
    return violations


def validate_required_fields(data: Mapping[str, Any]) -> list[str]:
    """
    Check the six NOT NULL business fields.

    coffeeBeans and water must be finite numbers > 0 (numeric strings are
    accepted, booleans are not). Grinder model/setting, origin and processing
    method must be non-blank strings.
    """
    violations: list[str] = []
    for path, label in _REQUIRED_POSITIVE_NUMBERS:
        if not _is_positive_number(_lookup(data, path)):
            violations.append(f"{label} ({path}) is required and must be a positive number")
    for path, label in _REQUIRED_STRINGS:
        if not _is_non_blank_string(_lookup(data, path)):
            violations.append(f"{label} ({path}) is required")
    if violations:
        logger.info("Required field validation failed: %d violation(s)", len(violations))
    return violations


__all__ = [
    "FIELD_LENGTH_LIMITS",
    "FIELD_LENGTH_LIMITS_VERSION",
    "transform_recipe_input",
    "validate_field_lengths",
    "validate_required_fields",
]
