"""
Tests for calculate_collection_stats() — pure function, no database.
"""
from datetime import datetime, timedelta, timezone

from coffee_tracker.collection.stats import calculate_collection_stats
from coffee_tracker.recipes.schemas import RecipeSummary

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


def _summary(n: int, origin: str = "Kenya", brewing_method: str | None = "pour-over", overall: int | None = 8) -> RecipeSummary:
    created = NOW - timedelta(days=n)
    return RecipeSummary(
        recipe_id=f"r{n}",
        recipe_name=f"Recipe {n}",
        date_created=created,
        date_modified=created,
        is_favorite=False,
        origin=origin,
        brewing_method=brewing_method,
        overall_impression=overall,
        evaluation_system="legacy",
    )


def test_empty_collection() -> None:
    stats = calculate_collection_stats([], now=NOW)
    assert stats.total_recipes == 0
    assert stats.average_overall_impression == 0.0
    assert stats.most_used_origin is None
    assert stats.date_range_start is None
    assert stats.last_activity_date == NOW


def test_last_activity_prefers_latest_assignment() -> None:
    assigned = NOW - timedelta(hours=2)
    stats = calculate_collection_stats([_summary(1)], last_assigned_at=assigned, now=NOW)
    assert stats.last_activity_date == assigned


def test_average_ignores_unrated_recipes() -> None:
    stats = calculate_collection_stats([_summary(1, overall=9), _summary(2, overall=None), _summary(3, overall=6)])
    assert stats.average_overall_impression == 7.5


def test_average_rounds_to_two_places() -> None:
    stats = calculate_collection_stats([_summary(1, overall=7), _summary(2, overall=8), _summary(3, overall=8)])
    assert stats.average_overall_impression == 7.67


def test_all_unrated_average_is_zero() -> None:
    stats = calculate_collection_stats([_summary(1, overall=None)])
    assert stats.average_overall_impression == 0.0


def test_most_used_values() -> None:
    recipes = [
        _summary(1, origin="Kenya", brewing_method="aeropress"),
        _summary(2, origin="Colombia", brewing_method="pour-over"),
        _summary(3, origin="Colombia", brewing_method="pour-over"),
    ]
    stats = calculate_collection_stats(recipes)
    assert stats.most_used_origin == "Colombia"
    assert stats.most_used_brewing_method == "pour-over"


def test_most_used_tie_goes_to_newest() -> None:
    recipes = [_summary(1, origin="Kenya"), _summary(2, origin="Colombia")]
    assert calculate_collection_stats(recipes).most_used_origin == "Kenya"


def test_missing_brewing_methods_are_ignored() -> None:
    recipes = [_summary(1, brewing_method=None), _summary(2, brewing_method=None), _summary(3, brewing_method="siphon")]
    assert calculate_collection_stats(recipes).most_used_brewing_method == "siphon"


def test_date_range() -> None:
    recipes = [_summary(1), _summary(10), _summary(4)]
    stats = calculate_collection_stats(recipes)
    assert stats.total_recipes == 3
    assert stats.date_range_start == NOW - timedelta(days=10)
    assert stats.date_range_end == NOW - timedelta(days=1)
