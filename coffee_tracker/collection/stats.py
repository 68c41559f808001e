"""
Collection statistics — pure function over the member recipes' summaries.

averageOverallImpression is taken over rated recipes only (unrated recipes
would otherwise drag the mean toward zero) and rounded to 2 dp. Ties for
"most used" go to the value seen first, i.e. the newest recipe, since
summaries arrive newest first.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Optional

from coffee_tracker.collection.schemas import CollectionStats
from coffee_tracker.recipes.schemas import RecipeSummary


def _most_common(values: list[Optional[str]]) -> Optional[str]:
    present = [v for v in values if v]
    if not present:
        return None
    # Counter.most_common keeps first-seen order among equal counts
    return Counter(present).most_common(1)[0][0]


def calculate_collection_stats(
    recipes: Sequence[RecipeSummary],
    last_assigned_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> CollectionStats:
    last_activity = last_assigned_at or now or datetime.now(timezone.utc)
    if not recipes:
        return CollectionStats(last_activity_date=last_activity)

    ratings = [r.overall_impression for r in recipes if r.overall_impression is not None]
    average = round(sum(ratings) / len(ratings), 2) if ratings else 0.0

    created = sorted(r.date_created for r in recipes)

    return CollectionStats(
        total_recipes=len(recipes),
        average_overall_impression=average,
        most_used_brewing_method=_most_common([r.brewing_method for r in recipes]),
        most_used_origin=_most_common([r.origin for r in recipes]),
        date_range_start=created[0],
        date_range_end=created[-1],
        last_activity_date=last_activity,
    )


__all__ = ["calculate_collection_stats"]
