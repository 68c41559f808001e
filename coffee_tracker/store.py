"""
store.py — Data access facade for Coffee Tracker.

Provides a consistent, high-level API for persisting and retrieving domain objects.
All routes use these functions — no route touches SQLAlchemy directly.

Design principles:
  - All functions are async and accept an AsyncSession parameter
  - No raw SQL: ORM / Core expression queries only
  - flush() only; commit belongs to the get_db() dependency
  - Logs ids and counts only — never tasting notes or full recipe bodies
  - Returns domain Pydantic objects (not ORM instances) so callers are persistence-agnostic

The write path (normalize → score → remap → validate) has already run by the
time a RecipeInput reaches this module; nothing here re-derives sensory data.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_tracker.collection.schemas import (
    Collection,
    CollectionInput,
    CollectionSummary,
    CollectionUpdate,
)
from coffee_tracker.collection.stats import calculate_collection_stats
from coffee_tracker.models.collection import CollectionORM, recipe_collections
from coffee_tracker.models.recipe import RecipeORM
from coffee_tracker.recipes.schemas import Recipe, RecipeInput, RecipeSummary
from coffee_tracker.sensory.schemas import EvaluationSystem

logger = logging.getLogger(__name__)


class CollectionNameTakenError(Exception):
    """Raised when the unique index on collections.name rejects a write."""

    def __init__(self, name: str):
        super().__init__(f"Collection name '{name}' already exists")
        self.name = name


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Recipe mapping helpers
# ---------------------------------------------------------------------------

def _recipe_columns(recipe_input: RecipeInput) -> dict:
    """Scalar columns + JSON body, both derived from the same RecipeInput."""
    sensation = recipe_input.sensation_record
    evaluation_system = sensation.evaluation_system or EvaluationSystem.legacy
    return {
        "recipe_name": recipe_input.recipe_name,
        "is_favorite": recipe_input.is_favorite,
        "origin": recipe_input.bean_info.origin,
        "processing_method": recipe_input.bean_info.processing_method,
        "brewing_method": recipe_input.brewing_parameters.brewing_method,
        "evaluation_system": evaluation_system.value,
        "overall_impression": sensation.overall_impression,
        "recipe_data": recipe_input.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"collections"},
        ),
    }


def _to_recipe(orm: RecipeORM, collection_ids: list[str]) -> Recipe:
    return Recipe.model_validate({
        **orm.recipe_data,
        "recipeId": orm.id,
        "recipeName": orm.recipe_name,
        "isFavorite": orm.is_favorite,
        "dateCreated": orm.created_at,
        "dateModified": orm.updated_at,
        "collections": collection_ids,
    })


def _to_summary(orm: RecipeORM, collection_ids: list[str]) -> RecipeSummary:
    measurements = orm.recipe_data.get("measurements") or {}
    return RecipeSummary(
        recipe_id=orm.id,
        recipe_name=orm.recipe_name,
        date_created=orm.created_at,
        date_modified=orm.updated_at,
        is_favorite=orm.is_favorite,
        origin=orm.origin,
        brewing_method=orm.brewing_method,
        overall_impression=orm.overall_impression,
        coffee_water_ratio=measurements.get("coffeeWaterRatio"),
        evaluation_system=orm.evaluation_system,
        collections=collection_ids,
    )


async def _collection_ids_by_recipe(
    db: AsyncSession,
    recipe_ids: list[str],
) -> dict[str, list[str]]:
    if not recipe_ids:
        return {}
    rows = await db.execute(
        select(recipe_collections.c.recipe_id, recipe_collections.c.collection_id)
        .where(recipe_collections.c.recipe_id.in_(recipe_ids))
        .order_by(recipe_collections.c.assigned_at)
    )
    by_recipe: dict[str, list[str]] = {rid: [] for rid in recipe_ids}
    for recipe_id, collection_id in rows.all():
        by_recipe[recipe_id].append(collection_id)
    return by_recipe


async def _sync_recipe_collections(
    db: AsyncSession,
    recipe_id: str,
    collection_ids: list[str],
) -> None:
    """Make the recipe's memberships equal collection_ids; unknown ids are skipped."""
    wanted = list(dict.fromkeys(collection_ids))
    existing = set()
    if wanted:
        rows = await db.execute(select(CollectionORM.id).where(CollectionORM.id.in_(wanted)))
        existing = set(rows.scalars().all())
    unknown = [cid for cid in wanted if cid not in existing]
    if unknown:
        logger.warning("Skipping %d unknown collection id(s) for recipe_id=%s", len(unknown), recipe_id)

    current_rows = await db.execute(
        select(recipe_collections.c.collection_id).where(recipe_collections.c.recipe_id == recipe_id)
    )
    current = set(current_rows.scalars().all())

    stale = current - existing
    if stale:
        await db.execute(
            delete(recipe_collections).where(
                recipe_collections.c.recipe_id == recipe_id,
                recipe_collections.c.collection_id.in_(stale),
            )
        )
    now = _utcnow()
    for collection_id in wanted:
        if collection_id in existing and collection_id not in current:
            await db.execute(
                insert(recipe_collections).values(
                    recipe_id=recipe_id,
                    collection_id=collection_id,
                    assigned_at=now,
                )
            )


# ---------------------------------------------------------------------------
# Recipe operations
# ---------------------------------------------------------------------------

async def list_recipes(db: AsyncSession, favorites_only: bool = False) -> list[RecipeSummary]:
    """All recipes, newest first."""
    query = select(RecipeORM).order_by(RecipeORM.created_at.desc())
    if favorites_only:
        query = query.where(RecipeORM.is_favorite.is_(True))
    result = await db.execute(query)
    orms = list(result.scalars().all())
    memberships = await _collection_ids_by_recipe(db, [o.id for o in orms])
    return [_to_summary(o, memberships.get(o.id, [])) for o in orms]


async def count_recipes(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(RecipeORM))
    return int(result.scalar_one())


async def get_recipe(db: AsyncSession, recipe_id: str) -> Optional[Recipe]:
    """Returns None if no recipe found (caller raises 404)."""
    orm = await db.get(RecipeORM, recipe_id)
    if orm is None:
        return None
    memberships = await _collection_ids_by_recipe(db, [orm.id])
    return _to_recipe(orm, memberships[orm.id])


async def create_recipe(db: AsyncSession, recipe_input: RecipeInput) -> Recipe:
    now = _utcnow()
    orm = RecipeORM(created_at=now, updated_at=now, **_recipe_columns(recipe_input))
    db.add(orm)
    await db.flush()
    if "collections" in recipe_input.model_fields_set:
        await _sync_recipe_collections(db, orm.id, recipe_input.collections)
        await db.flush()
    logger.info(
        "Created recipe recipe_id=%s evaluation_system=%s",
        orm.id,
        orm.evaluation_system,
    )
    memberships = await _collection_ids_by_recipe(db, [orm.id])
    return _to_recipe(orm, memberships[orm.id])


async def update_recipe(
    db: AsyncSession,
    recipe_id: str,
    recipe_input: RecipeInput,
) -> Optional[Recipe]:
    """Full replacement of a recipe body. Returns None if the recipe does not exist."""
    orm = await db.get(RecipeORM, recipe_id)
    if orm is None:
        return None
    for column, value in _recipe_columns(recipe_input).items():
        setattr(orm, column, value)
    orm.updated_at = _utcnow()
    await db.flush()
    # Memberships are only replaced when the body names them
    if "collections" in recipe_input.model_fields_set:
        await _sync_recipe_collections(db, recipe_id, recipe_input.collections)
        await db.flush()
    logger.info(
        "Updated recipe recipe_id=%s evaluation_system=%s",
        recipe_id,
        orm.evaluation_system,
    )
    return await get_recipe(db, recipe_id)


async def set_recipe_favorite(
    db: AsyncSession,
    recipe_id: str,
    is_favorite: Optional[bool] = None,
) -> Optional[Recipe]:
    """Set isFavorite, or toggle it when is_favorite is None."""
    orm = await db.get(RecipeORM, recipe_id)
    if orm is None:
        return None
    orm.is_favorite = (not orm.is_favorite) if is_favorite is None else is_favorite
    orm.recipe_data = {**orm.recipe_data, "isFavorite": orm.is_favorite}
    orm.updated_at = _utcnow()
    await db.flush()
    logger.info("Recipe recipe_id=%s is_favorite=%s", recipe_id, orm.is_favorite)
    return await get_recipe(db, recipe_id)


async def delete_recipe(db: AsyncSession, recipe_id: str) -> bool:
    """
    Delete a recipe, its sensation record and its collection memberships.
    Membership rows are removed explicitly so SQLite (no FK enforcement by
    default) behaves like Postgres.
    """
    orm = await db.get(RecipeORM, recipe_id)
    if orm is None:
        return False
    await db.execute(delete(recipe_collections).where(recipe_collections.c.recipe_id == recipe_id))
    await db.delete(orm)
    await db.flush()
    logger.info("Deleted recipe recipe_id=%s", recipe_id)
    return True


# ---------------------------------------------------------------------------
# Collection operations
# ---------------------------------------------------------------------------

async def _member_recipe_ids(db: AsyncSession, collection_id: str) -> list[str]:
    rows = await db.execute(
        select(recipe_collections.c.recipe_id)
        .where(recipe_collections.c.collection_id == collection_id)
        .order_by(recipe_collections.c.assigned_at)
    )
    return list(rows.scalars().all())


async def _to_collection(db: AsyncSession, orm: CollectionORM) -> Collection:
    recipe_ids = await _member_recipe_ids(db, orm.id)

    summaries: list[RecipeSummary] = []
    if recipe_ids:
        rows = await db.execute(
            select(RecipeORM)
            .where(RecipeORM.id.in_(recipe_ids))
            .order_by(RecipeORM.created_at.desc())
        )
        summaries = [_to_summary(r, []) for r in rows.scalars().all()]

    last_assigned = await db.execute(
        select(func.max(recipe_collections.c.assigned_at))
        .where(recipe_collections.c.collection_id == orm.id)
    )

    return Collection(
        collection_id=orm.id,
        name=orm.name,
        description=orm.description,
        color=orm.color,
        is_private=orm.is_private,
        is_default=orm.is_default,
        tags=list(orm.tags or []),
        date_created=orm.created_at,
        date_modified=orm.updated_at,
        recipe_ids=recipe_ids,
        stats=calculate_collection_stats(summaries, last_assigned.scalar_one_or_none()),
    )


async def list_collections(db: AsyncSession) -> list[CollectionSummary]:
    """All collections, alphabetical, each with its member count."""
    counts = (
        select(
            recipe_collections.c.collection_id,
            func.count().label("recipe_count"),
        )
        .group_by(recipe_collections.c.collection_id)
        .subquery()
    )
    rows = await db.execute(
        select(CollectionORM, func.coalesce(counts.c.recipe_count, 0))
        .outerjoin(counts, counts.c.collection_id == CollectionORM.id)
        .order_by(func.lower(CollectionORM.name))
    )
    return [
        CollectionSummary(
            collection_id=orm.id,
            name=orm.name,
            description=orm.description,
            color=orm.color,
            is_private=orm.is_private,
            is_default=orm.is_default,
            tags=list(orm.tags or []),
            date_created=orm.created_at,
            date_modified=orm.updated_at,
            recipe_count=int(recipe_count),
        )
        for orm, recipe_count in rows.all()
    ]


async def count_collections(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(CollectionORM))
    return int(result.scalar_one())


async def list_collection_recipes(db: AsyncSession, collection_id: str) -> list[RecipeSummary]:
    """Member recipes, newest first, each with its full membership list."""
    rows = await db.execute(
        select(RecipeORM)
        .join(recipe_collections, recipe_collections.c.recipe_id == RecipeORM.id)
        .where(recipe_collections.c.collection_id == collection_id)
        .order_by(RecipeORM.created_at.desc())
    )
    orms = list(rows.scalars().all())
    memberships = await _collection_ids_by_recipe(db, [o.id for o in orms])
    return [_to_summary(o, memberships.get(o.id, [])) for o in orms]


async def get_collection(db: AsyncSession, collection_id: str) -> Optional[Collection]:
    """Returns None if no collection found (caller raises 404)."""
    orm = await db.get(CollectionORM, collection_id)
    if orm is None:
        return None
    return await _to_collection(db, orm)


async def collection_name_taken(
    db: AsyncSession,
    name: str,
    exclude_id: Optional[str] = None,
) -> bool:
    """Case-insensitive name clash check, optionally ignoring one collection."""
    query = select(CollectionORM.id).where(func.lower(CollectionORM.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.where(CollectionORM.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def create_collection(db: AsyncSession, collection_input: CollectionInput) -> Collection:
    now = _utcnow()
    orm = CollectionORM(
        name=collection_input.name,
        description=collection_input.description,
        color=collection_input.color,
        is_private=collection_input.is_private,
        is_default=collection_input.is_default,
        tags=list(collection_input.tags),
        created_at=now,
        updated_at=now,
    )
    db.add(orm)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise CollectionNameTakenError(collection_input.name) from exc
    logger.info("Created collection collection_id=%s", orm.id)
    return await _to_collection(db, orm)


async def update_collection(
    db: AsyncSession,
    collection_id: str,
    update: CollectionUpdate,
) -> Optional[Collection]:
    """Apply only the fields present in the request body."""
    orm = await db.get(CollectionORM, collection_id)
    if orm is None:
        return None
    for field, value in update.model_dump(exclude_unset=True).items():
        if field == "tags":
            value = list(value or [])
        setattr(orm, field, value)
    orm.updated_at = _utcnow()
    name = orm.name
    try:
        await db.flush()
    except IntegrityError as exc:
        raise CollectionNameTakenError(name) from exc
    logger.info("Updated collection collection_id=%s", collection_id)
    return await _to_collection(db, orm)


async def delete_collection(db: AsyncSession, collection_id: str) -> bool:
    orm = await db.get(CollectionORM, collection_id)
    if orm is None:
        return False
    await db.execute(
        delete(recipe_collections).where(recipe_collections.c.collection_id == collection_id)
    )
    await db.delete(orm)
    await db.flush()
    logger.info("Deleted collection collection_id=%s", collection_id)
    return True


async def add_recipe_to_collection(db: AsyncSession, collection_id: str, recipe_id: str) -> bool:
    """
    Idempotent membership insert. Returns False when the recipe does not
    exist; the caller has already checked the collection.
    """
    if await db.get(RecipeORM, recipe_id) is None:
        return False
    existing = await db.execute(
        select(recipe_collections.c.recipe_id).where(
            recipe_collections.c.recipe_id == recipe_id,
            recipe_collections.c.collection_id == collection_id,
        )
    )
    if existing.scalar_one_or_none() is None:
        await db.execute(
            insert(recipe_collections).values(
                recipe_id=recipe_id,
                collection_id=collection_id,
                assigned_at=_utcnow(),
            )
        )
        await db.flush()
        logger.info("Added recipe_id=%s to collection_id=%s", recipe_id, collection_id)
    return True


async def remove_recipe_from_collection(db: AsyncSession, collection_id: str, recipe_id: str) -> bool:
    """Returns False when the recipe was not a member."""
    result = await db.execute(
        delete(recipe_collections).where(
            recipe_collections.c.recipe_id == recipe_id,
            recipe_collections.c.collection_id == collection_id,
        )
    )
    await db.flush()
    removed = (result.rowcount or 0) > 0
    if removed:
        logger.info("Removed recipe_id=%s from collection_id=%s", recipe_id, collection_id)
    return removed
