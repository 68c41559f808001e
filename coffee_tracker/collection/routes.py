"""
Collection HTTP routes — GET    /api/collections
                         GET    /api/collections/stats/count
                         GET    /api/collections/{collection_id}
                         GET    /api/collections/{collection_id}/recipes
                         POST   /api/collections
                         PUT    /api/collections/{collection_id}
                         DELETE /api/collections/{collection_id}
                         POST   /api/collections/{collection_id}/recipes/{recipe_id}
                         DELETE /api/collections/{collection_id}/recipes/{recipe_id}
                         POST   /api/collections/{collection_id}/recipes/batch
                         POST   /api/collections/{collection_id}/recipes/batch-remove

Collection names are unique case-insensitively (409 CONFLICT).
"""
from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_tracker.collection.schemas import (
    BatchAddResult,
    BatchRemoveResult,
    Collection,
    CollectionInput,
    CollectionSummary,
    CollectionUpdate,
    RecipeIdsRequest,
)
from coffee_tracker.database import get_db
from coffee_tracker.recipes.schemas import RecipeSummary
from coffee_tracker import store

router = APIRouter(prefix="/api/collections", tags=["collections"])
logger = logging.getLogger(__name__)


async def _require_collection(db: AsyncSession, collection_id: str) -> Collection:
    collection = await store.get_collection(db, collection_id)
    if collection is None:
        raise HTTPException(status_code=404, detail=f"Collection '{collection_id}' not found")
    return collection


async def _ensure_name_available(db: AsyncSession, name: str, exclude_id: str | None = None) -> None:
    if await store.collection_name_taken(db, name, exclude_id=exclude_id):
        raise HTTPException(status_code=409, detail=f"Collection name '{name}' already exists")


# ---------------------------------------------------------------------------
# Collection CRUD
# ---------------------------------------------------------------------------

@router.get("", response_model=List[CollectionSummary])
async def list_collections(db: AsyncSession = Depends(get_db)) -> List[CollectionSummary]:
    return await store.list_collections(db)


@router.get("/stats/count")
async def count_collections(db: AsyncSession = Depends(get_db)) -> dict:
    return {"count": await store.count_collections(db)}


@router.get("/{collection_id}", response_model=Collection)
async def get_collection(collection_id: str, db: AsyncSession = Depends(get_db)) -> Collection:
    return await _require_collection(db, collection_id)


@router.post("", response_model=Collection, status_code=201)
async def create_collection(
    collection_input: CollectionInput,
    db: AsyncSession = Depends(get_db),
) -> Collection:
    await _ensure_name_available(db, collection_input.name)
    try:
        return await store.create_collection(db, collection_input)
    except store.CollectionNameTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.put("/{collection_id}", response_model=Collection)
async def update_collection(
    collection_id: str,
    update: CollectionUpdate,
    db: AsyncSession = Depends(get_db),
) -> Collection:
    await _require_collection(db, collection_id)
    if update.name is not None:
        await _ensure_name_available(db, update.name, exclude_id=collection_id)
    try:
        return await store.update_collection(db, collection_id, update)
    except store.CollectionNameTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.delete("/{collection_id}", status_code=204)
async def delete_collection(collection_id: str, db: AsyncSession = Depends(get_db)) -> Response:
    if not await store.delete_collection(db, collection_id):
        raise HTTPException(status_code=404, detail=f"Collection '{collection_id}' not found")
    return Response(status_code=204)


@router.get("/{collection_id}/recipes", response_model=List[RecipeSummary])
async def list_collection_recipes(
    collection_id: str,
    db: AsyncSession = Depends(get_db),
) -> List[RecipeSummary]:
    await _require_collection(db, collection_id)
    return await store.list_collection_recipes(db, collection_id)


# ---------------------------------------------------------------------------
# Membership: batch routes are declared before /recipes/{recipe_id}
# ---------------------------------------------------------------------------

@router.post("/{collection_id}/recipes/batch", response_model=BatchAddResult)
async def add_recipes_batch(
    collection_id: str,
    request_body: RecipeIdsRequest,
    db: AsyncSession = Depends(get_db),
) -> BatchAddResult:
    """Adds every existing recipe; unknown recipe ids are reported in `failed`."""
    await _require_collection(db, collection_id)
    result = BatchAddResult()
    for recipe_id in dict.fromkeys(request_body.recipe_ids):
        if await store.add_recipe_to_collection(db, collection_id, recipe_id):
            result.added.append(recipe_id)
        else:
            result.failed.append(recipe_id)
    logger.info(
        "Batch add collection_id=%s added=%d failed=%d",
        collection_id,
        len(result.added),
        len(result.failed),
    )
    return result


@router.post("/{collection_id}/recipes/batch-remove", response_model=BatchRemoveResult)
async def remove_recipes_batch(
    collection_id: str,
    request_body: RecipeIdsRequest,
    db: AsyncSession = Depends(get_db),
) -> BatchRemoveResult:
    """Removes every member; ids that were not members are reported in `failed`."""
    await _require_collection(db, collection_id)
    result = BatchRemoveResult()
    for recipe_id in dict.fromkeys(request_body.recipe_ids):
        if await store.remove_recipe_from_collection(db, collection_id, recipe_id):
            result.removed.append(recipe_id)
        else:
            result.failed.append(recipe_id)
    logger.info(
        "Batch remove collection_id=%s removed=%d failed=%d",
        collection_id,
        len(result.removed),
        len(result.failed),
    )
    return result


@router.post("/{collection_id}/recipes/{recipe_id}", response_model=Collection)
async def add_recipe(
    collection_id: str,
    recipe_id: str,
    db: AsyncSession = Depends(get_db),
) -> Collection:
    await _require_collection(db, collection_id)
    if not await store.add_recipe_to_collection(db, collection_id, recipe_id):
        raise HTTPException(status_code=404, detail=f"Recipe '{recipe_id}' not found")
    return await _require_collection(db, collection_id)


@router.delete("/{collection_id}/recipes/{recipe_id}", response_model=Collection)
async def remove_recipe(
    collection_id: str,
    recipe_id: str,
    db: AsyncSession = Depends(get_db),
) -> Collection:
    await _require_collection(db, collection_id)
    if not await store.remove_recipe_from_collection(db, collection_id, recipe_id):
        raise HTTPException(
            status_code=404,
            detail=f"Recipe '{recipe_id}' is not in collection '{collection_id}'",
        )
    return await _require_collection(db, collection_id)
