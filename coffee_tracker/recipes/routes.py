"""
Recipe HTTP routes — GET    /api/recipes
                     GET    /api/recipes/stats/count
                     GET    /api/recipes/{recipe_id}
                     POST   /api/recipes
                     PUT    /api/recipes/{recipe_id}
                     PATCH  /api/recipes/{recipe_id}/favorite
                     DELETE /api/recipes/{recipe_id}

Create and update share one write pipeline, so the two paths cannot drift:

  1. transform_recipe_input    ratio / extraction yield / generated name
  2. prepare_sensation_record  normalize → derived scores → storage tag
  3. business rules            lengths + required + descriptors + penalties → 400
                               (sensation record errors are reported alongside)
  4. RecipeInput               structural validation → 422
  5. store
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_tracker.database import get_db
from coffee_tracker.recipes.schemas import (
    ErrorBody,
    ErrorDetail,
    ErrorResponse,
    Recipe,
    RecipeInput,
    RecipeSummary,
)
from coffee_tracker.recipes.validator import (
    transform_recipe_input,
    validate_field_lengths,
    validate_required_fields,
)
from coffee_tracker.sensory.normalizer import prepare_sensation_record
from coffee_tracker.sensory.validator import validate_sensation_record
from coffee_tracker import store

router = APIRouter(prefix="/api", tags=["recipes"])
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_validation_error_response(details: list[ErrorDetail]) -> JSONResponse:
    """Every business-rule violation in one 400 envelope."""
    body = ErrorResponse(
        error=ErrorBody(
            code="VALIDATION_ERROR",
            message="Recipe validation failed",
            details=details,
        )
    )
    return JSONResponse(status_code=400, content=body.model_dump())


def _errors_under(exc: ValidationError, *prefix: str) -> list[dict[str, Any]]:
    return [{**error, "loc": (*prefix, *error["loc"])} for error in exc.errors()]


def _field_error_details(errors: list[dict[str, Any]]) -> list[ErrorDetail]:
    return [
        ErrorDetail(field=".".join(str(loc) for loc in error["loc"]), issue=error["msg"])
        for error in errors
    ]


def _run_write_pipeline(raw: dict) -> tuple[Optional[RecipeInput], list[ErrorDetail]]:
    """
    Returns (recipe_input, []) when the body may be stored, or (None, details)
    for business-rule failures.

    A malformed sensation record does not stop the length and required-field
    checks. When those also fail, the sensation errors ride along in the same
    400; on their own they are a 422.

    Raises:
        RequestValidationError: structurally invalid body (→ 422).
    """
    data = transform_recipe_input(raw)

    sensation = None
    sensation_errors: list[dict[str, Any]] = []
    raw_sensation = data.get("sensationRecord")
    if raw_sensation is not None and not isinstance(raw_sensation, Mapping):
        sensation_errors = [{
            "loc": ("sensationRecord",),
            "msg": "Input should be a valid dictionary",
            "type": "dict_type",
        }]
    else:
        try:
            sensation = prepare_sensation_record(raw_sensation)
        except ValidationError as exc:
            sensation_errors = _errors_under(exc, "sensationRecord")
        else:
            data["sensationRecord"] = sensation.model_dump(mode="json", by_alias=True, exclude_none=True)

    violations = [*validate_field_lengths(data), *validate_required_fields(data)]
    if sensation is not None:
        violations.extend(validate_sensation_record(sensation))

    if violations:
        details = [ErrorDetail(issue=v) for v in violations]
        return None, details + _field_error_details(sensation_errors)
    if sensation_errors:
        raise RequestValidationError(sensation_errors)

    try:
        return RecipeInput.model_validate(data), []
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/recipes", response_model=List[RecipeSummary])
async def list_recipes(
    favorites_only: bool = False,
    db: AsyncSession = Depends(get_db),
) -> List[RecipeSummary]:
    return await store.list_recipes(db, favorites_only=favorites_only)


@router.get("/recipes/stats/count")
async def count_recipes(db: AsyncSession = Depends(get_db)) -> dict:
    return {"count": await store.count_recipes(db)}


@router.get("/recipes/{recipe_id}", response_model=Recipe)
async def get_recipe(recipe_id: str, db: AsyncSession = Depends(get_db)) -> Recipe:
    recipe = await store.get_recipe(db, recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Recipe '{recipe_id}' not found")
    return recipe


@router.post("/recipes", response_model=Recipe, status_code=201)
async def create_recipe(
    request_body: dict,
    db: AsyncSession = Depends(get_db),
):
    """
    Create a recipe.

    Returns:
      201: stored Recipe (derived scores filled in, storage tag applied)
      400: business-rule violations, all of them
      422: structurally invalid body
    """
    recipe_input, details = _run_write_pipeline(request_body)
    if recipe_input is None:
        logger.info("Recipe create rejected: %d violation(s)", len(details))
        return _make_validation_error_response(details)
    return await store.create_recipe(db, recipe_input)


@router.put("/recipes/{recipe_id}", response_model=Recipe)
async def update_recipe(
    recipe_id: str,
    request_body: dict,
    db: AsyncSession = Depends(get_db),
):
    """Replace a recipe body. Same pipeline and status codes as create, plus 404."""
    if await store.get_recipe(db, recipe_id) is None:
        raise HTTPException(status_code=404, detail=f"Recipe '{recipe_id}' not found")

    recipe_input, details = _run_write_pipeline(request_body)
    if recipe_input is None:
        logger.info("Recipe update rejected recipe_id=%s: %d violation(s)", recipe_id, len(details))
        return _make_validation_error_response(details)
    return await store.update_recipe(db, recipe_id, recipe_input)


@router.patch("/recipes/{recipe_id}/favorite", response_model=Recipe)
async def set_favorite(
    recipe_id: str,
    request_body: Optional[dict] = Body(default=None),
    db: AsyncSession = Depends(get_db),
) -> Recipe:
    """Body {"isFavorite": bool} sets the flag; an empty body toggles it."""
    is_favorite = (request_body or {}).get("isFavorite")
    if is_favorite is not None and not isinstance(is_favorite, bool):
        raise RequestValidationError([{
            "loc": ("isFavorite",),
            "msg": "Input should be a valid boolean",
            "type": "bool_type",
        }])
    recipe = await store.set_recipe_favorite(db, recipe_id, is_favorite)
    if recipe is None:
        raise HTTPException(status_code=404, detail=f"Recipe '{recipe_id}' not found")
    return recipe


@router.delete("/recipes/{recipe_id}", status_code=204)
async def delete_recipe(recipe_id: str, db: AsyncSession = Depends(get_db)) -> Response:
    if not await store.delete_recipe(db, recipe_id):
        raise HTTPException(status_code=404, detail=f"Recipe '{recipe_id}' not found")
    return Response(status_code=204)
