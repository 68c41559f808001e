"""
schemas.py — Collection Pydantic v2 data contracts.

Defines:
  - CollectionColor                         (UI colour keys)
  - CollectionInput, CollectionUpdate       (POST / PUT bodies)
  - CollectionStats                         (computed by collection/stats.py)
  - Collection, CollectionSummary           (responses)
  - RecipeIdsRequest, BatchAddResult, BatchRemoveResult  (batch membership)

Names and descriptions are trimmed before their length limits apply.
Case-insensitive name uniqueness needs the database and is enforced in routes.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CollectionColor = Literal["blue", "green", "orange", "red", "purple", "teal", "pink", "indigo", "gray"]


class _CollectionModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _blank_to_none(value):
    value = _strip(value)
    return value or None


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class CollectionInput(_CollectionModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    color: CollectionColor = "blue"
    is_private: bool = False
    is_default: bool = False
    tags: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)

    @field_validator("description", mode="before")
    @classmethod
    def clean_description(cls, value):
        return _blank_to_none(value)


class CollectionUpdate(_CollectionModel):
    """Partial update — only fields present in the body are applied."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    color: Optional[CollectionColor] = None
    is_private: Optional[bool] = None
    is_default: Optional[bool] = None
    tags: Optional[List[str]] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return _strip(value)

    @field_validator("description", mode="before")
    @classmethod
    def clean_description(cls, value):
        return _blank_to_none(value)

    # Omit a field to leave it unchanged; these columns are NOT NULL
    @field_validator("name", "color", "is_private", "is_default")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class RecipeIdsRequest(_CollectionModel):
    recipe_ids: List[str] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class CollectionStats(_CollectionModel):
    total_recipes: int = 0
    average_overall_impression: float = 0.0
    most_used_brewing_method: Optional[str] = None
    most_used_origin: Optional[str] = None
    date_range_start: Optional[datetime] = None   # oldest member recipe
    date_range_end: Optional[datetime] = None     # newest member recipe
    last_activity_date: datetime                  # last recipe assignment


class CollectionSummary(_CollectionModel):
    collection_id: str
    name: str
    description: Optional[str] = None
    color: CollectionColor
    is_private: bool
    is_default: bool
    tags: List[str] = Field(default_factory=list)
    date_created: datetime
    date_modified: datetime
    recipe_count: int = 0


class Collection(_CollectionModel):
    collection_id: str
    name: str
    description: Optional[str] = None
    color: CollectionColor
    is_private: bool
    is_default: bool
    tags: List[str] = Field(default_factory=list)
    date_created: datetime
    date_modified: datetime
    recipe_ids: List[str] = Field(default_factory=list)
    stats: CollectionStats


class BatchAddResult(_CollectionModel):
    added: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


class BatchRemoveResult(_CollectionModel):
    removed: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


__all__ = [
    "CollectionColor",
    "CollectionInput",
    "CollectionUpdate",
    "RecipeIdsRequest",
    "CollectionStats",
    "CollectionSummary",
    "Collection",
    "BatchAddResult",
    "BatchRemoveResult",
]
