"""
schemas.py — Recipe Pydantic v2 data contracts.

Defines:
  - BeanInfo, TurbulenceStep, BrewingParameters, Measurements
  - RecipeInput    (body of POST / PUT /api/recipes, after transform_recipe_input)
  - Recipe         (stored recipe, returned by every recipe endpoint)
  - RecipeSummary  (list rows; also the input of collection statistics)
  - ErrorDetail, ErrorBody, ErrorResponse  (cross-cutting error envelope)

Wire format is camelCase; Python attributes are snake_case.

Varchar ceilings are NOT declared here. They live in one table,
recipes/validator.py FIELD_LENGTH_LIMITS, which is checked before these models
run so that over-long values surface as 400 violations next to every other
business-rule problem.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from coffee_tracker.sensory.schemas import SensationRecord


class _RecipeModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ---------------------------------------------------------------------------
# Recipe sections
# ---------------------------------------------------------------------------

class BeanInfo(_RecipeModel):
    coffee_bean_brand: Optional[str] = None
    origin: str
    processing_method: str
    altitude: Optional[float] = Field(default=None, ge=0)       # metres above sea level
    roasting_date: Optional[str] = None                         # ISO date string
    roasting_level: Optional[str] = None                        # light / medium / dark / custom


class TurbulenceStep(_RecipeModel):
    action_time: Optional[str] = None      # "0:00", "1:30"
    action_details: Optional[str] = None
    volume: Optional[str] = None           # "30ml", "50g"


class BrewingParameters(_RecipeModel):
    water_temperature: Optional[float] = Field(default=None, ge=0, le=100)   # celsius
    brewing_method: Optional[str] = None
    grinder_model: str
    grinder_unit: str
    filtering_tools: Optional[str] = None
    # Older recipes carry free text; newer ones carry structured pour steps.
    turbulence: Union[str, List[TurbulenceStep], None] = None
    additional_notes: Optional[str] = None


class Measurements(_RecipeModel):
    coffee_beans: float = Field(gt=0)                                  # grams
    water: float = Field(gt=0)                                         # grams
    coffee_water_ratio: Optional[float] = Field(default=None, gt=0)    # derived when absent
    brewed_coffee_weight: Optional[float] = Field(default=None, ge=0)
    tds: Optional[float] = Field(default=None, ge=0)                   # percent
    extraction_yield: Optional[float] = Field(default=None, ge=0)      # percent, derived when possible


# ---------------------------------------------------------------------------
# Recipe contracts
# ---------------------------------------------------------------------------

class RecipeInput(_RecipeModel):
    """Write contract shared by create and update."""
    recipe_name: str
    is_favorite: bool = False
    collections: List[str] = Field(default_factory=list)   # Collection ids

    bean_info: BeanInfo
    brewing_parameters: BrewingParameters
    measurements: Measurements
    sensation_record: SensationRecord = Field(default_factory=SensationRecord)


class Recipe(RecipeInput):
    recipe_id: str
    date_created: datetime
    date_modified: datetime


class RecipeSummary(_RecipeModel):
    recipe_id: str
    recipe_name: str
    date_created: datetime
    date_modified: datetime
    is_favorite: bool
    origin: str
    brewing_method: Optional[str] = None
    overall_impression: Optional[int] = None
    coffee_water_ratio: Optional[float] = None
    evaluation_system: str
    collections: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation or business-rule error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # Dot-notation field path, e.g. "measurements.coffeeBeans"
    issue: str                     # Human-readable description of the problem


class ErrorBody(BaseModel):
    """Error envelope body."""
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, NOT_FOUND, etc.
    message: str                                   # High-level error description
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all Coffee Tracker endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "BeanInfo",
    "TurbulenceStep",
    "BrewingParameters",
    "Measurements",
    "RecipeInput",
    "Recipe",
    "RecipeSummary",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
