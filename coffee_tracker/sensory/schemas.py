"""
schemas.py — Sensory evaluation Pydantic v2 data contracts.

Defines:
  - EvaluationSystem              (the five evaluation-system tags)
  - TraditionalSCAEvaluation      (SCA 2004 cupping form, 6.00–10.00 attributes)
  - CVAAffectiveAssessment        (CVA affective, 1–9 quality impressions)
  - CVADescriptiveAssessment      (CVA descriptive, 0–15 intensities + CATA descriptors)
  - QuickTastingAssessment        (hybrid: intensities + one affective score)
  - SensationRecord               (the envelope attached to a recipe)
  - SensoryEvaluationResult       (response of POST /api/sensory/evaluate)

Wire format is camelCase (the frontend contract); Python attributes are snake_case.
The SCA sub-object keeps its historical key "traditionalSCA".

CATA descriptor lists are deliberately unbounded here: limits are enforced by
sensory/validator.py so an over-limit selection is reported as a violation,
not rejected as a malformed request.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Evaluation-system tags
# ---------------------------------------------------------------------------

class EvaluationSystem(str, Enum):
    legacy = "legacy"
    traditional_sca = "traditional-sca"
    cva_descriptive = "cva-descriptive"
    cva_affective = "cva-affective"
    quick_tasting = "quick-tasting"


# Values accepted by the recipes.evaluation_system CHECK constraint.
# quick-tasting is never stored; it is written as legacy.
PERSISTED_EVALUATION_SYSTEMS: frozenset[str] = frozenset({
    EvaluationSystem.traditional_sca.value,
    EvaluationSystem.cva_descriptive.value,
    EvaluationSystem.cva_affective.value,
    EvaluationSystem.legacy.value,
})


class _SensoryModel(BaseModel):
    # Historical payloads carry retired keys (e.g. SCA "aroma"); ignore them.
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Traditional SCA (2004 Cupping Protocol)
# ---------------------------------------------------------------------------

def _sca_attribute(description: str):
    return Field(default=None, ge=6, le=10, multiple_of=0.25, description=description)


class TraditionalSCAEvaluation(_SensoryModel):
    """
    Ten quality attributes, 6.00–10.00 in 0.25 steps.

    taint_defects / fault_defects hold already-multiplied penalty points
    (2 per tainted cup, 4 per faulty cup, 0–5 cups each), not cup counts.
    """
    fragrance: Optional[float] = _sca_attribute("Fragrance/aroma of grounds and brew.")
    flavor: Optional[float] = _sca_attribute("Retronasal aroma + taste while sipping.")
    aftertaste: Optional[float] = _sca_attribute("Persistence of flavor after swallowing.")
    acidity: Optional[float] = _sca_attribute("Brightness or liveliness.")
    body: Optional[float] = _sca_attribute("Mouthfeel weight and viscosity.")
    balance: Optional[float] = _sca_attribute("Harmony of acidity, sweetness, body and flavor.")
    sweetness: Optional[float] = _sca_attribute("Perceived sweetness.")
    clean_cup: Optional[float] = _sca_attribute("Absence of negative impressions.")
    uniformity: Optional[float] = _sca_attribute("Consistency across the five cups.")
    overall: Optional[float] = _sca_attribute("General impression.")

    acidity_intensity: Optional[Literal["High", "Medium", "Low"]] = None
    body_level: Optional[Literal["Heavy", "Medium", "Thin"]] = None

    taint_defects: Optional[int] = Field(default=None, ge=0, le=10)   # 2 × tainted cups
    fault_defects: Optional[int] = Field(default=None, ge=0, le=20)   # 4 × faulty cups

    final_score: Optional[float] = None   # Derived, recomputed before every write


# ---------------------------------------------------------------------------
# CVA Affective (1–9 impression of quality)
# ---------------------------------------------------------------------------

def _affective_attribute():
    return Field(default=None, ge=1, le=9)


class CVAAffectiveAssessment(_SensoryModel):
    """Eight 1–9 hedonic quality impressions; 5 is neutral."""
    fragrance: Optional[int] = _affective_attribute()
    aroma: Optional[int] = _affective_attribute()
    flavor: Optional[int] = _affective_attribute()
    aftertaste: Optional[int] = _affective_attribute()
    acidity: Optional[int] = _affective_attribute()
    sweetness: Optional[int] = _affective_attribute()
    mouthfeel: Optional[int] = _affective_attribute()
    overall: Optional[int] = _affective_attribute()

    non_uniform_cups: Optional[int] = Field(default=None, ge=0, le=5)   # raw cup count
    defective_cups: Optional[int] = Field(default=None, ge=0, le=5)     # raw cup count

    cva_score: Optional[float] = None   # Derived, recomputed before every write


# ---------------------------------------------------------------------------
# CVA Descriptive (0–15 intensity + CATA), no score is computed
# ---------------------------------------------------------------------------

def _intensity():
    return Field(default=None, ge=0, le=15)


class CVADescriptiveAssessment(_SensoryModel):
    fragrance: Optional[int] = _intensity()
    aroma: Optional[int] = _intensity()
    flavor: Optional[int] = _intensity()
    aftertaste: Optional[int] = _intensity()
    acidity: Optional[int] = _intensity()
    sweetness: Optional[int] = _intensity()
    mouthfeel: Optional[int] = _intensity()

    # CATA selections; combined limits checked by validate_descriptors()
    fragrance_aroma_descriptors: List[str] = Field(default_factory=list)
    flavor_aftertaste_descriptors: List[str] = Field(default_factory=list)
    main_tastes: List[str] = Field(default_factory=list)
    mouthfeel_descriptors: List[str] = Field(default_factory=list)

    acidity_descriptors: Optional[str] = Field(default=None, max_length=500)
    sweetness_descriptors: Optional[str] = Field(default=None, max_length=500)
    additional_notes: Optional[str] = Field(default=None, max_length=1000)

    roast_level: Optional[str] = Field(default=None, max_length=100)
    assessment_date: Optional[datetime] = None
    assessor_id: Optional[str] = Field(default=None, max_length=100)


# ---------------------------------------------------------------------------
# Quick tasting — stored under the legacy tag
# ---------------------------------------------------------------------------

class QuickTastingAssessment(_SensoryModel):
    flavor_intensity: Optional[int] = _intensity()
    aftertaste_intensity: Optional[int] = _intensity()
    acidity_intensity: Optional[int] = _intensity()
    sweetness_intensity: Optional[int] = _intensity()
    mouthfeel_intensity: Optional[int] = _intensity()

    flavor_aftertaste_descriptors: List[str] = Field(default_factory=list)

    overall_quality: Optional[int] = Field(default=None, ge=1, le=9)


# ---------------------------------------------------------------------------
# SensationRecord — envelope attached to a recipe
# ---------------------------------------------------------------------------

def _legacy_rating():
    return Field(default=None, ge=1, le=10)


class SensationRecord(_SensoryModel):
    """
    Sensory-evaluation envelope.

    evaluation_system decides which sub-assessment is authoritative. It may be
    None on input; normalize_sensation_record() always resolves it.
    """
    evaluation_system: Optional[EvaluationSystem] = None

    # --- Legacy 1–10 ratings ---
    overall_impression: Optional[int] = _legacy_rating()
    acidity: Optional[int] = _legacy_rating()
    body: Optional[int] = _legacy_rating()
    sweetness: Optional[int] = _legacy_rating()
    flavor: Optional[int] = _legacy_rating()
    aftertaste: Optional[int] = _legacy_rating()
    balance: Optional[int] = _legacy_rating()
    tasting_notes: Optional[str] = None

    # --- Structured sub-assessments ---
    traditional_sca: Optional[TraditionalSCAEvaluation] = Field(default=None, alias="traditionalSCA")
    cva_affective: Optional[CVAAffectiveAssessment] = None
    cva_descriptive: Optional[CVADescriptiveAssessment] = None
    quick_tasting: Optional[QuickTastingAssessment] = None


# ---------------------------------------------------------------------------
# Preview endpoint response
# ---------------------------------------------------------------------------

class SensoryEvaluationResult(_SensoryModel):
    """Output of POST /api/sensory/evaluate — nothing is persisted."""
    sensation_record: SensationRecord
    stored_evaluation_system: EvaluationSystem   # Tag the record would be written under
    score: Optional[float] = None                # SCA final score or CVA score, if any
    interpretation: Optional[str] = None
    percentile: Optional[int] = None
    is_complete: Optional[bool] = None
    violations: List[str] = Field(default_factory=list)


__all__ = [
    "EvaluationSystem",
    "PERSISTED_EVALUATION_SYSTEMS",
    "TraditionalSCAEvaluation",
    "CVAAffectiveAssessment",
    "CVADescriptiveAssessment",
    "QuickTastingAssessment",
    "SensationRecord",
    "SensoryEvaluationResult",
]
