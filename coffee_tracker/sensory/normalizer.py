"""
Evaluation-system normalizer.

Turns raw sensory input into a canonical SensationRecord:

  normalize_sensation_record()  resolve the tag (infer when absent, coerce
                                unknown tags to legacy), keep one active
                                sub-assessment
  apply_derived_scores()        recompute SCA final_score / CVA cva_score
  prepare_for_persistence()     write-boundary remap: any tag the
                                evaluation_system CHECK constraint rejects
                                (quick-tasting) is stored as legacy

The remap is silent and deterministic. Payloads are never touched by it, so a
quickTasting object stored under "legacy" is re-displayed intact on read.
Nothing here performs I/O; all functions are safe to call from concurrent
request handlers.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel

from coffee_tracker.sensory.schemas import (
    PERSISTED_EVALUATION_SYSTEMS,
    EvaluationSystem,
    SensationRecord,
)
from coffee_tracker.sensory.score_engine import calculate_cva_score, calculate_sca_score

logger = logging.getLogger(__name__)

# Inference order when the tag is absent: first populated sub-assessment wins.
_SUB_ASSESSMENTS: list[tuple[EvaluationSystem, str]] = [
    (EvaluationSystem.traditional_sca, "traditional_sca"),
    (EvaluationSystem.cva_affective, "cva_affective"),
    (EvaluationSystem.cva_descriptive, "cva_descriptive"),
    (EvaluationSystem.quick_tasting, "quick_tasting"),
]
_FIELD_FOR_SYSTEM: dict[EvaluationSystem, str] = dict(_SUB_ASSESSMENTS)

# Derived outputs do not make a sub-assessment "populated" on their own.
_DERIVED_FIELDS = {"final_score", "cva_score"}

_TAG_KEYS = ("evaluationSystem", "evaluation_system")


def is_populated(assessment: Optional[BaseModel]) -> bool:
    """True when the sub-assessment carries at least one user-entered value."""
    if assessment is None:
        return False
    for value in assessment.model_dump(exclude=_DERIVED_FIELDS).values():
        if value is None:
            continue
        if isinstance(value, (list, str)) and not value:
            continue
        return True
    return False


def _coerce_tag(raw_tag: Any) -> Optional[EvaluationSystem]:
    """Map a raw tag to EvaluationSystem; unknown values become legacy, blanks None."""
    if raw_tag is None or raw_tag == "":
        return None
    if isinstance(raw_tag, EvaluationSystem):
        return raw_tag
    try:
        return EvaluationSystem(raw_tag)
    except ValueError:
        logger.warning("Unknown evaluation system %r coerced to 'legacy'", raw_tag)
        return EvaluationSystem.legacy


def infer_evaluation_system(record: SensationRecord) -> EvaluationSystem:
    """
    Infer the tag from payload: traditionalSCA → cvaAffective → cvaDescriptive
    → quickTasting → legacy.
    """
    for system, field_name in _SUB_ASSESSMENTS:
        if is_populated(getattr(record, field_name)):
            return system
    return EvaluationSystem.legacy


def normalize_sensation_record(
    raw: Union[Mapping[str, Any], SensationRecord, None],
) -> SensationRecord:
    """
    Produce a canonical SensationRecord with a resolved evaluation_system.

    - Absent tag → inferred from the populated sub-assessments.
    - Unknown tag → legacy (availability over strictness).
    - Explicit tag whose sub-assessment is empty while another one is
      populated → re-inferred, so the tag agrees with the payload.
    - Non-legacy tag → every other sub-assessment is dropped.
    - legacy → all payloads kept for display.

    Idempotent: a normalized record normalizes to itself.

    Raises:
        pydantic.ValidationError: raw payload is structurally invalid
            (out-of-range attribute, wrong type).
    """
    if isinstance(raw, SensationRecord):
        record = raw
        tag = raw.evaluation_system
    else:
        data = dict(raw or {})
        raw_tag = None
        for key in _TAG_KEYS:
            if key in data:
                raw_tag = data.pop(key)
        tag = _coerce_tag(raw_tag)
        record = SensationRecord.model_validate(data)

    if tag is None:
        tag = infer_evaluation_system(record)
    elif tag is not EvaluationSystem.legacy and not is_populated(
        getattr(record, _FIELD_FOR_SYSTEM[tag])
    ):
        inferred = infer_evaluation_system(record)
        if inferred is not EvaluationSystem.legacy:
            logger.info("Evaluation system %r has no payload; using %r", tag.value, inferred.value)
            tag = inferred

    update: dict[str, Any] = {"evaluation_system": tag}
    if tag is not EvaluationSystem.legacy:
        active = _FIELD_FOR_SYSTEM[tag]
        for _, field_name in _SUB_ASSESSMENTS:
            if field_name != active:
                update[field_name] = None

    return record.model_copy(update=update)


def apply_derived_scores(record: SensationRecord) -> SensationRecord:
    """Recompute every derived score from its current attribute set."""
    update: dict[str, Any] = {}
    if record.traditional_sca is not None:
        update["traditional_sca"] = record.traditional_sca.model_copy(
            update={"final_score": calculate_sca_score(record.traditional_sca)}
        )
    if record.cva_affective is not None:
        update["cva_affective"] = record.cva_affective.model_copy(
            update={"cva_score": calculate_cva_score(record.cva_affective)}
        )
    if not update:
        return record
    return record.model_copy(update=update)


def prepare_for_persistence(record: SensationRecord) -> SensationRecord:
    """
    Write-boundary remap. Tags outside PERSISTED_EVALUATION_SYSTEMS are
    rewritten to legacy; sub-assessment payloads are left untouched.
    Never call this on the read path.
    """
    tag = record.evaluation_system
    if tag is not None and tag.value in PERSISTED_EVALUATION_SYSTEMS:
        return record
    logger.info(
        "Evaluation system %r stored as 'legacy'",
        tag.value if tag is not None else None,
    )
    return record.model_copy(update={"evaluation_system": EvaluationSystem.legacy})


def prepare_sensation_record(
    raw: Union[Mapping[str, Any], SensationRecord, None],
) -> SensationRecord:
    """Full write path: normalize → derive scores → remap tag for storage."""
    return prepare_for_persistence(apply_derived_scores(normalize_sensation_record(raw)))


__all__ = [
    "is_populated",
    "infer_evaluation_system",
    "normalize_sensation_record",
    "apply_derived_scores",
    "prepare_for_persistence",
    "prepare_sensation_record",
]
