"""
Sensory HTTP routes — POST /api/sensory/evaluate

Live preview for the evaluation forms: normalizes a raw sensation record,
computes its score and interpretation, and reports rule violations.
Nothing is persisted. Violations are returned as data with a 200 so the
form can keep showing the score while the user fixes them.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from coffee_tracker.sensory.normalizer import (
    apply_derived_scores,
    normalize_sensation_record,
    prepare_for_persistence,
)
from coffee_tracker.sensory.schemas import EvaluationSystem, SensoryEvaluationResult
from coffee_tracker.sensory.score_engine import (
    interpret_cva_score,
    interpret_sca_score,
    is_cva_evaluation_complete,
    is_sca_evaluation_complete,
    score_percentile,
)
from coffee_tracker.sensory.validator import validate_sensation_record

router = APIRouter(prefix="/api/sensory", tags=["sensory"])
logger = logging.getLogger(__name__)


@router.post("/evaluate", response_model=SensoryEvaluationResult)
async def evaluate_sensation_record(request_body: dict) -> SensoryEvaluationResult:
    """
    Returns the normalized record under the tag the user chose (quick-tasting
    stays quick-tasting here), plus the tag it would be stored under.
    """
    try:
        record = apply_derived_scores(normalize_sensation_record(request_body))
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())

    stored = prepare_for_persistence(record).evaluation_system
    result = SensoryEvaluationResult(
        sensation_record=record,
        stored_evaluation_system=stored,
        violations=validate_sensation_record(record),
    )

    # Only SCA and CVA affective produce a quality score
    if record.evaluation_system is EvaluationSystem.traditional_sca and record.traditional_sca is not None:
        sca = record.traditional_sca
        result.score = sca.final_score
        result.interpretation = interpret_sca_score(sca.final_score)
        result.percentile = score_percentile(sca.final_score)
        result.is_complete = is_sca_evaluation_complete(sca)
    elif record.evaluation_system is EvaluationSystem.cva_affective and record.cva_affective is not None:
        cva = record.cva_affective
        result.score = cva.cva_score
        result.interpretation = interpret_cva_score(cva.cva_score)
        result.percentile = score_percentile(cva.cva_score)
        result.is_complete = is_cva_evaluation_complete(cva)

    logger.debug(
        "Sensory preview evaluation_system=%s stored_as=%s violations=%d",
        record.evaluation_system.value,
        stored.value,
        len(result.violations),
    )
    return result
