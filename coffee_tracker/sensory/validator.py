"""
Sensory business-rule validator — SCA Standard 103-P/2024 CATA limits and
SCA 2004 defect-penalty encoding.

Runs AFTER Pydantic structural validation has already passed. Every check
collects all violations in a single pass and returns them as a list of
human-readable strings; nothing here raises. The caller decides whether a
non-empty list blocks the write (recipe routes) or is advisory (preview).

Rules enforced:
  1. Fragrance + Aroma descriptors   <= 5
  2. Flavor + Aftertaste descriptors <= 5
  3. Main tastes                     <= 2
  4. Mouthfeel descriptors           <= 2
  5. taintDefects is a multiple of 2 (penalty points, 2 per tainted cup)
  6. faultDefects is a multiple of 4 (penalty points, 4 per faulty cup)
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from coffee_tracker.sensory.schemas import (
    CVADescriptiveAssessment,
    EvaluationSystem,
    QuickTastingAssessment,
    SensationRecord,
    TraditionalSCAEvaluation,
)
from coffee_tracker.sensory.score_engine import FAULT_POINTS_PER_CUP, TAINT_POINTS_PER_CUP

logger = logging.getLogger(__name__)

# (attribute, label, limit). Quick tasting only carries flavor_aftertaste_descriptors;
# groups an assessment does not have are skipped.
DESCRIPTOR_LIMITS: list[tuple[str, str, int]] = [
    ("fragrance_aroma_descriptors", "Fragrance + Aroma descriptors", 5),
    ("flavor_aftertaste_descriptors", "Flavor + Aftertaste descriptors", 5),
    ("main_tastes", "Main Tastes", 2),
    ("mouthfeel_descriptors", "Mouthfeel descriptors", 2),
]


def validate_descriptors(
    selection: Union[CVADescriptiveAssessment, QuickTastingAssessment, None],
) -> list[str]:
    """
    Check CATA selection counts against their combined ceilings.

    Returns:
        One violation per over-limit group, e.g.
        "Fragrance + Aroma descriptors exceed limit (6/5)". Empty list = valid.
    """
    if selection is None:
        return []

    violations: list[str] = []
    for attribute, label, limit in DESCRIPTOR_LIMITS:
        chosen = getattr(selection, attribute, None) or []
        if len(chosen) > limit:
            violations.append(f"{label} exceed limit ({len(chosen)}/{limit})")
    return violations


def validate_defect_penalties(evaluation: Optional[TraditionalSCAEvaluation]) -> list[str]:
    """
    Penalty fields store already-multiplied points. A value that is not a clean
    multiple of its cup weight would lose its remainder on the next recompute,
    so it is reported here instead of guessed at.
    """
    if evaluation is None:
        return []

    violations: list[str] = []
    taint = evaluation.taint_defects or 0
    if taint % TAINT_POINTS_PER_CUP:
        violations.append(
            f"Taint defects must be a multiple of {TAINT_POINTS_PER_CUP} "
            f"({TAINT_POINTS_PER_CUP} points per tainted cup), got {taint}"
        )
    fault = evaluation.fault_defects or 0
    if fault % FAULT_POINTS_PER_CUP:
        violations.append(
            f"Fault defects must be a multiple of {FAULT_POINTS_PER_CUP} "
            f"({FAULT_POINTS_PER_CUP} points per faulty cup), got {fault}"
        )
    return violations


def validate_sensation_record(record: Optional[SensationRecord]) -> list[str]:
    """
    Run every sensory rule that applies to a normalized record.

    A legacy-tagged record may still carry a quickTasting payload (the
    write-boundary remap keeps it), so descriptor limits are checked on every
    CATA-bearing sub-assessment present, not only the active one.
    """
    if record is None:
        return []

    violations: list[str] = []
    violations.extend(validate_descriptors(record.cva_descriptive))
    violations.extend(validate_descriptors(record.quick_tasting))
    violations.extend(validate_defect_penalties(record.traditional_sca))

    if violations:
        logger.info(
            "Sensation record (%s) failed %d sensory rule(s)",
            (record.evaluation_system or EvaluationSystem.legacy).value,
            len(violations),
        )
    return violations


__all__ = [
    "DESCRIPTOR_LIMITS",
    "validate_descriptors",
    "validate_defect_penalties",
    "validate_sensation_record",
]
