"""
Coffee Tracker Score Engine — SCA 2004 Cupping Protocol and SCA CVA Affective.
Pure Python, deterministic. Same input → same output.

Both calculators are total: every missing attribute falls back to a scale
default (SCA floor 6.00, CVA neutral 5), so no input can produce an
undefined result. Scores are rounded half-up to the nearest 0.25 and clamped
to the protocol's valid range.
"""
from __future__ import annotations

import math

from coffee_tracker.sensory.schemas import CVAAffectiveAssessment, TraditionalSCAEvaluation

# ===========================================================================
# SHARED CONSTANTS
# ===========================================================================

SCORE_INCREMENT = 0.25
MAX_DEFECT_CUPS = 5

# ===========================================================================
# SCA 2004 CUPPING PROTOCOL
# ===========================================================================

SCA_ATTRIBUTES: tuple[str, ...] = (
    "fragrance",
    "flavor",
    "aftertaste",
    "acidity",
    "body",
    "balance",
    "sweetness",
    "clean_cup",
    "uniformity",
    "overall",
)

SCA_ATTRIBUTE_FLOOR = 6.0        # Default for a missing attribute: the scale floor, not 0
SCA_ATTRIBUTE_CEILING = 10.0

TAINT_POINTS_PER_CUP = 2
FAULT_POINTS_PER_CUP = 4

SCA_MIN_SCORE = 60.0
SCA_MAX_SCORE = 100.0

# The eight attributes counted by is_sca_evaluation_complete()
SCA_CORE_ATTRIBUTES: tuple[str, ...] = (
    "fragrance", "flavor", "aftertaste", "acidity", "body", "balance", "sweetness", "overall",
)

# ===========================================================================
# CVA AFFECTIVE ASSESSMENT (SCA Standard 103-P/2024)
#   S = 0.65625 × Σh + 52.75 − 2u − 4d
# ===========================================================================

CVA_ATTRIBUTES: tuple[str, ...] = (
    "fragrance",
    "aroma",
    "flavor",
    "aftertaste",
    "acidity",
    "sweetness",
    "mouthfeel",
    "overall",
)

CVA_NEUTRAL_SCORE = 5            # Default for a missing attribute
CVA_MULTIPLIER = 0.65625
CVA_OFFSET = 52.75
NON_UNIFORM_CUP_PENALTY = 2
DEFECTIVE_CUP_PENALTY = 4

CVA_MIN_SCORE = 58.0
CVA_MAX_SCORE = 100.0

COMPLETENESS_THRESHOLD = 6       # Of the 8 core attributes

# ===========================================================================
# QUALITATIVE BANDS — list[tuple[lower_bound, label]], highest first
# ===========================================================================

SCA_INTERPRETATION_BANDS: list[tuple[float, str]] = [
    (90, "Outstanding (90+)"),
    (85, "Excellent (85-89)"),
    (80, "Very Good (80-84)"),
    (70, "Good (70-79)"),
    (60, "Fair (60-69)"),
]
SCA_INTERPRETATION_FLOOR = "Poor (Below 60)"

CVA_INTERPRETATION_BANDS: list[tuple[float, str]] = [
    (90, "Exceptional Quality (90+)"),
    (85, "Excellent Quality (85-89)"),
    (80, "Very High Quality (80-84)"),
    (75, "High Quality (75-79)"),
    (70, "Good Quality (70-74)"),
    (65, "Acceptable Quality (65-69)"),
]
CVA_INTERPRETATION_FLOOR = "Below Standard (Below 65)"

PERCENTILE_BANDS: list[tuple[float, int]] = [
    (90, 95),
    (85, 85),
    (80, 70),
    (75, 50),
    (70, 30),
    (65, 15),
]
PERCENTILE_FLOOR = 5


# ===========================================================================
# INTERNAL HELPERS (pure functions — no side effects, no I/O)
# ===========================================================================

def _round_to_increment(score: float) -> float:
    """Round half-up to the nearest SCORE_INCREMENT (Python's round() is half-even)."""
    return math.floor(score / SCORE_INCREMENT + 0.5) * SCORE_INCREMENT


def _clamp(score: float, low: float, high: float) -> float:
    return max(low, min(high, score))


def _band_lookup(score: float, bands: list[tuple[float, object]], floor: object) -> object:
    for lower_bound, value in bands:
        if score >= lower_bound:
            return value
    return floor


# ===========================================================================
# SCA CALCULATOR
# ===========================================================================

def calculate_sca_score(evaluation: TraditionalSCAEvaluation) -> float:
    """
    SCA 2004 final score.

      1. attribute_sum = Σ ten attributes (missing → 6.00)
      2. cups = floor(taint_defects / 2), floor(fault_defects / 4)
      3. penalties recomputed from cups (× 2, × 4)
      4. final = attribute_sum − taint_penalty − fault_penalty
      5. round to 0.25, clamp to [60, 100]

    Step 2→3 round-trips the stored penalty points through cup counts, so a
    value that is not a clean multiple of its cup weight loses the remainder.
    validate_defect_penalties() reports such values at the input boundary.
    """
    attribute_sum = 0.0
    for name in SCA_ATTRIBUTES:
        value = getattr(evaluation, name)
        attribute_sum += SCA_ATTRIBUTE_FLOOR if value is None else value

    tainted_cups = (evaluation.taint_defects or 0) // TAINT_POINTS_PER_CUP
    faulty_cups = (evaluation.fault_defects or 0) // FAULT_POINTS_PER_CUP
    taint_penalty = tainted_cups * TAINT_POINTS_PER_CUP
    fault_penalty = faulty_cups * FAULT_POINTS_PER_CUP

    final_score = attribute_sum - taint_penalty - fault_penalty
    return _clamp(_round_to_increment(final_score), SCA_MIN_SCORE, SCA_MAX_SCORE)


# ===========================================================================
# CVA AFFECTIVE CALCULATOR
# ===========================================================================

def calculate_cva_score(evaluation: CVAAffectiveAssessment) -> float:
    """
    CVA affective score: 0.65625 × Σh + 52.75 − 2u − 4d.

    Missing attributes count as 5 (neutral). At all-9s with no defective or
    non-uniform cups the formula yields exactly 100; at all-1s exactly 58.
    """
    sum_of_scores = 0
    for name in CVA_ATTRIBUTES:
        value = getattr(evaluation, name)
        sum_of_scores += CVA_NEUTRAL_SCORE if value is None else value

    non_uniform_cups = evaluation.non_uniform_cups or 0
    defective_cups = evaluation.defective_cups or 0

    cva_score = (
        CVA_MULTIPLIER * sum_of_scores
        + CVA_OFFSET
        - NON_UNIFORM_CUP_PENALTY * non_uniform_cups
        - DEFECTIVE_CUP_PENALTY * defective_cups
    )
    return _clamp(_round_to_increment(cva_score), CVA_MIN_SCORE, CVA_MAX_SCORE)


# ===========================================================================
# COMPLETENESS / INTERPRETATION
# ===========================================================================

def is_sca_evaluation_complete(evaluation: TraditionalSCAEvaluation) -> bool:
    """At least 6 of the 8 core quality attributes have been scored."""
    completed = sum(1 for name in SCA_CORE_ATTRIBUTES if getattr(evaluation, name) is not None)
    return completed >= COMPLETENESS_THRESHOLD


def is_cva_evaluation_complete(evaluation: CVAAffectiveAssessment) -> bool:
    """At least 6 of the 8 affective sections have been scored."""
    completed = sum(1 for name in CVA_ATTRIBUTES if getattr(evaluation, name) is not None)
    return completed >= COMPLETENESS_THRESHOLD


def interpret_sca_score(score: float) -> str:
    return _band_lookup(score, SCA_INTERPRETATION_BANDS, SCA_INTERPRETATION_FLOOR)


def interpret_cva_score(score: float) -> str:
    return _band_lookup(score, CVA_INTERPRETATION_BANDS, CVA_INTERPRETATION_FLOOR)


def score_percentile(score: float) -> int:
    """Approximate industry percentile; the same bands serve SCA and CVA scores."""
    return _band_lookup(score, PERCENTILE_BANDS, PERCENTILE_FLOOR)
