"""
Evaluation-system normalizer tests.

Covers tag inference order, unknown-tag coercion, canonicalization (one active
sub-assessment), idempotence, derived-score recomputation and the
write-boundary quick-tasting → legacy remap.
"""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from coffee_tracker.sensory.normalizer import (
    apply_derived_scores,
    infer_evaluation_system,
    is_populated,
    normalize_sensation_record,
    prepare_for_persistence,
    prepare_sensation_record,
)
from coffee_tracker.sensory.schemas import (
    EvaluationSystem,
    QuickTastingAssessment,
    SensationRecord,
    TraditionalSCAEvaluation,
)

SCA_PAYLOAD = {"fragrance": 8.5, "flavor": 8.25, "acidity": 8}
CVA_AFFECTIVE_PAYLOAD = {"fragrance": 7, "aroma": 7, "overall": 8}
CVA_DESCRIPTIVE_PAYLOAD = {"fragrance": 10, "mainTastes": ["sweet"]}
QUICK_PAYLOAD = {"flavorIntensity": 9, "overallQuality": 7, "flavorAftertasteDescriptors": ["cocoa"]}


# ---------------------------------------------------------------------------
# is_populated
# ---------------------------------------------------------------------------

def test_is_populated_ignores_derived_scores_and_empty_lists() -> None:
    assert not is_populated(None)
    assert not is_populated(TraditionalSCAEvaluation(final_score=84.0))
    assert not is_populated(QuickTastingAssessment(flavor_aftertaste_descriptors=[]))
    assert is_populated(TraditionalSCAEvaluation(body=8))
    assert is_populated(QuickTastingAssessment(flavor_aftertaste_descriptors=["cocoa"]))


# ---------------------------------------------------------------------------
# Inference when the tag is absent
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"traditionalSCA": SCA_PAYLOAD}, EvaluationSystem.traditional_sca),
        ({"cvaAffective": CVA_AFFECTIVE_PAYLOAD}, EvaluationSystem.cva_affective),
        ({"cvaDescriptive": CVA_DESCRIPTIVE_PAYLOAD}, EvaluationSystem.cva_descriptive),
        ({"quickTasting": QUICK_PAYLOAD}, EvaluationSystem.quick_tasting),
        ({"overallImpression": 7}, EvaluationSystem.legacy),
        ({}, EvaluationSystem.legacy),
    ],
)
def test_infers_tag_from_populated_sub_assessment(raw: dict, expected: EvaluationSystem) -> None:
    assert normalize_sensation_record(raw).evaluation_system is expected


def test_inference_order_prefers_sca_then_cva_affective() -> None:
    raw = {
        "quickTasting": QUICK_PAYLOAD,
        "cvaDescriptive": CVA_DESCRIPTIVE_PAYLOAD,
        "cvaAffective": CVA_AFFECTIVE_PAYLOAD,
        "traditionalSCA": SCA_PAYLOAD,
    }
    assert normalize_sensation_record(raw).evaluation_system is EvaluationSystem.traditional_sca

    del raw["traditionalSCA"]
    assert normalize_sensation_record(raw).evaluation_system is EvaluationSystem.cva_affective


def test_empty_sub_objects_do_not_count() -> None:
    record = normalize_sensation_record({"traditionalSCA": {}, "cvaAffective": {"cvaScore": 80}})
    assert record.evaluation_system is EvaluationSystem.legacy


def test_none_input_is_pure_legacy() -> None:
    record = normalize_sensation_record(None)
    assert record.evaluation_system is EvaluationSystem.legacy
    assert infer_evaluation_system(record) is EvaluationSystem.legacy


# ---------------------------------------------------------------------------
# Unknown / mismatched tags
# ---------------------------------------------------------------------------

def test_unknown_tag_is_coerced_to_legacy() -> None:
    record = normalize_sensation_record({"evaluationSystem": "sca-2030", "overallImpression": 6})
    assert record.evaluation_system is EvaluationSystem.legacy
    assert record.overall_impression == 6


def test_blank_tag_is_treated_as_absent() -> None:
    record = normalize_sensation_record({"evaluationSystem": "", "cvaAffective": CVA_AFFECTIVE_PAYLOAD})
    assert record.evaluation_system is EvaluationSystem.cva_affective


def test_tag_without_payload_follows_populated_sub_assessment() -> None:
    record = normalize_sensation_record({
        "evaluationSystem": "traditional-sca",
        "cvaAffective": CVA_AFFECTIVE_PAYLOAD,
    })
    assert record.evaluation_system is EvaluationSystem.cva_affective
    assert record.cva_affective is not None


def test_tag_without_any_payload_is_kept() -> None:
    record = normalize_sensation_record({"evaluationSystem": "cva-descriptive"})
    assert record.evaluation_system is EvaluationSystem.cva_descriptive


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------

def test_non_legacy_tag_keeps_only_its_sub_assessment() -> None:
    record = normalize_sensation_record({
        "evaluationSystem": "cva-affective",
        "cvaAffective": CVA_AFFECTIVE_PAYLOAD,
        "traditionalSCA": SCA_PAYLOAD,
        "quickTasting": QUICK_PAYLOAD,
    })
    assert record.cva_affective is not None
    assert record.traditional_sca is None
    assert record.quick_tasting is None
    assert record.cva_descriptive is None


def test_legacy_tag_keeps_every_payload() -> None:
    record = normalize_sensation_record({
        "evaluationSystem": "legacy",
        "overallImpression": 8,
        "quickTasting": QUICK_PAYLOAD,
        "traditionalSCA": SCA_PAYLOAD,
    })
    assert record.evaluation_system is EvaluationSystem.legacy
    assert record.quick_tasting is not None
    assert record.traditional_sca is not None


def test_legacy_ratings_survive_alongside_structured_assessment() -> None:
    record = normalize_sensation_record({"overallImpression": 9, "tastingNotes": "jammy", "traditionalSCA": SCA_PAYLOAD})
    assert record.overall_impression == 9
    assert record.tasting_notes == "jammy"


def test_retired_sca_aroma_key_is_ignored() -> None:
    record = normalize_sensation_record({"traditionalSCA": {**SCA_PAYLOAD, "aroma": 9}})
    assert "aroma" not in record.traditional_sca.model_dump()


def test_normalize_is_idempotent() -> None:
    once = normalize_sensation_record({"cvaAffective": CVA_AFFECTIVE_PAYLOAD, "quickTasting": QUICK_PAYLOAD})
    assert normalize_sensation_record(once) == once
    # and through the wire format
    wire = once.model_dump(by_alias=True, exclude_none=True, mode="json")
    assert normalize_sensation_record(wire) == once


def test_structurally_invalid_payload_raises() -> None:
    with pytest.raises(ValidationError):
        normalize_sensation_record({"traditionalSCA": {"fragrance": 5.5}})   # below 6.00
    with pytest.raises(ValidationError):
        normalize_sensation_record({"traditionalSCA": {"flavor": 8.1}})      # not a 0.25 step
    with pytest.raises(ValidationError):
        normalize_sensation_record({"cvaAffective": {"overall": 10}})


# ---------------------------------------------------------------------------
# Derived scores
# ---------------------------------------------------------------------------

def test_derived_scores_are_recomputed_not_trusted() -> None:
    raw = {"traditionalSCA": {**{k: 10 for k in ("fragrance", "flavor")}, "finalScore": 12.0}}
    record = apply_derived_scores(normalize_sensation_record(raw))
    # 2 × 10 + 8 × 6.00 = 68
    assert record.traditional_sca.final_score == 68.0


def test_cva_score_is_filled_in() -> None:
    record = apply_derived_scores(normalize_sensation_record({"cvaAffective": {"overall": 9}}))
    # 9 + 7 × 5 = 44 → 0.65625 × 44 + 52.75 = 81.625 → 81.75
    assert record.cva_affective.cva_score == 81.75


def test_derived_scores_leave_other_records_untouched() -> None:
    record = normalize_sensation_record({"overallImpression": 5})
    assert apply_derived_scores(record) is record


# ---------------------------------------------------------------------------
# Write-boundary remap
# ---------------------------------------------------------------------------

def test_quick_tasting_is_stored_as_legacy_with_payload_preserved() -> None:
    normalized = normalize_sensation_record({"evaluationSystem": "quick-tasting", "quickTasting": QUICK_PAYLOAD})
    assert normalized.evaluation_system is EvaluationSystem.quick_tasting

    stored = prepare_for_persistence(normalized)
    assert stored.evaluation_system is EvaluationSystem.legacy
    assert stored.quick_tasting == normalized.quick_tasting


@pytest.mark.parametrize(
    "tag",
    [
        EvaluationSystem.traditional_sca,
        EvaluationSystem.cva_affective,
        EvaluationSystem.cva_descriptive,
        EvaluationSystem.legacy,
    ],
)
def test_storable_tags_pass_through_unchanged(tag: EvaluationSystem) -> None:
    record = SensationRecord(evaluation_system=tag)
    assert prepare_for_persistence(record) is record


def test_remapped_record_reads_back_under_legacy() -> None:
    """A stored quick-tasting record normalizes to itself on read (no second remap)."""
    stored = prepare_sensation_record({"quickTasting": QUICK_PAYLOAD})
    wire = stored.model_dump(by_alias=True, exclude_none=True, mode="json")
    reread = normalize_sensation_record(wire)
    assert reread.evaluation_system is EvaluationSystem.legacy
    assert reread.quick_tasting.overall_quality == 7


def test_prepare_sensation_record_full_path() -> None:
    record = prepare_sensation_record({
        "evaluationSystem": "traditional-sca",
        "traditionalSCA": {"fragrance": 10, "taintDefects": 2},
        "cvaAffective": CVA_AFFECTIVE_PAYLOAD,
    })
    assert record.evaluation_system is EvaluationSystem.traditional_sca
    assert record.cva_affective is None
    # 10 + 9 × 6 − 2 = 62
    assert record.traditional_sca.final_score == 62.0
