from collections import Counter
from typing import Dict

from varbench.evaluator import EvaluatorConfig, VariantEvaluator
from varbench.index import PositionIndex
from varbench.models import VariantRecord, VariantType
from varbench.rescue import apply_variants, find_rescue_window


class DictReference:
    """In-memory stand-in for pysam.FastaFile."""

    def __init__(self, seqs: Dict[str, str]) -> None:
        self.seqs = seqs

    def fetch(self, reference: str, start: int, end: int) -> str:
        return self.seqs[reference][start:end]

    def get_reference_length(self, reference: str) -> int:
        return len(self.seqs[reference])


# T run at 3-7
REF = DictReference({"chr1": "GATTTTTCG"})


def var(pos: int, ref: str, alt: str, svtype: str = "") -> VariantRecord:
    return VariantRecord(
        contig="chr1",
        position=pos,
        reference_bases=ref,
        alternate_bases=(alt,),
        info={"SVTYPE": svtype} if svtype else {},
        genotype="0/1",
    )


def test_apply_variants():
    assert apply_variants(REF, "chr1", 1, 9, [var(2, "AT", "A")]) == "GATTTTCG"
    assert apply_variants(REF, "chr1", 1, 9, [var(6, "TT", "T")]) == "GATTTTCG"
    assert apply_variants(REF, "chr1", 1, 9, []) == "GATTTTTCG"
    assert apply_variants(REF, "chr1", 1, 9, [var(8, "C", "A")]) == "GATTTTTAG"


def test_apply_variants_rejects_bad_input():
    # overlapping
    assert apply_variants(REF, "chr1", 1, 9, [var(2, "AT", "A"), var(3, "T", "C")]) is None
    # wrong reference bases
    assert apply_variants(REF, "chr1", 1, 9, [var(2, "GG", "G")]) is None
    # runs past the window
    assert apply_variants(REF, "chr1", 1, 6, [var(6, "TT", "T")]) is None


def test_find_rescue_window_for_shifted_deletion():
    truth = PositionIndex.from_records([var(2, "AT", "A")])
    predicted = PositionIndex.from_records([var(6, "TT", "T")])
    window = find_rescue_window(
        truth[2],
        reference=REF,
        true_variants=truth,
        predicted_variants=predicted,
        false_positives={6},
        window_size=50,
        max_indel_length=50,
    )
    assert window is not None
    assert (window.start, window.end) == (1, 9)
    assert [r.position for r in window.truth] == [2]
    assert [r.position for r in window.predicted] == [6]


def test_window_requires_a_false_positive():
    truth = PositionIndex.from_records([var(2, "AT", "A")])
    predicted = PositionIndex.from_records([var(6, "TT", "T")])
    window = find_rescue_window(
        truth[2],
        reference=REF,
        true_variants=truth,
        predicted_variants=predicted,
        false_positives=set(),
        window_size=50,
        max_indel_length=50,
    )
    assert window is None


def test_evaluator_rescues_equivalent_deletion():
    evaluator = VariantEvaluator(reference=REF)
    stats = evaluator.evaluate([var(2, "AT", "A")], [var(6, "TT", "T")])["chr1"]

    assert stats.true_positive_counts == Counter({VariantType.INDEL_DELETION: 1})
    assert sum(stats.false_positive_counts.values()) == 0
    assert sum(stats.false_negative_counts.values()) == 0
    assert stats.true_positives.positions == (6,)
    assert len(stats.false_positives) == 0
    assert len(stats.false_negatives) == 0
    assert stats.rescued_variants.positions == (6,)
    assert stats.rescued_variant_counts == Counter({VariantType.INDEL_DELETION: 1})
    stats.check_invariants()


def test_different_edits_are_not_rescued():
    evaluator = VariantEvaluator(reference=REF)
    stats = evaluator.evaluate([var(2, "A", "AT")], [var(6, "TT", "T")])["chr1"]

    assert stats.false_negatives.positions == (2,)
    assert stats.false_positives.positions == (6,)
    assert stats.rescued_variant_counts == Counter()


def test_indels_longer_than_limit_are_not_rescued():
    evaluator = VariantEvaluator(EvaluatorConfig(max_indel_length=0), reference=REF)
    stats = evaluator.evaluate([var(2, "AT", "A")], [var(6, "TT", "T")])["chr1"]
    assert stats.false_negatives.positions == (2,)
    assert stats.rescued_variants.positions == ()


def test_structural_variants_are_skipped():
    evaluator = VariantEvaluator(EvaluatorConfig(max_sv_breakpoint_distance=0), reference=REF)
    stats = evaluator.evaluate([var(2, "AT", "A", svtype="DEL")], [var(6, "TT", "T")])["chr1"]
    assert stats.false_negatives.positions == (2,)
    assert stats.false_positives.positions == (6,)


def test_contig_missing_from_reference_is_left_alone():
    evaluator = VariantEvaluator(reference=DictReference({"chr2": "ACGT"}))
    stats = evaluator.evaluate([var(2, "AT", "A")], [var(6, "TT", "T")])["chr1"]
    assert stats.false_negatives.positions == (2,)
    assert stats.false_positives.positions == (6,)
    assert stats.rescued_variant_counts == Counter()


def test_same_position_with_different_padding_is_rescued():
    evaluator = VariantEvaluator(reference=REF)
    stats = evaluator.evaluate([var(2, "AT", "A")], [var(2, "ATT", "AT")])["chr1"]

    assert stats.true_positives.positions == (2,)
    assert len(stats.false_positives) == 0
    assert len(stats.false_negatives) == 0
    assert stats.incorrect_predictions == {}
    assert stats.incorrect_prediction_positions == ()
    assert stats.true_positive_counts == Counter({VariantType.INDEL_DELETION: 1})
    stats.check_invariants()


def test_window_sees_long_records_starting_far_before_it():
    # G at 1-99, A at 100, T run at 101-106, C at 107-200
    reference = DictReference({"chr1": "G" * 99 + "A" + "T" * 6 + "C" * 94})
    long_change = var(10, "G" * 80, "G" * 79 + "A")  # spans 10-89, changes base 89
    truth = PositionIndex.from_records([long_change, var(100, "AT", "A")])
    predicted = PositionIndex.from_records([var(105, "TT", "T")])

    window = find_rescue_window(
        truth[100],
        reference=reference,
        true_variants=truth,
        predicted_variants=predicted,
        false_positives={105},
        window_size=50,
        max_indel_length=50,
    )
    assert window is not None
    for rec in truth.records:
        if rec not in window.truth:
            assert rec.end < window.start or rec.position > window.end
