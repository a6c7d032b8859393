from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Tuple

from .classify import classify_variant
from .concordance import GenotypeConcordance
from .index import PositionIndex, count_by_type
from .models import VariantType


@dataclass(frozen=True)
class ContigStats:
    """Classification result for one contig.

    ``true_positives`` holds the *predicted* record of every match, keyed by the
    predicted position. ``false_negatives`` holds truth records and
    ``false_positives`` predicted records. Incorrect predictions (a shared
    position whose calls disagree) appear in both of the latter.

    Instances are not modified after construction; rescue and known false
    positive reconciliation return new instances.
    """

    contig: str
    true_variants: PositionIndex
    predicted_variants: PositionIndex
    true_positives: PositionIndex
    false_positives: PositionIndex
    false_negatives: PositionIndex
    true_variant_counts: Counter
    predicted_variant_counts: Counter
    true_positive_counts: Counter
    false_positive_counts: Counter
    false_negative_counts: Counter
    incorrect_predictions: Dict[VariantType, Tuple[int, ...]]
    concordance: GenotypeConcordance
    structural_matches: Dict[int, int] = field(default_factory=dict)
    rescued_variants: Optional[PositionIndex] = None
    rescued_variant_counts: Optional[Counter] = None
    known_false_positives: Optional[PositionIndex] = None
    known_false_positive_counts: Optional[Counter] = None
    correct_known_false_positive_counts: Optional[Counter] = None
    all_known_false_positive_counts: Optional[Counter] = None

    @classmethod
    def create(
        cls,
        contig: str,
        true_variants: PositionIndex,
        predicted_variants: PositionIndex,
        true_positive_locations: Iterable[int],
        false_positive_locations: Iterable[int],
        false_negative_locations: Iterable[int],
        incorrect_predictions: Iterable[int],
        concordance: GenotypeConcordance,
        structural_matches: Optional[Dict[int, int]] = None,
    ) -> "ContigStats":
        true_positives = predicted_variants.subset(true_positive_locations)
        false_positives = predicted_variants.subset(false_positive_locations)
        false_negatives = true_variants.subset(false_negative_locations)

        by_type: Dict[VariantType, list] = {}
        for pos in sorted(incorrect_predictions):
            by_type.setdefault(classify_variant(predicted_variants[pos]), []).append(pos)

        return cls(
            contig=contig,
            true_variants=true_variants,
            predicted_variants=predicted_variants,
            true_positives=true_positives,
            false_positives=false_positives,
            false_negatives=false_negatives,
            true_variant_counts=true_variants.count_by_type(),
            predicted_variant_counts=predicted_variants.count_by_type(),
            true_positive_counts=true_positives.count_by_type(),
            false_positive_counts=false_positives.count_by_type(),
            false_negative_counts=false_negatives.count_by_type(),
            incorrect_predictions={vt: tuple(p) for vt, p in by_type.items()},
            concordance=concordance,
            structural_matches=dict(structural_matches or {}),
        )

    @property
    def incorrect_prediction_positions(self) -> Tuple[int, ...]:
        return tuple(sorted(p for positions in self.incorrect_predictions.values() for p in positions))

    def with_rescue(
        self,
        *,
        new_true_positives: PositionIndex,
        removed_false_positives: PositionIndex,
    ) -> "ContigStats":
        """Apply a rescue outcome as one update.

        ``new_true_positives`` are truth records leaving the false negatives and
        ``removed_false_positives`` are predicted records leaving the false
        positives; the latter join the true positive index and become the
        rescued variants. True positive counts grow by the truth-side types.
        An incorrect prediction stays listed only while its position is still
        both a false positive and a false negative.
        """
        new_tp_counts = new_true_positives.count_by_type()
        removed_fp_counts = removed_false_positives.count_by_type()
        false_positives = self.false_positives.without(removed_false_positives.positions)
        false_negatives = self.false_negatives.without(new_true_positives.positions)

        incorrect: Dict[VariantType, Tuple[int, ...]] = {}
        for vt, positions in self.incorrect_predictions.items():
            kept = tuple(p for p in positions if p in false_positives and p in false_negatives)
            if kept:
                incorrect[vt] = kept

        return replace(
            self,
            true_positives=self.true_positives.union(removed_false_positives),
            false_positives=false_positives,
            false_negatives=false_negatives,
            incorrect_predictions=incorrect,
            true_positive_counts=self.true_positive_counts + new_tp_counts,
            false_positive_counts=self.false_positive_counts - removed_fp_counts,
            false_negative_counts=self.false_negative_counts - new_tp_counts,
            rescued_variants=removed_false_positives,
            rescued_variant_counts=removed_fp_counts,
        )

    def with_known_false_positives(
        self,
        known_false_positives: PositionIndex,
        correct_locations: Iterable[int],
        all_locations: Iterable[int],
    ) -> "ContigStats":
        return replace(
            self,
            known_false_positives=known_false_positives,
            known_false_positive_counts=known_false_positives.count_by_type(),
            correct_known_false_positive_counts=count_by_type(
                known_false_positives.subset(correct_locations).records
            ),
            all_known_false_positive_counts=count_by_type(known_false_positives.subset(all_locations).records),
        )

    def check_invariants(self) -> None:
        """Raise AssertionError if the classification sets are inconsistent."""
        incorrect = set(self.incorrect_prediction_positions)
        truth = set(self.true_variants.positions)
        predicted = set(self.predicted_variants.positions)
        fn = set(self.false_negatives.positions)
        fp = set(self.false_positives.positions)
        tp = set(self.true_positives.positions)

        if not fn <= truth:
            raise AssertionError(f"{self.contig}: false negatives outside the truth set")
        if not (fp | tp) <= predicted:
            raise AssertionError(f"{self.contig}: predictions outside the predicted set")
        if fp & tp:
            raise AssertionError(f"{self.contig}: position is both true and false positive")
        if fp | tp != predicted:
            raise AssertionError(f"{self.contig}: unclassified predicted positions")
        if not incorrect <= (fp & fn):
            raise AssertionError(f"{self.contig}: incorrect predictions missing from FP/FN")
        for vt in VariantType:
            if self.true_variant_counts[vt] < self.false_negative_counts[vt]:
                raise AssertionError(f"{self.contig}: more {vt.name} false negatives than truth calls")
