from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from tqdm import tqdm

from .classify import classify_variant, genotype_of
from .concordance import GenotypeConcordance
from .index import PositionIndex, index_by_contig
from .models import VariantRecord
from .rescue import ReferenceProvider, rescue_contig
from .stats import ContigStats
from .structural import find_structural_match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluatorConfig:
    """Matching tolerances.

    max_indel_length:
        Largest length change of an indel that the rescue step will consider.
    max_sv_breakpoint_distance:
        Maximum distance between truth and predicted SV positions for a breakpoint match.
    max_variant_length_difference:
        SV length gains must differ by strictly less than this to match.
    rescue_window_size:
        Initial size of the reference window examined around a false negative.
    """

    max_indel_length: int = 50
    max_sv_breakpoint_distance: int = 100
    max_variant_length_difference: int = 100
    rescue_window_size: int = 50

    def __post_init__(self) -> None:
        for name in (
            "max_indel_length",
            "max_sv_breakpoint_distance",
            "max_variant_length_difference",
            "rescue_window_size",
        ):
            if int(getattr(self, name)) < 0:
                raise ValueError(f"{name} must be >= 0 (got {getattr(self, name)})")


class ContigEvaluator:
    """Classify the calls of a single contig."""

    def __init__(self, config: EvaluatorConfig, reference: Optional[ReferenceProvider] = None) -> None:
        self.config = config
        self.reference = reference

    def evaluate(
        self,
        contig: str,
        true_variants: PositionIndex,
        predicted_variants: PositionIndex,
        known_false_positives: Optional[PositionIndex] = None,
    ) -> ContigStats:
        truth_locs = set(true_variants.positions)
        pred_locs = set(predicted_variants.positions)

        true_positive_locs: Set[int] = set()
        incorrect: Set[int] = set()
        structural_matches: Dict[int, int] = {}
        concordance = GenotypeConcordance()

        # exact-position pass
        for pos in sorted(truth_locs & pred_locs):
            true_var = true_variants[pos]
            pred_var = predicted_variants[pos]
            true_type = classify_variant(true_var)
            if true_type == classify_variant(pred_var) and (
                true_type.is_structural_variant or true_var.alternate_bases == pred_var.alternate_bases
            ):
                true_positive_locs.add(pos)
                concordance.increment(true_type, genotype_of(true_var), genotype_of(pred_var))
            else:
                incorrect.add(pos)

        false_positive_locs = pred_locs - truth_locs
        false_negative_locs = truth_locs - pred_locs

        # breakpoint matching for SVs present only in the truth set; must run
        # before incorrect predictions join the FP/FN sets
        for pos in sorted(false_negative_locs):
            true_var = true_variants[pos]
            true_type = classify_variant(true_var)
            if not true_type.is_structural_variant:
                continue
            match = find_structural_match(
                true_var,
                predicted_variants,
                max_breakpoint_distance=self.config.max_sv_breakpoint_distance,
                max_length_difference=self.config.max_variant_length_difference,
                eligible=false_positive_locs,
            )
            if match is None:
                continue
            true_positive_locs.add(match)
            false_positive_locs.discard(match)
            false_negative_locs.discard(pos)
            structural_matches[pos] = match
            concordance.increment(
                true_type,
                genotype_of(true_var),
                genotype_of(predicted_variants[match]),
            )

        false_positive_locs |= incorrect
        false_negative_locs |= incorrect

        stats = ContigStats.create(
            contig,
            true_variants,
            predicted_variants,
            true_positive_locs,
            false_positive_locs,
            false_negative_locs,
            incorrect,
            concordance,
            structural_matches=structural_matches,
        )
        logger.debug(
            "%s: %d truth, %d predicted, %d TP, %d FP, %d FN, %d incorrect, %d SV breakpoint matches",
            contig,
            len(true_variants),
            len(predicted_variants),
            len(stats.true_positives),
            len(stats.false_positives),
            len(stats.false_negatives),
            len(incorrect),
            len(structural_matches),
        )

        if self.reference is not None:
            stats = rescue_contig(
                stats,
                self.reference,
                window_size=self.config.rescue_window_size,
                max_indel_length=self.config.max_indel_length,
            )

        if known_false_positives is not None:
            stats = self._reconcile_known_false_positives(stats, known_false_positives)
        return stats

    @staticmethod
    def _reconcile_known_false_positives(stats: ContigStats, known: PositionIndex) -> ContigStats:
        correct: List[int] = []
        seen: List[int] = []
        for pos, known_var in known.items():
            pred_var = stats.predicted_variants.get(pos)
            if pred_var is None:
                continue
            if known_var.reference_bases == pred_var.reference_bases:
                correct.append(pos)
            seen.append(pos)
        return stats.with_known_false_positives(known, correct, seen)


class VariantEvaluator:
    """Compare truth and predicted call sets contig by contig.

    Usage::

        evaluator = VariantEvaluator(EvaluatorConfig(max_sv_breakpoint_distance=200))
        results = evaluator.evaluate(truth_records, predicted_records)
        results["chr1"].true_positive_counts
    """

    def __init__(
        self,
        config: Optional[EvaluatorConfig] = None,
        *,
        reference: Optional[ReferenceProvider] = None,
    ) -> None:
        self.config = config if config is not None else EvaluatorConfig()
        self.reference = reference
        self._contig_evaluator = ContigEvaluator(self.config, reference)

    def evaluate(
        self,
        true_variants: Iterable[VariantRecord],
        predicted_variants: Iterable[VariantRecord],
        known_false_positives: Optional[Iterable[VariantRecord]] = None,
        *,
        progress: bool = False,
    ) -> Dict[str, ContigStats]:
        """Evaluate every contig seen in any input set; keys are in ascending order."""
        truth_by_contig = index_by_contig(true_variants)
        pred_by_contig = index_by_contig(predicted_variants)
        known_by_contig = index_by_contig(known_false_positives) if known_false_positives is not None else None

        contigs = set(truth_by_contig) | set(pred_by_contig)
        if known_by_contig is not None:
            contigs |= set(known_by_contig)

        results: Dict[str, ContigStats] = {}
        it = sorted(contigs)
        if progress:
            it = tqdm(it, desc="contigs", unit="contig")
        for contig in it:
            known: Optional[PositionIndex] = None
            if known_by_contig is not None:
                known = known_by_contig.get(contig, PositionIndex.empty())
            results[contig] = self._contig_evaluator.evaluate(
                contig,
                truth_by_contig.get(contig, PositionIndex.empty()),
                pred_by_contig.get(contig, PositionIndex.empty()),
                known,
            )
            stats = results[contig]
            logger.info(
                "%s: TP=%d FP=%d FN=%d",
                contig,
                sum(stats.true_positive_counts.values()),
                sum(stats.false_positive_counts.values()),
                sum(stats.false_negative_counts.values()),
            )
        return results
