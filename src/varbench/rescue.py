"""Reference-guided rescue of indel calls that differ only in representation.

Two callers frequently describe the same edit differently: a deletion inside a
homopolymer can be placed at any base of the run, and a complex change may be
split into several records by one caller and reported as one by another.
Exact-position matching counts such pairs as a false negative plus a false
positive.

The rescue re-expresses both call sets over a small reference window as
sequences and compares them. If the truth and predicted edits produce the same
sequence, the calls inside the window are reconciled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Container, Dict, Iterable, List, Optional, Protocol, Tuple

from .classify import classify_variant
from .index import PositionIndex
from .models import VariantRecord
from .stats import ContigStats

logger = logging.getLogger(__name__)

# Upper bound on window growth iterations; each pass only ever widens the window.
_MAX_GROWTH_STEPS = 32


class ReferenceProvider(Protocol):
    """Read-only reference sequence access (``pysam.FastaFile`` satisfies this)."""

    def fetch(self, reference: str, start: int, end: int) -> str:
        ...

    def get_reference_length(self, reference: str) -> int:
        ...


@dataclass(frozen=True)
class RescueWindow:
    """A reconciled window: 1-based inclusive bounds plus the calls on each side."""

    start: int
    end: int
    truth: Tuple[VariantRecord, ...]
    predicted: Tuple[VariantRecord, ...]


def _candidate_windows(position: int, window_size: int, contig_length: int) -> List[Tuple[int, int]]:
    half = window_size // 2
    raw = [
        (position - half, position + half),
        (position - window_size, position),
        (position, position + window_size),
    ]
    out: List[Tuple[int, int]] = []
    for lo, hi in raw:
        lo, hi = max(1, lo), min(contig_length, hi)
        if lo <= hi and (lo, hi) not in out:
            out.append((lo, hi))
    return out


def _grow_window(
    start: int,
    end: int,
    truth: PositionIndex,
    predicted: PositionIndex,
    contig_length: int,
    lookback: int,
) -> Tuple[int, int, List[VariantRecord], List[VariantRecord]]:
    """Widen [start, end] until no record straddles an edge.

    Records starting up to ``lookback`` bases before the window are considered
    for overlap.
    """
    truth_recs: List[VariantRecord] = []
    pred_recs: List[VariantRecord] = []
    for _ in range(_MAX_GROWTH_STEPS):
        # records starting before the window may still reach into it
        truth_recs = [r for r in truth.in_range(start - lookback, end) if r.end >= start]
        pred_recs = [r for r in predicted.in_range(start - lookback, end) if r.end >= start]
        recs = truth_recs + pred_recs
        if not recs:
            break
        new_start = max(1, min([start] + [r.position for r in recs]))
        new_end = min(contig_length, max([end] + [r.end for r in recs]))
        if (new_start, new_end) == (start, end):
            break
        start, end = new_start, new_end
    return start, end, truth_recs, pred_recs


def apply_variants(
    reference: ReferenceProvider,
    contig: str,
    start: int,
    end: int,
    records: Iterable[VariantRecord],
) -> Optional[str]:
    """Sequence of reference[start..end] (1-based, inclusive) with records applied.

    Each record contributes its first alternate allele. Returns None when two
    records overlap, a record leaves the window, or a record's reference bases
    disagree with the reference.
    """
    window_seq = reference.fetch(contig, start - 1, end).upper()
    parts: List[str] = []
    cursor = start
    for rec in sorted(records, key=lambda r: r.position):
        if rec.position < cursor or rec.end > end:
            return None
        offset = rec.position - start
        ref_bases = rec.reference_bases.upper()
        if window_seq[offset : offset + len(ref_bases)] != ref_bases:
            logger.debug(
                "Reference mismatch at %s:%d (%s vs %s)",
                contig,
                rec.position,
                ref_bases,
                window_seq[offset : offset + len(ref_bases)],
            )
            return None
        parts.append(window_seq[cursor - start : offset])
        parts.append(rec.alternate_bases[0].upper())
        cursor = rec.end + 1
    parts.append(window_seq[cursor - start :])
    return "".join(parts)


def _longest_reference(*indexes: PositionIndex) -> int:
    return max((len(r.reference_bases) for index in indexes for r in index.records), default=1)


def _rescuable(records: Iterable[VariantRecord], max_indel_length: int) -> bool:
    for rec in records:
        if classify_variant(rec).is_structural_variant:
            return False
        if abs(len(rec.reference_bases) - len(rec.alternate_bases[0])) > max_indel_length:
            return False
    return True


def find_rescue_window(
    variant: VariantRecord,
    *,
    reference: ReferenceProvider,
    true_variants: PositionIndex,
    predicted_variants: PositionIndex,
    false_positives: Container[int],
    window_size: int,
    max_indel_length: int,
    lookback: Optional[int] = None,
) -> Optional[RescueWindow]:
    """Find a window around ``variant`` where truth and predictions agree in sequence.

    Windows are tried centred on the variant, then ending at it, then starting at
    it. A window needs at least one current false positive on the predicted side.
    ``lookback`` bounds how far before a window a record may start and still reach
    into it; it defaults to the longest reference allele in either index.
    """
    contig = variant.contig
    contig_length = reference.get_reference_length(contig)
    if lookback is None:
        lookback = _longest_reference(true_variants, predicted_variants)

    for lo, hi in _candidate_windows(variant.position, window_size, contig_length):
        start, end, truth_recs, pred_recs = _grow_window(
            lo, hi, true_variants, predicted_variants, contig_length, lookback=lookback
        )
        if not any(r.position in false_positives for r in pred_recs):
            continue
        if not _rescuable(truth_recs, max_indel_length) or not _rescuable(pred_recs, max_indel_length):
            continue

        truth_seq = apply_variants(reference, contig, start, end, truth_recs)
        if truth_seq is None:
            continue
        pred_seq = apply_variants(reference, contig, start, end, pred_recs)
        if pred_seq is None or pred_seq != truth_seq:
            continue

        logger.debug(
            "Rescued window %s:%d-%d (%d truth, %d predicted calls)",
            contig,
            start,
            end,
            len(truth_recs),
            len(pred_recs),
        )
        return RescueWindow(start=start, end=end, truth=tuple(truth_recs), predicted=tuple(pred_recs))
    return None


def rescue_contig(
    stats: ContigStats,
    reference: ReferenceProvider,
    *,
    window_size: int,
    max_indel_length: int,
) -> ContigStats:
    """Reconcile non-SV false negatives against false positives via the reference.

    False negatives are visited in ascending order. Each success removes the
    window's false negatives and false positives before the next one is tried;
    the accumulated changes are applied to ``stats`` in one update.
    """
    try:
        reference.get_reference_length(stats.contig)
    except (KeyError, ValueError):
        logger.warning("Contig %s is not in the reference; skipping rescue.", stats.contig)
        return stats.with_rescue(
            new_true_positives=PositionIndex.empty(),
            removed_false_positives=PositionIndex.empty(),
        )

    false_negatives: Dict[int, VariantRecord] = dict(stats.false_negatives.items())
    false_positives: Dict[int, VariantRecord] = dict(stats.false_positives.items())
    new_tp: List[VariantRecord] = []
    removed_fp: List[VariantRecord] = []
    lookback = _longest_reference(stats.true_variants, stats.predicted_variants)

    for pos, variant in stats.false_negatives.items():
        if pos not in false_negatives:
            continue
        if classify_variant(variant).is_structural_variant:
            continue
        window = find_rescue_window(
            variant,
            reference=reference,
            true_variants=stats.true_variants,
            predicted_variants=stats.predicted_variants,
            false_positives=false_positives,
            window_size=window_size,
            max_indel_length=max_indel_length,
            lookback=lookback,
        )
        if window is None:
            continue
        for rec in window.truth:
            if false_negatives.pop(rec.position, None) is not None:
                new_tp.append(rec)
        for rec in window.predicted:
            if false_positives.pop(rec.position, None) is not None:
                removed_fp.append(rec)

    if new_tp or removed_fp:
        logger.info(
            "%s: rescue reconciled %d false negatives and %d false positives",
            stats.contig,
            len(new_tp),
            len(removed_fp),
        )
    return stats.with_rescue(
        new_true_positives=PositionIndex.from_records(new_tp),
        removed_false_positives=PositionIndex.from_records(removed_fp),
    )
