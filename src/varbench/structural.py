from __future__ import annotations

import logging
from typing import Container, Optional

from .classify import classify_variant
from .index import PositionIndex
from .models import VariantRecord

logger = logging.getLogger(__name__)


def _length_gain(ref: str, alt: str) -> int:
    return len(ref) - len(alt)


def _lengths_compatible(
    true_variant: VariantRecord,
    predicted_variant: VariantRecord,
    max_length_difference: int,
) -> bool:
    for true_alt in true_variant.alternate_bases:
        true_gain = _length_gain(true_variant.reference_bases, true_alt)
        for pred_alt in predicted_variant.alternate_bases:
            pred_gain = _length_gain(predicted_variant.reference_bases, pred_alt)
            if abs(true_gain - pred_gain) < max_length_difference:
                return True
    return False


def find_structural_match(
    true_variant: VariantRecord,
    candidates: PositionIndex,
    *,
    max_breakpoint_distance: int,
    max_length_difference: int,
    eligible: Optional[Container[int]] = None,
) -> Optional[int]:
    """Position of the closest predicted SV compatible with ``true_variant``.

    Candidates must lie within ``max_breakpoint_distance`` of the truth position
    (inclusive), share its VariantType and have a length gain differing by less
    than ``max_length_difference`` for at least one pair of alternate alleles.
    When ``eligible`` is given, only those positions are considered.
    Equal distances resolve to the lowest position. Returns None when nothing
    qualifies.
    """
    pos = true_variant.position
    true_type = classify_variant(true_variant)

    best: Optional[int] = None
    best_dist = 0
    for cand in candidates.in_range(pos - max_breakpoint_distance, pos + max_breakpoint_distance):
        if eligible is not None and cand.position not in eligible:
            continue
        if classify_variant(cand) != true_type:
            continue
        if not _lengths_compatible(true_variant, cand, max_length_difference):
            continue
        dist = abs(cand.position - pos)
        # in_range is ascending, so strict < keeps the lowest position on ties
        if best is None or dist < best_dist:
            best, best_dist = cand.position, dist

    if best is not None:
        logger.debug(
            "SV %s:%d (%s) matched predicted position %d (distance %d)",
            true_variant.contig,
            pos,
            true_type.name,
            best,
            best_dist,
        )
    return best
