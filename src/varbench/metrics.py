from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .concordance import GenotypeConcordance
from .index import type_counts_to_dict
from .models import VariantType
from .stats import ContigStats

logger = logging.getLogger(__name__)

# Aggregate rows reported in addition to the individual variant types.
_GROUPS: List[Tuple[str, Callable[[VariantType], bool]]] = [
    ("INDEL", lambda vt: vt.is_indel),
    ("SV", lambda vt: vt.is_structural_variant),
    ("ALL", lambda vt: True),
]


@dataclass(frozen=True)
class MetricsRow:
    label: str
    truth: int
    predicted: int
    tp: int
    fp: int
    fn: int
    precision: float
    recall: float
    f1: float


def cal_metrics(tp: int, fp: int, fn: int) -> Tuple[float, float, float]:
    """Precision, recall and F1; each is 0.0 when its denominator is zero."""
    precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0
    recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0
    f1 = 2 * precision * recall / (precision + recall) if precision + recall > 0 else 0.0
    return round(precision, 4), round(recall, 4), round(f1, 4)


def _row(label: str, counts: Mapping[str, Counter], keep: Callable[[VariantType], bool]) -> MetricsRow:
    def total(name: str) -> int:
        return sum(n for vt, n in counts[name].items() if keep(vt))

    tp, fp, fn = total("tp"), total("fp"), total("fn")
    precision, recall, f1 = cal_metrics(tp=tp, fp=fp, fn=fn)
    return MetricsRow(
        label=label,
        truth=total("truth"),
        predicted=total("predicted"),
        tp=tp,
        fp=fp,
        fn=fn,
        precision=precision,
        recall=recall,
        f1=f1,
    )


def _sum_counts(stats: List[ContigStats]) -> Dict[str, Counter]:
    counts: Dict[str, Counter] = {k: Counter() for k in ("truth", "predicted", "tp", "fp", "fn")}
    for s in stats:
        counts["truth"].update(s.true_variant_counts)
        counts["predicted"].update(s.predicted_variant_counts)
        counts["tp"].update(s.true_positive_counts)
        counts["fp"].update(s.false_positive_counts)
        counts["fn"].update(s.false_negative_counts)
    return counts


def metrics_rows(stats: List[ContigStats]) -> List[MetricsRow]:
    """Per-type rows (types with any call only) followed by INDEL/SV/ALL rows."""
    counts = _sum_counts(stats)
    rows: List[MetricsRow] = []
    for vt in VariantType:
        row = _row(vt.name, counts, lambda x, vt=vt: x == vt)
        if row.truth or row.predicted or row.tp or row.fp or row.fn:
            rows.append(row)
    for label, keep in _GROUPS:
        rows.append(_row(label, counts, keep))
    return rows


def concordance_rates(concordance: GenotypeConcordance) -> Dict[str, Dict[str, Any]]:
    """Fraction of matched calls with identical truth/predicted genotype, per type."""
    out: Dict[str, Dict[str, Any]] = {}
    for vt in VariantType:
        n = concordance.total(vt)
        if n == 0:
            continue
        agree = concordance.agreeing(vt)
        out[vt.name] = {"matched": n, "agreeing": agree, "rate": round(agree / n, 4)}
    return out


def _optional_counts(counts: Optional[Counter]) -> Optional[Dict[str, int]]:
    return type_counts_to_dict(counts) if counts is not None else None


def contig_summary(stats: ContigStats) -> Dict[str, Any]:
    return {
        "contig": stats.contig,
        "metrics": [asdict(r) for r in metrics_rows([stats])],
        "incorrect_predictions": {vt.name: len(p) for vt, p in stats.incorrect_predictions.items()},
        "structural_matches": len(stats.structural_matches),
        "rescued_variant_counts": _optional_counts(stats.rescued_variant_counts),
        "known_false_positive_counts": _optional_counts(stats.known_false_positive_counts),
        "correct_known_false_positive_counts": _optional_counts(stats.correct_known_false_positive_counts),
        "all_known_false_positive_counts": _optional_counts(stats.all_known_false_positive_counts),
    }


def summarize(results: Mapping[str, ContigStats]) -> Dict[str, Any]:
    """Machine-readable summary across all contigs (JSON serialisable)."""
    stats = list(results.values())
    concordance = GenotypeConcordance()
    for s in stats:
        concordance = concordance.merged(s.concordance)

    def merged_optional(attr: str) -> Optional[Dict[str, int]]:
        present = [getattr(s, attr) for s in stats if getattr(s, attr) is not None]
        if not present:
            return None
        total: Counter = Counter()
        for c in present:
            total.update(c)
        return type_counts_to_dict(total)

    overall = metrics_rows(stats)
    all_row = overall[-1]
    logger.info(
        "Overall: precision=%.4f recall=%.4f F1=%.4f (TP=%d FP=%d FN=%d)",
        all_row.precision,
        all_row.recall,
        all_row.f1,
        all_row.tp,
        all_row.fp,
        all_row.fn,
    )
    return {
        "contigs": [contig_summary(s) for s in stats],
        "overall": [asdict(r) for r in overall],
        "concordance": concordance.to_dict(),
        "concordance_rates": concordance_rates(concordance),
        "rescued_variant_counts": merged_optional("rescued_variant_counts"),
        "correct_known_false_positive_counts": merged_optional("correct_known_false_positive_counts"),
        "all_known_false_positive_counts": merged_optional("all_known_false_positive_counts"),
    }
