from __future__ import annotations

from typing import Dict

import numpy as np

from .models import Genotype, VariantType

_TYPES = list(VariantType)
_GENOTYPES = list(Genotype)
_TYPE_IDX = {vt: i for i, vt in enumerate(_TYPES)}
_GT_IDX = {gt: i for i, gt in enumerate(_GENOTYPES)}


class GenotypeConcordance:
    """Counts of (variant type, truth genotype, predicted genotype) over matched calls.

    Every combination starts at zero; counts are only ever incremented.
    """

    def __init__(self) -> None:
        self._counts = np.zeros((len(_TYPES), len(_GENOTYPES), len(_GENOTYPES)), dtype=np.int64)

    def get(self, variant_type: VariantType, true_genotype: Genotype, predicted_genotype: Genotype) -> int:
        return int(self._counts[_TYPE_IDX[variant_type], _GT_IDX[true_genotype], _GT_IDX[predicted_genotype]])

    def increment(self, variant_type: VariantType, true_genotype: Genotype, predicted_genotype: Genotype) -> None:
        self._counts[_TYPE_IDX[variant_type], _GT_IDX[true_genotype], _GT_IDX[predicted_genotype]] += 1

    def total(self, variant_type: VariantType) -> int:
        return int(self._counts[_TYPE_IDX[variant_type]].sum())

    def agreeing(self, variant_type: VariantType) -> int:
        """Matched calls whose truth and predicted genotypes are identical."""
        return int(np.trace(self._counts[_TYPE_IDX[variant_type]]))

    def matrix(self, variant_type: VariantType) -> np.ndarray:
        """Truth x predicted genotype table for one type (copy)."""
        return self._counts[_TYPE_IDX[variant_type]].copy()

    def merged(self, other: "GenotypeConcordance") -> "GenotypeConcordance":
        out = GenotypeConcordance()
        out._counts = self._counts + other._counts
        return out

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, int]]]:
        """Nested ``{type: {truth_gt: {pred_gt: n}}}`` with zero types omitted."""
        out: Dict[str, Dict[str, Dict[str, int]]] = {}
        for vt in _TYPES:
            if self.total(vt) == 0:
                continue
            table = self._counts[_TYPE_IDX[vt]]
            out[vt.name] = {
                tg.name: {pg.name: int(table[_GT_IDX[tg], _GT_IDX[pg]]) for pg in _GENOTYPES}
                for tg in _GENOTYPES
            }
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenotypeConcordance):
            return NotImplemented
        return bool(np.array_equal(self._counts, other._counts))

    def __repr__(self) -> str:
        return f"GenotypeConcordance(total={int(self._counts.sum())})"
