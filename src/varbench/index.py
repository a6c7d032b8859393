from __future__ import annotations

import bisect
from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .classify import classify_variant
from .models import VariantRecord, VariantType


@dataclass(frozen=True)
class PositionIndex:
    """Ordered position -> record lookup for one contig."""

    positions: Tuple[int, ...]  # sorted, unique 1-based positions
    records: Tuple[VariantRecord, ...]  # aligned with positions

    @classmethod
    def from_records(cls, records: Iterable[VariantRecord]) -> "PositionIndex":
        """Build an index; when two records share a position the last one wins."""
        by_pos: Dict[int, VariantRecord] = {}
        for rec in records:
            by_pos[rec.position] = rec
        return cls._from_mapping(by_pos)

    @classmethod
    def empty(cls) -> "PositionIndex":
        return cls(positions=(), records=())

    @classmethod
    def _from_mapping(cls, by_pos: Dict[int, VariantRecord]) -> "PositionIndex":
        ordered = sorted(by_pos)
        return cls(positions=tuple(ordered), records=tuple(by_pos[p] for p in ordered))

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self) -> Iterator[int]:
        return iter(self.positions)

    def __contains__(self, position: object) -> bool:
        if not isinstance(position, int):
            return False
        i = bisect.bisect_left(self.positions, position)
        return i < len(self.positions) and self.positions[i] == position

    def __getitem__(self, position: int) -> VariantRecord:
        i = bisect.bisect_left(self.positions, position)
        if i < len(self.positions) and self.positions[i] == position:
            return self.records[i]
        raise KeyError(position)

    def get(self, position: int) -> Optional[VariantRecord]:
        try:
            return self[position]
        except KeyError:
            return None

    def items(self) -> Iterator[Tuple[int, VariantRecord]]:
        return zip(self.positions, self.records)

    def in_range(self, lo: int, hi: int) -> List[VariantRecord]:
        """Records with ``lo <= position <= hi``, ascending."""
        i = bisect.bisect_left(self.positions, lo)
        j = bisect.bisect_right(self.positions, hi)
        return list(self.records[i:j])

    def subset(self, positions: Iterable[int]) -> "PositionIndex":
        """Index restricted to the given positions; unknown positions are ignored."""
        keep = set(positions)
        return self._from_mapping({p: r for p, r in self.items() if p in keep})

    def without(self, positions: Iterable[int]) -> "PositionIndex":
        drop = set(positions)
        return self._from_mapping({p: r for p, r in self.items() if p not in drop})

    def union(self, other: "PositionIndex") -> "PositionIndex":
        """Merge two indexes; records of ``other`` win on shared positions."""
        merged = dict(self.items())
        merged.update(other.items())
        return self._from_mapping(merged)

    def count_by_type(self) -> Counter:
        return count_by_type(self.records)


def count_by_type(records: Iterable[VariantRecord]) -> Counter:
    """Per-VariantType occurrence counts."""
    counts: Counter = Counter()
    for rec in records:
        counts[classify_variant(rec)] += 1
    return counts


def group_by_contig(records: Iterable[VariantRecord]) -> Dict[str, List[VariantRecord]]:
    """Partition records by contig, preserving input order within a contig."""
    by_contig: Dict[str, List[VariantRecord]] = {}
    for rec in records:
        by_contig.setdefault(rec.contig, []).append(rec)
    return by_contig


def index_by_contig(records: Iterable[VariantRecord]) -> Dict[str, PositionIndex]:
    return {contig: PositionIndex.from_records(lst) for contig, lst in group_by_contig(records).items()}


def type_counts_to_dict(counts: Counter) -> Dict[str, int]:
    """Render a per-type Counter with every VariantType present (JSON friendly)."""
    return {vt.name: int(counts.get(vt, 0)) for vt in VariantType}
