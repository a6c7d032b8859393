from collections import Counter

import pytest

from varbench.index import PositionIndex, index_by_contig, type_counts_to_dict
from varbench.models import VariantRecord, VariantType


def snp(pos: int, alt: str = "G", contig: str = "chr1") -> VariantRecord:
    return VariantRecord(contig=contig, position=pos, reference_bases="A", alternate_bases=(alt,))


def test_positions_sorted_and_last_record_wins():
    idx = PositionIndex.from_records([snp(30), snp(10), snp(20), snp(10, alt="T")])
    assert idx.positions == (10, 20, 30)
    assert idx[10].alternate_bases == ("T",)
    assert len(idx) == 3
    assert 20 in idx and 25 not in idx


def test_missing_position():
    idx = PositionIndex.from_records([snp(10)])
    assert idx.get(11) is None
    with pytest.raises(KeyError):
        idx[11]


def test_in_range_is_inclusive():
    idx = PositionIndex.from_records([snp(p) for p in (5, 10, 15, 20)])
    assert [r.position for r in idx.in_range(10, 20)] == [10, 15, 20]
    assert idx.in_range(11, 14) == []


def test_subset_without_union():
    idx = PositionIndex.from_records([snp(p) for p in (1, 2, 3)])
    assert idx.subset([1, 3, 99]).positions == (1, 3)
    assert idx.without([2]).positions == (1, 3)

    other = PositionIndex.from_records([snp(3, alt="C"), snp(4)])
    merged = idx.union(other)
    assert merged.positions == (1, 2, 3, 4)
    assert merged[3].alternate_bases == ("C",)


def test_counts_and_contigs():
    records = [
        snp(1),
        VariantRecord(contig="chr1", position=5, reference_bases="AT", alternate_bases=("A",)),
        snp(7, contig="chr2"),
    ]
    by_contig = index_by_contig(records)
    assert set(by_contig) == {"chr1", "chr2"}
    counts = by_contig["chr1"].count_by_type()
    assert counts == Counter({VariantType.SNP: 1, VariantType.INDEL_DELETION: 1})

    as_dict = type_counts_to_dict(counts)
    assert set(as_dict) == {vt.name for vt in VariantType}
    assert as_dict["SV_DELETION"] == 0
