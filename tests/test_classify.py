from typing import Optional

import pytest

from varbench.classify import classify_variant, parse_genotype
from varbench.models import Genotype, VariantRecord, VariantType


def make_var(ref: str, *alts: str, svtype: Optional[str] = None) -> VariantRecord:
    info = {"SVTYPE": svtype} if svtype is not None else {}
    return VariantRecord(contig="1", position=100, reference_bases=ref, alternate_bases=alts, info=info)


@pytest.mark.parametrize(
    "ref,alts,expected",
    [
        ("A", ("G",), VariantType.SNP),
        ("A", ("G", "T"), VariantType.SNP),
        ("A", ("AT",), VariantType.INDEL_INSERTION),
        ("AT", ("A",), VariantType.INDEL_DELETION),
        ("AT", ("TA",), VariantType.INDEL_INVERSION),
        ("AC", ("GT",), VariantType.INDEL_OTHER),
        ("A", ("AT", "ATT"), VariantType.INDEL_OTHER),
    ],
)
def test_classify_small_variants(ref, alts, expected):
    assert classify_variant(make_var(ref, *alts)) == expected


def test_classify_structural_variants():
    assert classify_variant(make_var("A" * 50, "A", svtype="DEL")) == VariantType.SV_DELETION
    assert classify_variant(make_var("A", "A" * 50, svtype="INS")) == VariantType.SV_INSERTION
    assert classify_variant(make_var("ACGT", "TGCA", svtype="INV")) == VariantType.SV_OTHER
    assert classify_variant(make_var("AT", "A", "ATT", svtype="DEL")) == VariantType.SV_OTHER


def test_snp_check_wins_over_svtype():
    assert classify_variant(make_var("A", "G", svtype="BND")) == VariantType.SNP


def test_type_facets():
    assert VariantType.SNP.is_snp and not VariantType.SNP.is_indel
    assert VariantType.INDEL_DELETION.is_indel and VariantType.INDEL_DELETION.is_deletion
    assert VariantType.SV_INSERTION.is_structural_variant and VariantType.SV_INSERTION.is_insertion
    assert VariantType.INDEL_INVERSION.is_inversion
    assert VariantType.SV_OTHER.is_other and not VariantType.SV_OTHER.is_indel


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("0/0", Genotype.HOM_REF),
        ("1/1", Genotype.HOM_VAR),
        ("0/1", Genotype.HET),
        ("1|0", Genotype.HET),
        ("2/2", Genotype.HOM_VAR),
        ("1/2", Genotype.HET),
        (".", Genotype.NO_CALL),
        ("./.", Genotype.NO_CALL),
        ("", Genotype.NO_CALL),
        (None, Genotype.NO_CALL),
        ("1", Genotype.HOM_VAR),
    ],
)
def test_parse_genotype(raw, expected):
    assert parse_genotype(raw) == expected


def test_partial_no_call_uses_called_alleles():
    assert parse_genotype("./1") == Genotype.HOM_VAR
