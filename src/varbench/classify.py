from __future__ import annotations

import re
from typing import Optional

from .models import Genotype, VariantRecord, VariantType

_SV_INFO_KEY = "SVTYPE"
_GT_SPLIT = re.compile(r"[/|]")


def _is_snp(record: VariantRecord) -> bool:
    if len(record.reference_bases) != 1:
        return False
    return all(len(alt) == 1 for alt in record.alternate_bases)


def _is_structural_variant(record: VariantRecord) -> bool:
    return _SV_INFO_KEY in record.info


def classify_variant(record: VariantRecord) -> VariantType:
    """Infer the VariantType of a record.

    SNPs are recognised first, then structural variants (records carrying an
    ``SVTYPE`` INFO entry), then indels. Only single-alt records are split into
    insertion/deletion/inversion; multi-allelic records fall back to the
    ``*_OTHER`` types.
    """
    if _is_snp(record):
        return VariantType.SNP

    ref = record.reference_bases
    single_alt = len(record.alternate_bases) == 1

    if _is_structural_variant(record):
        if not single_alt:
            return VariantType.SV_OTHER
        alt = record.alternate_bases[0]
        if len(alt) < len(ref):
            return VariantType.SV_DELETION
        if len(alt) > len(ref):
            return VariantType.SV_INSERTION
        return VariantType.SV_OTHER

    if not single_alt:
        return VariantType.INDEL_OTHER
    alt = record.alternate_bases[0]
    if len(alt) < len(ref):
        return VariantType.INDEL_DELETION
    if len(alt) > len(ref):
        return VariantType.INDEL_INSERTION
    if alt == ref[::-1]:
        return VariantType.INDEL_INVERSION
    return VariantType.INDEL_OTHER


def parse_genotype(raw: Optional[str]) -> Genotype:
    """Parse a raw GT string such as ``0/1`` or ``1|1``.

    Non-numeric allele tokens (``.``) are ignored; if nothing parseable remains
    the call is NO_CALL.
    """
    if not raw:
        return Genotype.NO_CALL

    indices = [int(tok) for tok in _GT_SPLIT.split(raw.strip()) if tok.isdigit()]
    if not indices:
        return Genotype.NO_CALL
    if any(i != indices[0] for i in indices[1:]):
        return Genotype.HET
    return Genotype.HOM_REF if indices[0] == 0 else Genotype.HOM_VAR


def genotype_of(record: VariantRecord) -> Genotype:
    return parse_genotype(record.genotype)
