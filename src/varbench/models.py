from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class VariantRecord:
    """A single variant call on one contig.

    Coordinates are 1-based, as in VCF.

    Attributes
    ----------
    contig:
        Contig name as present in the input file.
    position:
        1-based position of the first reference base.
    reference_bases:
        Reference allele.
    alternate_bases:
        Alternate alleles, in input order. Never empty.
    info:
        INFO key/value entries. Only the ``SVTYPE`` key is consulted.
    genotype:
        Raw allele-index string of the evaluated sample (e.g. ``0/1`` or ``1|0``),
        or None if the record carries no genotype.
    """

    contig: str
    position: int
    reference_bases: str
    alternate_bases: Tuple[str, ...]
    info: Mapping[str, Any] = field(default_factory=dict, hash=False)
    genotype: Optional[str] = None

    @property
    def end(self) -> int:
        """1-based position of the last reference base."""
        return self.position + len(self.reference_bases) - 1


class VariantType(Enum):
    # (snp, indel, sv, insertion, deletion, inversion, other)
    SNP = (True, False, False, False, False, False, False)
    INDEL_INSERTION = (False, True, False, True, False, False, False)
    INDEL_DELETION = (False, True, False, False, True, False, False)
    INDEL_INVERSION = (False, True, False, False, False, True, False)
    INDEL_OTHER = (False, True, False, False, False, False, True)
    SV_INSERTION = (False, False, True, True, False, False, False)
    SV_DELETION = (False, False, True, False, True, False, False)
    SV_OTHER = (False, False, True, False, False, False, True)

    @property
    def is_snp(self) -> bool:
        return self.value[0]

    @property
    def is_indel(self) -> bool:
        return self.value[1]

    @property
    def is_structural_variant(self) -> bool:
        return self.value[2]

    @property
    def is_insertion(self) -> bool:
        return self.value[3]

    @property
    def is_deletion(self) -> bool:
        return self.value[4]

    @property
    def is_inversion(self) -> bool:
        return self.value[5]

    @property
    def is_other(self) -> bool:
        return self.value[6]


class Genotype(Enum):
    HET = "het"
    HOM_REF = "hom_ref"
    HOM_VAR = "hom_var"
    NO_CALL = "no_call"
