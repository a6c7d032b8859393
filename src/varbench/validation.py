from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import pysam

logger = logging.getLogger(__name__)


_UCSC_PREFIX = "chr"


def check_vcf_index(vcf_path: str | Path) -> None:
    """Ensure a bgzipped VCF has a tabix index; raise ValueError with fix instructions."""
    vcf = Path(vcf_path)
    if vcf.suffixes[-2:] == [".vcf", ".gz"]:
        tbi = vcf.with_suffix(vcf.suffix + ".tbi")
        csi = vcf.with_suffix(vcf.suffix + ".csi")
        if not tbi.exists() and not csi.exists():
            raise ValueError(
                "VCF is not bgzip/tabix indexed. Run: bgzip -c "
                + str(vcf.with_suffix(""))
                + " > "
                + str(vcf)
                + "; tabix -p vcf "
                + str(vcf)
            )
    elif vcf.suffix == ".vcf":
        logger.info(
            "VCF is uncompressed (.vcf): %s. This is supported; the whole file is read into memory.",
            vcf,
        )


def ensure_fasta_index(fasta_path: str | Path) -> Path:
    """Return the .fai path for a FASTA, creating it with pysam.faidx if missing."""
    fa = Path(fasta_path)
    fai = fa.with_suffix(fa.suffix + ".fai")
    if fai.exists():
        return fai
    if fa.suffix == ".gz":
        gzi = fa.with_suffix(fa.suffix + ".gzi")
        if not gzi.exists():
            raise ValueError(
                "Compressed FASTA must be bgzipped and indexed. Run: samtools faidx " + str(fa)
            )
    logger.info("Indexing reference FASTA: %s", fa)
    pysam.faidx(str(fa))
    return fai


def detect_contig_style(contigs: Iterable[str]) -> str:
    """Infer contig style: 'ucsc' if most contigs start with 'chr', else 'ensembl'."""
    names = [c for c in contigs if c]
    if not names:
        return "unknown"
    chr_like = [c for c in names if c.startswith(_UCSC_PREFIX)]
    if len(chr_like) >= max(1, int(0.5 * len(names))):
        return "ucsc"
    return "ensembl"


def remap_contig(contig: str, style: str) -> str:
    """Remap a contig name to the requested style (ucsc or ensembl)."""
    if style == "ucsc":
        if contig.startswith(_UCSC_PREFIX):
            return contig
        if contig == "MT":
            return "chrM"
        return f"{_UCSC_PREFIX}{contig}"
    if style == "ensembl":
        if contig.startswith(_UCSC_PREFIX):
            core = contig[len(_UCSC_PREFIX) :]
            if core == "M":
                return "MT"
            return core
        return contig
    return contig
