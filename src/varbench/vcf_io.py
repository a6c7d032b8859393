from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import pysam

from .models import VariantRecord
from .validation import remap_contig

logger = logging.getLogger(__name__)


def format_genotype(sample: pysam.libcbcf.VariantRecordSample) -> Optional[str]:
    """Render a sample's GT as an allele-index string (``0/1``, ``1|0``, ``./.``)."""
    if "GT" not in sample:
        return None
    gt = sample["GT"]
    if gt is None:
        return None
    sep = "|" if sample.phased else "/"
    return sep.join("." if allele is None else str(allele) for allele in gt)


def _info_dict(rec: pysam.VariantRecord) -> Dict[str, Any]:
    return {key: value for key, value in rec.info.items()}


def load_variant_records(
    vcf_path: str,
    *,
    sample: Optional[str] = None,
    require_pass: bool = False,
    contig_style: Optional[str] = None,
) -> Tuple[List[VariantRecord], Dict[str, int]]:
    """Load variant calls from a VCF/BCF.

    Parameters
    ----------
    vcf_path:
        VCF, bgzipped VCF or BCF.
    sample:
        Sample whose GT is used. If None, the first sample (if any) is used;
        sites-only VCFs yield records without genotypes.
    require_pass:
        If True, skip records whose FILTER is neither PASS nor empty.
    contig_style:
        Optional 'ucsc' or 'ensembl' contig naming to remap records to.

    Returns
    -------
    records:
        VariantRecord objects in file order.
    stats:
        Simple counters about records kept/skipped.
    """
    stats: Dict[str, int] = {
        "records_total": 0,
        "records_kept": 0,
        "records_skipped_no_alt": 0,
        "records_skipped_filter": 0,
    }
    records: List[VariantRecord] = []

    with pysam.VariantFile(vcf_path) as vcf:
        samples = list(vcf.header.samples)
        if sample is None:
            if samples:
                sample = samples[0]
                logger.info("No sample given for %s; using first VCF sample: %s", vcf_path, sample)
            else:
                logger.info("%s has no samples; genotypes will be NO_CALL.", vcf_path)
        elif sample not in samples:
            raise ValueError(f"Sample '{sample}' not found in {vcf_path} samples: {samples}")

        for rec in vcf:
            stats["records_total"] += 1

            if require_pass:
                filt = list(rec.filter.keys())
                if len(filt) > 0 and not (len(filt) == 1 and filt[0] == "PASS"):
                    stats["records_skipped_filter"] += 1
                    continue

            alts = tuple(rec.alts or ())
            if not alts:
                stats["records_skipped_no_alt"] += 1
                continue

            contig = str(rec.contig)
            if contig_style is not None:
                contig = remap_contig(contig, contig_style)

            records.append(
                VariantRecord(
                    contig=contig,
                    position=int(rec.pos),
                    reference_bases=str(rec.ref),
                    alternate_bases=alts,
                    info=_info_dict(rec),
                    genotype=format_genotype(rec.samples[sample]) if sample is not None else None,
                )
            )

    stats["records_kept"] = len(records)
    if stats["records_skipped_no_alt"]:
        logger.warning(
            "%s: skipped %d records without alternate alleles.",
            vcf_path,
            stats["records_skipped_no_alt"],
        )
    logger.info("%s: loaded %d of %d records.", vcf_path, stats["records_kept"], stats["records_total"])
    return records, stats


def vcf_contigs(vcf_path: str) -> List[str]:
    """Contig names declared in the header, falling back to those seen in records."""
    with pysam.VariantFile(vcf_path) as vcf:
        contigs = list(vcf.header.contigs)
        if contigs:
            return contigs
        seen: Dict[str, None] = {}
        for rec in vcf:
            seen.setdefault(str(rec.contig), None)
        return list(seen)
