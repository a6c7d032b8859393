from __future__ import annotations

import random
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pysam

from .utils import ensure_outdir, write_json

_CONTIG = "chr1"
_CONTIG_LENGTH = 2000

# (pos, ref, alt, GT, SVTYPE); pos is 1-based
_Call = Tuple[int, str, str, Optional[Tuple[int, int]], Optional[str]]


def _write_fasta(path: Path, contig: str, seq: str) -> None:
    lines = [f">{contig}"]
    for i in range(0, len(seq), 60):
        lines.append(seq[i : i + 60])
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _mutate_base(base: str, skip: Sequence[str] = ()) -> str:
    for alt in ["A", "C", "G", "T"]:
        if alt != base and alt not in skip:
            return alt
    return "A"


def _make_reference() -> str:
    rng = random.Random(11)
    seq = [rng.choice("ACGT") for _ in range(_CONTIG_LENGTH)]
    # homopolymer at 301-306 flanked by A (300) and G (307)
    seq[299] = "A"
    for i in range(300, 306):
        seq[i] = "T"
    seq[306] = "G"
    return "".join(seq)


def _write_vcf(path: Path, calls: List[_Call], *, with_sample: bool) -> Path:
    header = pysam.VariantHeader()
    header.add_meta("fileformat", "VCFv4.2")
    header.contigs.add(_CONTIG, length=_CONTIG_LENGTH)
    header.info.add("SVTYPE", number=1, type="String", description="Type of structural variant")
    if with_sample:
        header.formats.add("GT", number=1, type="String", description="Genotype")
        header.add_sample("SAMPLE")

    vcf_path = path.with_suffix("")  # strip .gz
    with pysam.VariantFile(str(vcf_path), "w", header=header) as vcf:
        for pos, ref, alt, gt, svtype in calls:
            rec = vcf.new_record(
                contig=_CONTIG,
                start=pos - 1,
                stop=pos - 1 + len(ref),
                alleles=(ref, alt),
                qual=60,
                filter="PASS",
            )
            if svtype is not None:
                rec.info["SVTYPE"] = svtype
            if with_sample and gt is not None:
                rec.samples[0]["GT"] = gt
            vcf.write(rec)

    pysam.tabix_compress(str(vcf_path), str(path), force=True)
    pysam.tabix_index(str(path), preset="vcf", force=True)
    return path


def make_toy_data(*, outdir: str | Path) -> Dict[str, str]:
    """Create a tiny reference plus truth/predicted/known-FP VCFs.

    The call sets exercise every matching path on ``chr1``:

    - SNPs at 100 (identical) and 150 (genotype differs): true positives
    - 200: same position, different ALT (incorrect prediction)
    - 250: truth only (false negative); 260 and 270: predicted only
    - 300 vs 305: the same 1-bp deletion placed at either end of a T run
      (rescued when the reference is supplied)
    - SV deletion at 1000 vs 1050: breakpoint match
    - known false positives at 260 (same REF as predicted) and 270 (different REF)

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)
    ref_seq = _make_reference()

    ref_fa = outdir_p / "toy_ref.fa"
    _write_fasta(ref_fa, _CONTIG, ref_seq)
    pysam.faidx(str(ref_fa))

    def base(pos: int) -> str:
        return ref_seq[pos - 1]

    def span(pos: int, length: int) -> str:
        return ref_seq[pos - 1 : pos - 1 + length]

    truth: List[_Call] = [
        (100, base(100), _mutate_base(base(100)), (0, 1), None),
        (150, base(150), _mutate_base(base(150)), (1, 1), None),
        (200, base(200), _mutate_base(base(200)), (0, 1), None),
        (250, base(250), _mutate_base(base(250)), (0, 1), None),
        (300, span(300, 2), span(300, 1), (0, 1), None),
        (1000, span(1000, 500), span(1000, 1), (0, 1), "DEL"),
    ]
    predicted: List[_Call] = [
        (100, base(100), _mutate_base(base(100)), (0, 1), None),
        (150, base(150), _mutate_base(base(150)), (0, 1), None),
        (200, base(200), _mutate_base(base(200), skip=[_mutate_base(base(200))]), (0, 1), None),
        (260, base(260), _mutate_base(base(260)), (0, 1), None),
        (270, base(270), _mutate_base(base(270)), (0, 1), None),
        (305, span(305, 2), span(305, 1), (0, 1), None),
        (1050, span(1050, 490), span(1050, 1), (1, 1), "DEL"),
    ]
    known_fp: List[_Call] = [
        (260, base(260), _mutate_base(base(260)), None, None),
        (270, _mutate_base(base(270)), base(270), None, None),
    ]

    truth_vcf = _write_vcf(outdir_p / "truth.vcf.gz", truth, with_sample=True)
    predicted_vcf = _write_vcf(outdir_p / "predicted.vcf.gz", predicted, with_sample=True)
    known_vcf = _write_vcf(outdir_p / "known_fp.vcf.gz", known_fp, with_sample=False)

    summary = {
        "ref_fa": str(ref_fa),
        "truth_vcf": str(truth_vcf),
        "predicted_vcf": str(predicted_vcf),
        "known_fp_vcf": str(known_vcf),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
