from pathlib import Path

import pysam
import pytest

from varbench.classify import classify_variant
from varbench.models import VariantType
from varbench.vcf_io import load_variant_records, vcf_contigs


def _write_vcf(path: Path, *, samples=("NA1", "NA2")) -> Path:
    header = pysam.VariantHeader()
    header.add_meta("fileformat", "VCFv4.2")
    header.contigs.add("1", length=5000)
    header.info.add("SVTYPE", number=1, type="String", description="SV type")
    header.filters.add("LowQual", None, None, "Low quality")
    header.formats.add("GT", number=1, type="String", description="Genotype")
    for s in samples:
        header.add_sample(s)

    vcf_path = path / "calls.vcf"
    with pysam.VariantFile(str(vcf_path), "w", header=header) as vcf:
        rec = vcf.new_record(contig="1", start=99, stop=100, alleles=("A", "G"), filter="PASS")
        if samples:
            rec.samples["NA1"]["GT"] = (0, 1)
            rec.samples["NA2"]["GT"] = (1, 1)
            rec.samples["NA2"].phased = True
        vcf.write(rec)

        rec = vcf.new_record(contig="1", start=199, stop=201, alleles=("AT", "A"), filter="LowQual")
        if samples:
            rec.samples["NA1"]["GT"] = (None, None)
        vcf.write(rec)

        rec = vcf.new_record(contig="1", start=999, stop=1299, alleles=("A" * 300, "A"), filter="PASS")
        rec.info["SVTYPE"] = "DEL"
        vcf.write(rec)

    # reference-only site (pysam refuses one-allele records, so write it as text)
    ref_only = "1\t2000\t.\tC\t.\t.\tPASS\t."
    if samples:
        ref_only += "\tGT" + "\t." * len(samples)
    with open(vcf_path, "a") as fh:
        fh.write(ref_only + "\n")

    vcf_gz = path / "calls.vcf.gz"
    pysam.tabix_compress(str(vcf_path), str(vcf_gz), force=True)
    pysam.tabix_index(str(vcf_gz), preset="vcf", force=True)
    return vcf_gz


def test_load_first_sample(tmp_path: Path) -> None:
    records, stats = load_variant_records(str(_write_vcf(tmp_path)))

    assert stats["records_total"] == 4
    assert stats["records_kept"] == 3
    assert stats["records_skipped_no_alt"] == 1
    assert [r.position for r in records] == [100, 200, 1000]
    assert records[0].genotype == "0/1"
    assert records[1].genotype == "./."
    assert classify_variant(records[2]) == VariantType.SV_DELETION


def test_load_named_sample_and_phasing(tmp_path: Path) -> None:
    records, _ = load_variant_records(str(_write_vcf(tmp_path)), sample="NA2")
    assert records[0].genotype == "1|1"


def test_require_pass(tmp_path: Path) -> None:
    records, stats = load_variant_records(str(_write_vcf(tmp_path)), require_pass=True)
    assert [r.position for r in records] == [100, 1000]
    assert stats["records_skipped_filter"] == 1


def test_unknown_sample(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        load_variant_records(str(_write_vcf(tmp_path)), sample="NOPE")


def test_sites_only_and_contig_remap(tmp_path: Path) -> None:
    vcf = str(_write_vcf(tmp_path, samples=()))
    records, _ = load_variant_records(vcf, contig_style="ucsc")
    assert all(r.genotype is None for r in records)
    assert {r.contig for r in records} == {"chr1"}
    assert vcf_contigs(vcf) == ["1"]
