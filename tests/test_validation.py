from pathlib import Path

import pytest

from varbench.validation import check_vcf_index, detect_contig_style, ensure_fasta_index, remap_contig


def test_unindexed_vcf_gz(tmp_path: Path) -> None:
    vcf = tmp_path / "x.vcf.gz"
    vcf.write_bytes(b"")
    with pytest.raises(ValueError, match="tabix"):
        check_vcf_index(vcf)
    (tmp_path / "x.vcf.gz.csi").write_bytes(b"")
    check_vcf_index(vcf)


def test_fasta_index_created(tmp_path: Path) -> None:
    fa = tmp_path / "ref.fa"
    fa.write_text(">chr1\nACGTACGT\n", encoding="utf-8")
    fai = ensure_fasta_index(fa)
    assert fai.exists()
    assert fai.read_text().startswith("chr1\t8")


def test_contig_styles():
    assert detect_contig_style(["chr1", "chr2", "chrX"]) == "ucsc"
    assert detect_contig_style(["1", "2", "X"]) == "ensembl"
    assert detect_contig_style([]) == "unknown"
    assert remap_contig("1", "ucsc") == "chr1"
    assert remap_contig("MT", "ucsc") == "chrM"
    assert remap_contig("chrM", "ensembl") == "MT"
    assert remap_contig("chr7", "ensembl") == "7"
