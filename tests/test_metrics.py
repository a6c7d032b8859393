import json

from varbench.evaluator import VariantEvaluator
from varbench.metrics import cal_metrics, concordance_rates, metrics_rows, summarize
from varbench.models import VariantRecord


def var(pos: int, ref: str, alt: str, gt: str = "0/1", svtype: str = "", contig: str = "1") -> VariantRecord:
    return VariantRecord(
        contig=contig,
        position=pos,
        reference_bases=ref,
        alternate_bases=(alt,),
        info={"SVTYPE": svtype} if svtype else {},
        genotype=gt,
    )


def _results():
    truth = [
        var(10, "A", "T"),
        var(20, "A", "C", gt="1/1"),
        var(30, "AT", "A"),
        var(40, "A", "AT"),
        var(100, "A" * 200, "A", svtype="DEL", contig="2"),
    ]
    predicted = [
        var(10, "A", "T"),
        var(20, "A", "C"),
        var(30, "AT", "A"),
        var(60, "G", "C"),
        var(130, "A" * 205, "A", svtype="DEL", contig="2"),
    ]
    return VariantEvaluator().evaluate(truth, predicted)


def test_cal_metrics():
    assert cal_metrics(tp=3, fp=1, fn=0) == (0.75, 1.0, 0.8571)
    assert cal_metrics(tp=0, fp=0, fn=0) == (0.0, 0.0, 0.0)


def test_rows_per_type_and_groups():
    rows = {r.label: r for r in metrics_rows(list(_results().values()))}

    assert rows["SNP"].tp == 2 and rows["SNP"].fp == 1 and rows["SNP"].fn == 0
    assert rows["INDEL_INSERTION"].fn == 1
    assert rows["INDEL"].truth == 2 and rows["INDEL"].tp == 1
    assert rows["SV"].tp == 1 and rows["SV"].recall == 1.0
    assert rows["ALL"].tp == 4 and rows["ALL"].fp == 1 and rows["ALL"].fn == 1
    assert "SV_INSERTION" not in rows


def test_concordance_rates():
    concordance = _results()["1"].concordance
    rates = concordance_rates(concordance)
    assert rates["SNP"] == {"matched": 2, "agreeing": 1, "rate": 0.5}
    assert rates["INDEL_DELETION"]["rate"] == 1.0


def test_summary_is_json_serialisable():
    summary = summarize(_results())
    text = json.dumps(summary)
    assert "contigs" in summary and len(summary["contigs"]) == 2
    assert summary["overall"][-1]["label"] == "ALL"
    assert summary["rescued_variant_counts"] is None
    assert json.loads(text)["concordance"]["SNP"]["HOM_VAR"]["HET"] == 1
