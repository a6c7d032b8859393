from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pysam

from . import __version__
from .concordance import GenotypeConcordance
from .evaluator import EvaluatorConfig, VariantEvaluator
from .metrics import summarize
from .models import VariantRecord
from .plotting import plot_concordance, plot_type_counts
from .report import render_report
from .toy_data import make_toy_data
from .utils import dataclass_to_jsonable, ensure_outdir, write_json
from .validation import check_vcf_index, detect_contig_style, ensure_fasta_index
from .vcf_io import load_variant_records, vcf_contigs


def _setup_logging(verbosity: int, *, logfile: Optional[Path] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    log_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=log_fmt, stream=sys.stderr)

    if logfile is not None:
        logfile.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(logfile)
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(log_fmt))
        logging.getLogger().addHandler(fh)


def _path_exists(p: str) -> str:
    if not Path(p).exists():
        raise argparse.ArgumentTypeError(f"Path does not exist: {p}")
    return p


def _non_negative_int(v: str) -> int:
    try:
        n = int(v)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got: {v}")
    if n < 0:
        raise argparse.ArgumentTypeError(f"Expected a non-negative integer, got: {v}")
    return n


def _log_path(outdir: Path, name: str) -> Path:
    return outdir / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def _target_contig_style(truth_style: str, predicted_style: str, requested: str) -> Optional[str]:
    """Naming style every input is remapped to, or None to leave names untouched."""
    if requested != "auto":
        return requested
    if truth_style == "unknown" or predicted_style in ("unknown", truth_style):
        return None
    return truth_style


def _check_contig_overlap(truth: List[VariantRecord], predicted: List[VariantRecord]) -> None:
    truth_contigs = {r.contig for r in truth}
    predicted_contigs = {r.contig for r in predicted}
    if truth_contigs and predicted_contigs and not truth_contigs & predicted_contigs:
        raise ValueError(
            "Contig mismatch between truth and predicted VCFs (e.g., chr1 vs 1). "
            "Use --contig-style {ucsc,ensembl,auto} to override."
        )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="varbench",
        description=(
            "varbench: evaluate predicted variant calls against a truth set. "
            "Reports TP/FP/FN per variant type, SV breakpoint matches, genotype "
            "concordance and reference-aware indel rescue."
        ),
    )
    p.add_argument("--version", action="version", version=f"varbench {__version__}")

    sub = p.add_subparsers(dest="cmd", required=True)

    # -----------------
    # quickstart
    # -----------------
    sub.add_parser(
        "quickstart",
        help="Print ready-to-run recipes for common scenarios.",
    )

    # -----------------
    # make-toy-data
    # -----------------
    t = sub.add_parser(
        "make-toy-data",
        help="Generate a tiny reference plus truth/predicted/known-FP VCFs for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # evaluate
    # -----------------
    e = sub.add_parser(
        "evaluate",
        help="Compare a predicted VCF against a truth VCF.",
    )
    e.add_argument("--truth", required=True, type=_path_exists, help="Truth VCF (.vcf/.vcf.gz/.bcf).")
    e.add_argument("--predicted", required=True, type=_path_exists, help="Predicted VCF (.vcf/.vcf.gz/.bcf).")
    e.add_argument(
        "--known-fp",
        default=None,
        type=_path_exists,
        help="Optional VCF of known false positive sites.",
    )
    e.add_argument(
        "--ref",
        default=None,
        type=_path_exists,
        help="Reference FASTA. Enables rescue of equivalent indel representations.",
    )
    e.add_argument("--outdir", required=True, help="Output directory.")
    e.add_argument(
        "--truth-sample",
        default=None,
        help="Sample whose GT is used from the truth VCF (default: first sample).",
    )
    e.add_argument(
        "--predicted-sample",
        default=None,
        help="Sample whose GT is used from the predicted VCF (default: first sample).",
    )
    e.add_argument(
        "--require-pass",
        action="store_true",
        help="Ignore records whose FILTER is not PASS.",
    )
    e.add_argument(
        "--max-indel-length",
        type=_non_negative_int,
        default=50,
        help="Largest indel length change considered during rescue.",
    )
    e.add_argument(
        "--max-sv-breakpoint-distance",
        type=_non_negative_int,
        default=100,
        help="Maximum distance (bp) between truth and predicted SV start positions.",
    )
    e.add_argument(
        "--max-variant-length-difference",
        type=_non_negative_int,
        default=100,
        help="SV lengths must differ by less than this many bp to match.",
    )
    e.add_argument(
        "--rescue-window-size",
        type=_non_negative_int,
        default=50,
        help="Initial window (bp) around a missed indel used for rescue.",
    )
    e.add_argument(
        "--contig-style",
        choices=["auto", "ucsc", "ensembl"],
        default="auto",
        help="Contig naming style. 'auto' remaps predicted/known-FP names to the truth style.",
    )
    e.add_argument("--no-plots", action="store_true", help="Skip plots (report has tables only).")
    e.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    e.add_argument("--resume", action="store_true", help="Skip if outputs already exist.")
    e.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    return p


# -----------------
# Commands
# -----------------

def cmd_quickstart() -> int:
    lines = [
        "varbench quickstart (copy/paste):",
        "",
        "1) Small-variant benchmark with indel rescue:",
        "   varbench evaluate \\",
        "     --truth truth.vcf.gz \\",
        "     --predicted calls.vcf.gz \\",
        "     --ref ref.fa \\",
        "     --outdir results/",
        "   Outputs: results/report.html, results/summary.json",
        "",
        "2) SV benchmark with a wider breakpoint tolerance:",
        "   varbench evaluate \\",
        "     --truth truth_sv.vcf.gz \\",
        "     --predicted sv_calls.vcf.gz \\",
        "     --max-sv-breakpoint-distance 500 \\",
        "     --max-variant-length-difference 200 \\",
        "     --outdir sv_results/",
        "   Outputs: sv_results/report.html, sv_results/summary.json",
        "",
        "3) Try it on toy data:",
        "   varbench make-toy-data --outdir toy/",
        "   varbench evaluate \\",
        "     --truth toy/truth.vcf.gz \\",
        "     --predicted toy/predicted.vcf.gz \\",
        "     --known-fp toy/known_fp.vcf.gz \\",
        "     --ref toy/toy_ref.fa \\",
        "     --outdir toy_results/",
        "",
        "Tip: use --dry-run to validate inputs and print the planned outputs.",
    ]
    print("\n".join(lines))
    return 0


def cmd_make_toy_data(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    if args.dry_run:
        print(f"Would write toy data into: {outdir}")
        return 0

    summary = make_toy_data(outdir=outdir)
    print(json.dumps(summary, indent=2))
    return 0


def _write_plots(outdir: Path, summary: Dict, concordance: GenotypeConcordance) -> Dict[str, str]:
    plots_dir = outdir / "plots"
    plots_dir.mkdir(parents=True, exist_ok=True)

    type_counts_png = plots_dir / "type_counts.png"
    concordance_png = plots_dir / "concordance.png"

    plot_type_counts(rows=summary["overall"], out_png=type_counts_png)
    plot_concordance(concordance=concordance, out_png=concordance_png)

    return {
        "type_counts": str(Path("plots") / type_counts_png.name),
        "concordance": str(Path("plots") / concordance_png.name),
    }


def cmd_evaluate(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    log_path = _log_path(outdir, "evaluate.log")
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("varbench")
    logger.info("varbench %s", __version__)

    try:
        config = EvaluatorConfig(
            max_indel_length=args.max_indel_length,
            max_sv_breakpoint_distance=args.max_sv_breakpoint_distance,
            max_variant_length_difference=args.max_variant_length_difference,
            rescue_window_size=args.rescue_window_size,
        )

        vcf_inputs = [args.truth, args.predicted] + ([args.known_fp] if args.known_fp else [])
        for vcf in vcf_inputs:
            check_vcf_index(vcf)

        truth_style = detect_contig_style(vcf_contigs(args.truth))
        predicted_style = detect_contig_style(vcf_contigs(args.predicted))
        target_style = _target_contig_style(truth_style, predicted_style, args.contig_style)

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print(f"Truth contig style: {truth_style}")
            print(f"Predicted contig style: {predicted_style}")
            print(f"Rescue: {'enabled' if args.ref else 'disabled (no --ref)'}")
            print("Planned outputs:")
            print(f"  report.html -> {outdir / 'report.html'}")
            print(f"  summary.json -> {outdir / 'summary.json'}")
            if not args.no_plots:
                print(f"  plots/ -> {outdir / 'plots'}")
            return 0

        outdir = ensure_outdir(outdir)

        if args.resume and (outdir / "summary.json").exists():
            logger.info("Resume enabled: summary.json already exists in %s", outdir)
            print(str(outdir / "report.html"))
            return 0

        if target_style is not None and target_style != predicted_style:
            logger.warning(
                "Contig style mismatch detected (truth=%s, predicted=%s). Remapping to %s style.",
                truth_style,
                predicted_style,
                target_style,
            )

        truth, truth_stats = load_variant_records(
            args.truth,
            sample=args.truth_sample,
            require_pass=bool(args.require_pass),
            contig_style=target_style,
        )
        predicted, predicted_stats = load_variant_records(
            args.predicted,
            sample=args.predicted_sample,
            require_pass=bool(args.require_pass),
            contig_style=target_style,
        )
        known_fp: Optional[List[VariantRecord]] = None
        load_stats = {"truth": truth_stats, "predicted": predicted_stats}
        if args.known_fp:
            known_fp, load_stats["known_fp"] = load_variant_records(
                args.known_fp,
                require_pass=False,
                contig_style=target_style,
            )

        _check_contig_overlap(truth, predicted)

        reference: Optional[pysam.FastaFile] = None
        if args.ref:
            ensure_fasta_index(args.ref)
            reference = pysam.FastaFile(args.ref)

        try:
            evaluator = VariantEvaluator(config, reference=reference)
            results = evaluator.evaluate(truth, predicted, known_fp, progress=True)
        finally:
            if reference is not None:
                reference.close()

        summary = summarize(results)
        concordance = GenotypeConcordance()
        for stats in results.values():
            concordance = concordance.merged(stats.concordance)

        inputs = {
            "truth": args.truth,
            "predicted": args.predicted,
            "known_fp": args.known_fp,
            "ref": args.ref,
        }
        config_dict = dataclass_to_jsonable(config)
        write_json(
            outdir / "summary.json",
            {
                "version": __version__,
                "inputs": inputs,
                "config": config_dict,
                "load_stats": load_stats,
                **summary,
            },
        )

        plots_rel = None if args.no_plots else _write_plots(outdir, summary, concordance)

        report_path = render_report(
            outdir=outdir,
            version=__version__,
            summary=summary,
            config=config_dict,
            inputs=inputs,
            plots=plots_rel,
        )

        logger.info("Report written: %s", report_path)
        print(str(report_path))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=None if args.dry_run else log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "evaluate":
        return cmd_evaluate(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
