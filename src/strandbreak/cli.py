from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import pysam

from . import __version__
from .breakpoints import read_breakpoints, write_refined
from .fragments import load_fragments_with_stats
from .plotting import plot_status_counts, plot_width_hist
from .probabilities import BINOMIAL, MODELS, MULTIPLICATIVE, build_probability_table, check_background, check_conf
from .report import render_report
from .toy_data import make_toy_data
from .utils import ensure_outdir, write_json
from .validation import check_bam_index, resolve_contig_style
from .walker import confidence_interval, status_counts, width_stats

_DEFAULT_BACKGROUND = {MULTIPLICATIVE: 0.05, BINOMIAL: 0.02}


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


def _log_path(outdir: Path, name: str) -> Path:
    return outdir / "logs" / name


def _handle_error(err: Exception, *, log_path: Optional[Path] = None) -> int:
    msg = f"{err.__class__.__name__}: {err}"

    sys.stderr.write(msg + "\n")
    if log_path is not None:
        sys.stderr.write(f"See log: {log_path}\n")
    return 2


def _bam_contigs(bam_path: str) -> list[str]:
    with pysam.AlignmentFile(bam_path, "rb") as bam:
        return list(bam.header.references)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="strandbreak",
        description=(
            "StrandBreak: confidence intervals for strand-state breakpoints in Strand-seq data, "
            "refined read by read from genotyped breakpoints and a BAM."
        ),
    )
    p.add_argument("--version", action="version", version=f"strandbreak {__version__}")

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
        help="Generate a tiny BAM and breakpoints table for demos/tests.",
    )
    t.add_argument("--outdir", required=True, help="Output directory for toy data.")
    t.add_argument("--dry-run", action="store_true", help="Validate paths without writing files.")

    # -----------------
    # confint
    # -----------------
    c = sub.add_parser(
        "confint",
        help="Refine genotyped breakpoints into confidence intervals.",
    )
    c.add_argument("--bam", required=True, type=_path_exists, help="Input BAM (sorted, indexed).")
    c.add_argument(
        "--breaks",
        required=True,
        type=_path_exists,
        help="Genotyped breakpoints TSV (chrom, start, end, genotype).",
    )
    c.add_argument("--outdir", required=True, help="Output directory.")

    # Model
    c.add_argument(
        "--model",
        choices=list(MODELS),
        default=MULTIPLICATIVE,
        help="Stopping rule: multiplicative (running product) or binomial (binomial test).",
    )
    c.add_argument(
        "--background",
        type=float,
        default=None,
        help="Background error rate in (0, 0.5) (default: 0.05 multiplicative, 0.02 binomial).",
    )
    c.add_argument("--conf", type=float, default=0.99, help="Desired confidence level in (0, 1).")

    # Read filters
    c.add_argument("--min-mapq", type=int, default=10, help="Minimum mapping quality.")
    c.add_argument(
        "--pair-end",
        action="store_true",
        help="Treat reads as paired-end (one fragment per proper pair).",
    )
    c.add_argument("--keep-duplicates", action="store_true", help="Do not skip duplicate reads.")
    c.add_argument(
        "--contig-style",
        choices=["ucsc", "ensembl", "auto"],
        default="auto",
        help="Contig naming style to reconcile BAM/breakpoint chromosomes.",
    )

    # Outputs
    c.add_argument(
        "--refined-tsv",
        default=None,
        help="Optional path for refined breakpoints TSV (default: outdir/breakpoints_ci.tsv).",
    )
    c.add_argument("--dry-run", action="store_true", help="Validate inputs and print planned outputs.")
    c.add_argument("--resume", action="store_true", help="Skip if report.html already exists in outdir.")

    c.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v/-vv).")

    return p


def cmd_quickstart() -> int:
    lines = [
        "StrandBreak quickstart (copy/paste):",
        "",
        "1) Confidence intervals (multiplicative model):",
        "   strandbreak confint \\",
        "     --bam cell.bam \\",
        "     --breaks breakpoints.tsv \\",
        "     --outdir results/",
        "   Outputs: results/report.html, results/breakpoints_ci.tsv, results/summary.json",
        "",
        "2) Binomial stopping rule:",
        "   strandbreak confint --model binomial \\",
        "     --bam cell.bam --breaks breakpoints.tsv --outdir results_binom/",
        "",
        "3) Try it on toy data:",
        "   strandbreak make-toy-data --outdir toy/",
        "   strandbreak confint --bam toy/toy.bam --breaks toy/breakpoints.tsv --outdir toy_out/",
        "",
        "Tip: use --dry-run to validate inputs and print planned outputs.",
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


def cmd_confint(args: argparse.Namespace) -> int:
    outdir = Path(args.outdir).expanduser().resolve()
    log_path = _log_path(outdir, "confint.log")
    _setup_logging(args.verbose, logfile=None if args.dry_run else log_path)

    logger = logging.getLogger("strandbreak")
    logger.info("strandbreak %s", __version__)

    try:
        background = args.background
        if background is None:
            background = _DEFAULT_BACKGROUND[args.model]
        background = check_background(background)
        conf = check_conf(args.conf)

        check_bam_index(args.bam)
        breaks = read_breakpoints(args.breaks)
        bam_contigs = _bam_contigs(args.bam)
        breaks = resolve_contig_style(breaks, bam_contigs, args.contig_style)

        refined_tsv = Path(args.refined_tsv) if args.refined_tsv else outdir / "breakpoints_ci.tsv"

        if args.dry_run:
            print("Dry-run: inputs look OK.")
            print(f"Breakpoints: {len(breaks)} on {len(set(b.chrom for b in breaks))} chromosome(s)")
            print(f"Model: {args.model} (background={background}, conf={conf})")
            print("Planned outputs:")
            print(f"  report.html -> {outdir / 'report.html'}")
            print(f"  breakpoints_ci.tsv -> {refined_tsv}")
            print(f"  summary.json -> {outdir / 'summary.json'}")
            return 0

        outdir = ensure_outdir(outdir)

        if args.resume and (outdir / "report.html").exists():
            logger.info("Resume enabled: report.html already exists in %s", outdir)
            print(str(outdir / "report.html"))
            return 0

        bp_chroms = set(b.chrom for b in breaks)
        chroms = [c for c in bam_contigs if c in bp_chroms]
        fragments, fragment_stats = load_fragments_with_stats(
            args.bam,
            min_mapq=int(args.min_mapq),
            pair_end=bool(args.pair_end),
            remove_duplicates=not bool(args.keep_duplicates),
            chromosomes=chroms,
            progress=True,
        )

        refined = confidence_interval(
            breaks,
            fragments,
            background=background,
            conf=conf,
            model=args.model,
            progress=True,
        )
        write_refined(refined_tsv, refined)

        run = {
            "bam_path": args.bam,
            "breaks_path": args.breaks,
            "model": args.model,
            "background": background,
            "conf": conf,
            "fragment_stats": fragment_stats,
            "status_counts": status_counts(refined),
            "widths": width_stats(refined),
            "probability_table": build_probability_table(background, args.model).as_dict(),
            "refined_tsv": str(refined_tsv),
        }
        write_json(outdir / "summary.json", run)

        plots_dir = outdir / "plots"
        width_png = plots_dir / "width_hist.png"
        status_png = plots_dir / "status_counts.png"
        plot_width_hist(widths=[r.width for r in refined], out_png=width_png)
        plot_status_counts(status_counts=run["status_counts"], out_png=status_png)

        plots_rel = {
            "width_hist": str(Path("plots") / width_png.name),
            "status_counts": str(Path("plots") / status_png.name),
        }

        report_path = render_report(outdir=outdir, version=__version__, run=run, plots=plots_rel)

        logger.info("Report written: %s", report_path)
        print(str(report_path))
        return 0
    except Exception as e:
        return _handle_error(e, log_path=log_path)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "quickstart":
        return cmd_quickstart()
    if args.cmd == "make-toy-data":
        return cmd_make_toy_data(args)
    if args.cmd == "confint":
        return cmd_confint(args)

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
