from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from .models import Breakpoint, RefinedBreakpoint
from .utils import open_textmaybe_gzip

logger = logging.getLogger(__name__)

_REQUIRED_COLUMNS = ("chrom", "start", "end", "genotype")

REFINED_COLUMNS = [
    "chrom",
    "start",
    "end",
    "genotype",
    "orig_start",
    "orig_end",
    "left_status",
    "right_status",
    "left_reads",
    "right_reads",
    "left_p",
    "right_p",
]


def read_breakpoints(path: str | Path) -> List[Breakpoint]:
    """Read genotyped breakpoints from a TSV (optionally gzipped).

    The first non-comment line is a header that must contain the columns
    ``chrom``, ``start``, ``end`` and ``genotype``; other columns are ignored.
    Coordinates are 0-based half-open.
    """
    breaks: List[Breakpoint] = []
    header: List[str] = []
    with open_textmaybe_gzip(path, "rt") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.rstrip("\n")
            if not line.strip() or line.startswith("#"):
                continue
            fields = line.split("\t")
            if not header:
                header = [f.strip().lower() for f in fields]
                missing = [c for c in _REQUIRED_COLUMNS if c not in header]
                if missing:
                    raise ValueError(f"{path}: header is missing column(s): {', '.join(missing)}")
                continue
            row = dict(zip(header, fields))
            try:
                bp = Breakpoint(
                    chrom=row["chrom"],
                    start=int(row["start"]),
                    end=int(row["end"]),
                    genotype=row["genotype"],
                )
            except (KeyError, ValueError) as e:
                raise ValueError(f"{path}: line {lineno}: {e}") from e
            breaks.append(bp)

    if not header:
        raise ValueError(f"{path}: no header line found")
    logger.info("Read %d breakpoints from %s", len(breaks), path)
    return breaks


def write_breakpoints(path: str | Path, breaks: Iterable[Breakpoint]) -> None:
    with open_textmaybe_gzip(path, "wt") as fh:
        fh.write("\t".join(_REQUIRED_COLUMNS) + "\n")
        for b in breaks:
            fh.write(f"{b.chrom}\t{b.start}\t{b.end}\t{b.genotype}\n")


def write_refined(path: str | Path, refined: Iterable[RefinedBreakpoint]) -> None:
    with open_textmaybe_gzip(path, "wt") as fh:
        fh.write("\t".join(REFINED_COLUMNS) + "\n")
        for r in refined:
            fh.write(
                f"{r.chrom}\t{r.start}\t{r.end}\t{r.genotype}\t"
                f"{r.orig_start}\t{r.orig_end}\t{r.left_status}\t{r.right_status}\t"
                f"{r.left_reads}\t{r.right_reads}\t{r.left_p:.6g}\t{r.right_p:.6g}\n"
            )
