from __future__ import annotations

import random
from pathlib import Path
from typing import Dict, List, Tuple

import pysam

from .breakpoints import write_breakpoints
from .models import MINUS, PLUS, Breakpoint
from .utils import ensure_outdir, write_json

_READ_LEN = 50
_SPACING = 100
_CONTIG_LEN = 20_000

# contig -> (left state, right state, breakpoint position)
_LAYOUT: Dict[str, Tuple[str, str, int]] = {
    "chr1": ("ww", "cc", 10_000),
    "chr2": ("wc", "cc", 8_000),
}


def _strand_for_state(state: str, rng: random.Random, background: float) -> str:
    if state == "ww":
        strand = MINUS
    elif state == "cc":
        strand = PLUS
    else:
        return MINUS if rng.random() < 0.5 else PLUS
    if rng.random() < background:
        return PLUS if strand == MINUS else MINUS
    return strand


def _make_read(name: str, tid: int, start0: int, strand: str, mapq: int = 60) -> pysam.AlignedSegment:
    a = pysam.AlignedSegment()
    a.query_name = name
    a.query_sequence = "A" * _READ_LEN
    a.flag = 16 if strand == MINUS else 0
    a.reference_id = tid
    a.reference_start = start0
    a.mapping_quality = mapq
    a.cigartuples = [(0, _READ_LEN)]
    a.query_qualities = pysam.qualitystring_to_array("I" * _READ_LEN)
    return a


def make_toy_data(*, outdir: str | Path, background: float = 0.02, seed: int = 7) -> Dict[str, str]:
    """Create a tiny strand-seq-like BAM and a genotyped breakpoints table.

    The outputs include:
    - toy.bam (+ .bai), single-end reads with a strand-state switch per contig
    - breakpoints.tsv, one breakpoint per contig (chr1 ww-cc, chr2 wc-cc)

    Returns
    -------
    dict
        Paths to the generated files.
    """
    outdir_p = ensure_outdir(outdir)
    rng = random.Random(seed)

    contigs = list(_LAYOUT)
    header = {
        "HD": {"VN": "1.6", "SO": "coordinate"},
        "SQ": [{"SN": c, "LN": _CONTIG_LEN} for c in contigs],
    }

    reads: List[pysam.AlignedSegment] = []
    breaks: List[Breakpoint] = []
    for tid, contig in enumerate(contigs):
        left_state, right_state, bp_pos = _LAYOUT[contig]
        for i, start0 in enumerate(range(0, _CONTIG_LEN - _READ_LEN, _SPACING)):
            state = left_state if start0 < bp_pos else right_state
            strand = _strand_for_state(state, rng, background)
            reads.append(_make_read(f"{contig}_r{i}", tid, start0, strand))
        breaks.append(
            Breakpoint(chrom=contig, start=bp_pos, end=bp_pos + _SPACING, genotype=f"{left_state}-{right_state}")
        )

    bam_path = outdir_p / "toy.bam"
    with pysam.AlignmentFile(str(bam_path), "wb", header=header) as bam:
        for r in reads:
            bam.write(r)
    pysam.index(str(bam_path))

    breaks_path = outdir_p / "breakpoints.tsv"
    write_breakpoints(breaks_path, breaks)

    summary = {
        "bam": str(bam_path),
        "breakpoints": str(breaks_path),
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
