from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List

from .models import Breakpoint

logger = logging.getLogger(__name__)


_UCSC_PREFIX = "chr"


def check_bam_index(bam_path: str | Path) -> None:
    """Ensure a BAM has an index; raise ValueError with fix instructions."""
    bam = Path(bam_path)
    bai1 = bam.with_suffix(bam.suffix + ".bai")
    bai2 = bam.with_suffix(".bai")
    if bai1.exists() or bai2.exists():
        return
    raise ValueError(
        "BAM is not indexed. Run: samtools index " + str(bam)
    )


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


def resolve_contig_style(
    breaks: List[Breakpoint],
    bam_contigs: List[str],
    requested: str = "auto",
) -> List[Breakpoint]:
    """Rename breakpoint chromosomes to match the BAM naming style.

    Raises ValueError if no breakpoint chromosome is present in the BAM header.
    """
    bp_style = detect_contig_style(b.chrom for b in breaks)
    bam_style = detect_contig_style(bam_contigs)

    target_style = requested
    if requested == "auto":
        target_style = bam_style if bam_style != "unknown" else bp_style

    if bp_style != target_style:
        logger.warning(
            "Contig style mismatch detected (breakpoints=%s, BAM=%s). Remapping breakpoints to %s style.",
            bp_style,
            bam_style,
            target_style,
        )
        breaks = [replace(b, chrom=remap_contig(b.chrom, target_style)) for b in breaks]

    overlap = set(b.chrom for b in breaks).intersection(bam_contigs)
    if breaks and not overlap:
        raise ValueError(
            "Contig mismatch between BAM and breakpoints (e.g., chr1 vs 1). "
            "Use --contig-style {ucsc,ensembl,auto} to override."
        )
    return breaks
