from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pysam
from tqdm import tqdm

from .models import MINUS, PLUS, ReadFragment

logger = logging.getLogger(__name__)


def fragment_from_read(read: pysam.AlignedSegment, *, pair_end: bool = False) -> ReadFragment:
    """Convert one alignment into a fragment.

    In paired-end mode the fragment spans the whole template and takes the strand
    of the mate the read belongs to (callers pass mate 1).
    """
    chrom = str(read.reference_name)
    strand = MINUS if read.is_reverse else PLUS
    if pair_end and read.template_length != 0:
        start = min(int(read.reference_start), int(read.next_reference_start))
        end = start + abs(int(read.template_length))
    else:
        start = int(read.reference_start)
        end = int(read.reference_end) if read.reference_end is not None else start + 1
    return ReadFragment(chrom=chrom, start=start, end=end, strand=strand)


def load_fragments_with_stats(
    bam_path: str,
    *,
    min_mapq: int = 10,
    pair_end: bool = False,
    remove_duplicates: bool = True,
    chromosomes: Optional[Sequence[str]] = None,
    progress: bool = False,
) -> Tuple[Dict[str, List[ReadFragment]], Dict[str, int]]:
    """Load read fragments from a BAM, grouped by chromosome and sorted by start.

    Parameters
    ----------
    bam_path:
        Coordinate-sorted BAM. An index is required when ``chromosomes`` is given.
    min_mapq:
        Minimum mapping quality.
    pair_end:
        Keep one fragment per proper pair (mate 1) spanning the template.
    remove_duplicates:
        Skip reads flagged as PCR/optical duplicates.
    chromosomes:
        Optional subset of contigs to load.

    Returns
    -------
    fragments:
        Mapping chrom -> fragments sorted by start.
    stats:
        Counters about reads kept/skipped.
    """
    if min_mapq < 0:
        raise ValueError(f"min_mapq must be >= 0, got {min_mapq}")

    counts = {
        "reads_total": 0,
        "reads_unmapped": 0,
        "reads_skipped_secondary": 0,
        "reads_skipped_supplementary": 0,
        "reads_skipped_qcfail": 0,
        "reads_skipped_duplicates": 0,
        "reads_skipped_mapq": 0,
        "reads_skipped_pairing": 0,
        "fragments_kept": 0,
    }
    by_chrom: Dict[str, List[ReadFragment]] = {}

    with pysam.AlignmentFile(bam_path, "rb") as bam:
        it: Iterable[pysam.AlignedSegment]
        if chromosomes is None:
            it = bam.fetch(until_eof=True)
        else:
            missing = [c for c in chromosomes if c not in bam.references]
            if missing:
                raise ValueError(f"Chromosomes not present in BAM header: {', '.join(missing)}")
            it = (read for c in chromosomes for read in bam.fetch(c))
        if progress:
            it = tqdm(it, unit="read", desc="Loading fragments")

        for read in it:
            counts["reads_total"] += 1

            if read.is_unmapped:
                counts["reads_unmapped"] += 1
                continue
            if read.is_secondary:
                counts["reads_skipped_secondary"] += 1
                continue
            if read.is_supplementary:
                counts["reads_skipped_supplementary"] += 1
                continue
            if read.is_qcfail:
                counts["reads_skipped_qcfail"] += 1
                continue
            if remove_duplicates and read.is_duplicate:
                counts["reads_skipped_duplicates"] += 1
                continue
            if read.mapping_quality < min_mapq:
                counts["reads_skipped_mapq"] += 1
                continue
            if pair_end and not (read.is_paired and read.is_proper_pair and read.is_read1):
                counts["reads_skipped_pairing"] += 1
                continue

            frag = fragment_from_read(read, pair_end=pair_end)
            by_chrom.setdefault(frag.chrom, []).append(frag)
            counts["fragments_kept"] += 1

    for frags in by_chrom.values():
        frags.sort(key=lambda f: (f.start, f.end))

    logger.info(
        "Loaded %d fragments on %d chromosome(s) from %d reads",
        counts["fragments_kept"],
        len(by_chrom),
        counts["reads_total"],
    )
    return by_chrom, counts


def load_fragments(bam_path: str, **kwargs) -> Dict[str, List[ReadFragment]]:
    """Like :func:`load_fragments_with_stats` without the counters."""
    fragments, _ = load_fragments_with_stats(bam_path, **kwargs)
    return fragments
