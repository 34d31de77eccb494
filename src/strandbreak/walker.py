from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

import numpy as np
from tqdm import tqdm

from .accumulators import Decision, EvidenceAccumulator, make_accumulator
from .models import (
    CONFIDENT,
    EXHAUSTED,
    LEFT,
    NO_DATA,
    RIGHT,
    Breakpoint,
    ReadFragment,
    RefinedBreakpoint,
)
from .probabilities import (
    BINOMIAL,
    MULTIPLICATIVE,
    ProbabilityTable,
    build_probability_table,
    check_background,
    check_conf,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", ReadFragment, Breakpoint)


class FragmentOrderError(ValueError):
    """Raised when fragments of a chromosome are not sorted by start."""


@dataclass(frozen=True)
class FragmentIndex:
    """Per-chromosome fragment lookup structure."""

    starts: np.ndarray
    ends: np.ndarray
    strands: List[str]
    max_ends: np.ndarray  # running maximum of ends, for first-end-after lookups

    @classmethod
    def from_fragments(cls, fragments: Sequence[ReadFragment]) -> "FragmentIndex":
        starts = np.fromiter((f.start for f in fragments), dtype=np.int64, count=len(fragments))
        ends = np.fromiter((f.end for f in fragments), dtype=np.int64, count=len(fragments))
        if len(starts) > 1 and np.any(np.diff(starts) < 0):
            bad = int(np.argmax(np.diff(starts) < 0)) + 1
            raise FragmentOrderError(
                f"Fragments on {fragments[bad].chrom} are not sorted by start "
                f"(position {bad}: {starts[bad]} < {starts[bad - 1]})"
            )
        max_ends = np.maximum.accumulate(ends) if len(ends) else ends
        return cls(
            starts=starts,
            ends=ends,
            strands=[f.strand for f in fragments],
            max_ends=max_ends,
        )

    def __len__(self) -> int:
        return len(self.strands)

    def last_starting_before(self, pos: int) -> Optional[int]:
        i = int(np.searchsorted(self.starts, pos, side="left")) - 1
        return i if i >= 0 else None

    def first_ending_after(self, pos: int) -> Optional[int]:
        i = int(np.searchsorted(self.max_ends, pos, side="right"))
        return i if i < len(self) else None


@dataclass(frozen=True)
class BoundaryWalk:
    """Result of walking one side of a breakpoint."""

    position: int
    status: str
    reads: int
    p: float


def _walk(
    index: FragmentIndex,
    positions: Iterable[int],
    coords: np.ndarray,
    fallback: int,
    accumulator: EvidenceAccumulator,
) -> BoundaryWalk:
    last: Optional[int] = None
    status = EXHAUSTED
    for i in positions:
        last = i
        if accumulator.update(index.strands[i]) is Decision.STOP:
            status = CONFIDENT
            break
    if last is None:
        return BoundaryWalk(position=fallback, status=NO_DATA, reads=0, p=1.0)
    return BoundaryWalk(position=int(coords[last]), status=status, reads=accumulator.n, p=accumulator.p)


def walk_left(index: FragmentIndex, position: int, accumulator: EvidenceAccumulator) -> BoundaryWalk:
    """Walk backwards from the last fragment starting before ``position``."""
    anchor = index.last_starting_before(position)
    steps: Iterable[int] = range(anchor, -1, -1) if anchor is not None else ()
    return _walk(index, steps, index.starts, position, accumulator)


def walk_right(index: FragmentIndex, position: int, accumulator: EvidenceAccumulator) -> BoundaryWalk:
    """Walk forwards from the first fragment ending after ``position``."""
    anchor = index.first_ending_after(position)
    steps: Iterable[int] = range(anchor, len(index)) if anchor is not None else ()
    return _walk(index, steps, index.ends, position, accumulator)


def refine_breakpoint(
    bp: Breakpoint,
    index: FragmentIndex,
    table: ProbabilityTable,
    conf: float,
) -> RefinedBreakpoint:
    left = walk_left(index, bp.start, make_accumulator(table, bp.genotype, LEFT, conf))
    right = walk_right(index, bp.end, make_accumulator(table, bp.genotype, RIGHT, conf))

    for side, walk in ((LEFT, left), (RIGHT, right)):
        if walk.status != CONFIDENT:
            logger.debug(
                "%s:%d-%d %s boundary %s after %d reads (p=%.3g)",
                bp.chrom,
                bp.start,
                bp.end,
                side,
                walk.status,
                walk.reads,
                walk.p,
            )

    return RefinedBreakpoint(
        chrom=bp.chrom,
        start=left.position,
        end=right.position,
        genotype=bp.genotype,
        orig_start=bp.start,
        orig_end=bp.end,
        left_status=left.status,
        right_status=right.status,
        left_reads=left.reads,
        right_reads=right.reads,
        left_p=left.p,
        right_p=right.p,
    )


def partition_by_chrom(items: Iterable[T]) -> Dict[str, List[T]]:
    """Group items by chromosome, preserving first-appearance order."""
    by_chrom: Dict[str, List[T]] = {}
    for item in items:
        by_chrom.setdefault(item.chrom, []).append(item)
    return by_chrom


def _as_partition(
    fragments: Iterable[ReadFragment] | Dict[str, Sequence[ReadFragment]],
) -> Dict[str, Sequence[ReadFragment]]:
    if isinstance(fragments, dict):
        return fragments
    return partition_by_chrom(fragments)


def confidence_interval(
    breaks: Iterable[Breakpoint],
    fragments: Iterable[ReadFragment] | Dict[str, Sequence[ReadFragment]],
    *,
    background: float = 0.05,
    conf: float = 0.99,
    model: str = MULTIPLICATIVE,
    progress: bool = False,
) -> List[RefinedBreakpoint]:
    """Estimate confidence intervals for genotyped breakpoints.

    Walks outwards from each breakpoint edge read by read and stops once the
    evidence that the walked reads belong to the other side drops to
    ``1 - conf`` or the chromosome runs out of fragments.

    Parameters
    ----------
    breaks:
        Genotyped breakpoints.
    fragments:
        Read fragments, either a flat iterable or a mapping chrom -> fragments.
        Fragments of a chromosome must be sorted by start.
    background:
        Background error rate in (0, 0.5).
    conf:
        Desired confidence level in (0, 1).
    model:
        'multiplicative' (running product) or 'binomial' (binomial test).

    Returns
    -------
    list of RefinedBreakpoint
        One per input breakpoint, grouped by chromosome in order of first appearance.
    """
    conf = check_conf(conf)
    table = build_probability_table(check_background(background), model)

    breaks_by_chrom = partition_by_chrom(breaks)
    frags_by_chrom = _as_partition(fragments)

    # Check fragment order on every chromosome before refining anything.
    indexes = {c: FragmentIndex.from_fragments(frags_by_chrom.get(c, [])) for c in breaks_by_chrom}

    chroms: Iterable[str] = list(breaks_by_chrom)
    if progress:
        chroms = tqdm(chroms, unit="chrom", desc="Refining breakpoints")

    out: List[RefinedBreakpoint] = []
    for chrom in chroms:
        cbreaks = breaks_by_chrom[chrom]
        index = indexes[chrom]
        if len(index) == 0:
            logger.warning("No fragments on %s; %d breakpoint(s) left unrefined", chrom, len(cbreaks))
        logger.debug("%s: %d breakpoints, %d fragments", chrom, len(cbreaks), len(index))
        for bp in cbreaks:
            out.append(refine_breakpoint(bp, index, table, conf))
    return out


def confidence_interval_binomial(
    breaks: Iterable[Breakpoint],
    fragments: Iterable[ReadFragment] | Dict[str, Sequence[ReadFragment]],
    *,
    background: float = 0.02,
    conf: float = 0.99,
    progress: bool = False,
) -> List[RefinedBreakpoint]:
    """Binomial-test variant of :func:`confidence_interval`."""
    return confidence_interval(
        breaks,
        fragments,
        background=background,
        conf=conf,
        model=BINOMIAL,
        progress=progress,
    )


def status_counts(refined: Iterable[RefinedBreakpoint]) -> Dict[str, int]:
    counts = {CONFIDENT: 0, EXHAUSTED: 0, NO_DATA: 0}
    for r in refined:
        counts[r.left_status] += 1
        counts[r.right_status] += 1
    return counts


def width_stats(refined: Sequence[RefinedBreakpoint]) -> Dict[str, float]:
    widths = np.array([r.width for r in refined], dtype=float)
    if widths.size == 0:
        return {"n": 0}
    return {
        "n": int(widths.size),
        "min": float(widths.min()),
        "median": float(np.median(widths)),
        "mean": float(widths.mean()),
        "max": float(widths.max()),
    }
