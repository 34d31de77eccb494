from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

MINUS = "-"
PLUS = "+"
STRANDS: Tuple[str, str] = (MINUS, PLUS)

LEFT = "left"
RIGHT = "right"
SIDES: Tuple[str, str] = (LEFT, RIGHT)

GENOTYPES: Tuple[str, ...] = ("ww-wc", "ww-cc", "wc-ww", "wc-cc", "cc-ww", "cc-wc")

# Boundary outcome per side
CONFIDENT = "confident"
EXHAUSTED = "exhausted"
NO_DATA = "no_data"


def normalize_genotype(label: str) -> str:
    """Return the canonical lower-case genotype label, or raise ValueError."""
    g = str(label).strip().lower()
    if g not in GENOTYPES:
        raise ValueError(f"Unknown genotype '{label}'; expected one of {', '.join(GENOTYPES)}")
    return g


@dataclass(frozen=True)
class ReadFragment:
    """One sequenced fragment.

    Coordinates are 0-based half-open. ``strand`` is '-' (Watson) or '+' (Crick).
    """

    chrom: str
    start: int
    end: int
    strand: str

    def __post_init__(self) -> None:
        if self.strand not in STRANDS:
            raise ValueError(f"Invalid strand '{self.strand}' for fragment {self.chrom}:{self.start}")
        if self.start > self.end:
            raise ValueError(f"Fragment {self.chrom}:{self.start}-{self.end} has start > end")


@dataclass(frozen=True)
class Breakpoint:
    """A genotyped strand-state breakpoint.

    Attributes
    ----------
    chrom:
        Chromosome name.
    start, end:
        Current breakpoint interval (0-based half-open).
    genotype:
        Transition class, e.g. 'ww-cc' for a WW region followed by a CC region.
    """

    chrom: str
    start: int
    end: int
    genotype: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "genotype", normalize_genotype(self.genotype))


@dataclass(frozen=True)
class RefinedBreakpoint:
    """Breakpoint with its confidence interval and per-side diagnostics."""

    chrom: str
    start: int
    end: int
    genotype: str
    orig_start: int
    orig_end: int
    left_status: str  # 'confident', 'exhausted' or 'no_data'
    right_status: str
    left_reads: int
    right_reads: int
    left_p: float
    right_p: float

    @property
    def width(self) -> int:
        return self.end - self.start
