"""Strand probability tables for breakpoint confidence intervals.

Each entry is the probability of observing a read on a given strand if that
read belonged to the strand state on the *other* side of the breakpoint. A
read left of a 'ww-cc' breakpoint on the '-' strand is unlikely under CC, so
its entry is ``background``.

Two flavors exist:

- ``multiplicative``: mixed (WC) states use blended base rates of 1/3 and 2/3.
- ``binomial``: mixed states are a plain 0.5/0.5 split.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

import numpy as np

from .models import GENOTYPES, LEFT, RIGHT, SIDES, STRANDS

logger = logging.getLogger(__name__)

MULTIPLICATIVE = "multiplicative"
BINOMIAL = "binomial"
MODELS: Tuple[str, str] = (MULTIPLICATIVE, BINOMIAL)

# (left '-', left '+', right '-', right '+')
_Entries = Tuple[float, float, float, float]


def check_background(background: float) -> float:
    bg = float(background)
    if not (0.0 < bg < 0.5):
        raise ValueError(f"background must be in the open interval (0, 0.5), got {background}")
    return bg


def check_conf(conf: float) -> float:
    c = float(conf)
    if not (0.0 < c < 1.0):
        raise ValueError(f"conf must be in the open interval (0, 1), got {conf}")
    return c


def _multiplicative_entries(bg: float) -> Dict[str, _Entries]:
    def blend(rate: float) -> float:
        return (rate + bg) / (1.0 + 2.0 * bg)

    hi, lo = 1.0 - bg, bg
    return {
        "ww-wc": (blend(1 / 3), hi, blend(2 / 3), lo),
        "ww-cc": (lo, hi, hi, lo),
        "wc-ww": (blend(2 / 3), lo, blend(1 / 3), hi),
        "wc-cc": (lo, blend(2 / 3), hi, blend(1 / 3)),
        "cc-ww": (hi, lo, lo, hi),
        "cc-wc": (hi, blend(1 / 3), lo, blend(2 / 3)),
    }


def _binomial_entries(bg: float) -> Dict[str, _Entries]:
    hi, lo = 1.0 - bg, bg
    return {
        "ww-wc": (0.5, 0.5, hi, lo),
        "ww-cc": (lo, hi, hi, lo),
        "wc-ww": (hi, lo, 0.5, 0.5),
        "wc-cc": (lo, hi, 0.5, 0.5),
        "cc-ww": (hi, lo, lo, hi),
        "cc-wc": (0.5, 0.5, lo, hi),
    }


_ENTRY_BUILDERS: Dict[str, Callable[[float], Dict[str, _Entries]]] = {
    MULTIPLICATIVE: _multiplicative_entries,
    BINOMIAL: _binomial_entries,
}


@dataclass(frozen=True)
class ProbabilityTable:
    """Read-only (strand x side x genotype) probability lookup."""

    model: str
    background: float
    values: np.ndarray  # shape (2, 2, 6), axes follow STRANDS, SIDES, GENOTYPES

    def prob(self, strand: str, side: str, genotype: str) -> float:
        try:
            i = STRANDS.index(strand)
            j = SIDES.index(side)
            k = GENOTYPES.index(genotype)
        except ValueError as e:
            raise KeyError(f"No table entry for ({strand!r}, {side!r}, {genotype!r})") from e
        return float(self.values[i, j, k])

    def compare_strand(self, side: str, genotype: str) -> str:
        """Strand that is at least as likely on ``side`` as on the opposite side."""
        other = RIGHT if side == LEFT else LEFT
        for strand in STRANDS:
            if self.prob(strand, side, genotype) >= self.prob(strand, other, genotype):
                return strand
        # Not reached for the six built-in genotypes.
        raise ValueError(f"No comparable strand for side={side}, genotype={genotype}")

    def as_dict(self) -> Dict[str, Dict[str, Dict[str, float]]]:
        return {
            g: {side: {s: self.prob(s, side, g) for s in STRANDS} for side in SIDES}
            for g in GENOTYPES
        }


def build_probability_table(background: float, model: str = MULTIPLICATIVE) -> ProbabilityTable:
    """Build the probability table for one model flavor and background error rate."""
    bg = check_background(background)
    if model not in _ENTRY_BUILDERS:
        raise ValueError(f"Unknown model '{model}'; expected one of {', '.join(MODELS)}")

    entries = _ENTRY_BUILDERS[model](bg)
    values = np.empty((len(STRANDS), len(SIDES), len(GENOTYPES)), dtype=float)
    for k, genotype in enumerate(GENOTYPES):
        left_minus, left_plus, right_minus, right_plus = entries[genotype]
        values[:, 0, k] = (left_minus, left_plus)
        values[:, 1, k] = (right_minus, right_plus)
    values.setflags(write=False)

    logger.debug("Built %s probability table with background=%.4f", model, bg)
    return ProbabilityTable(model=model, background=bg, values=values)
