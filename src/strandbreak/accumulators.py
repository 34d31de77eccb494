from __future__ import annotations

import enum
from typing import Dict

from scipy.stats import binom

from .models import STRANDS
from .probabilities import BINOMIAL, MULTIPLICATIVE, ProbabilityTable


class Decision(enum.Enum):
    CONTINUE = "continue"
    STOP = "stop"


class EvidenceAccumulator:
    """Sequential evidence for one side of one breakpoint.

    ``p`` is the remaining probability that the reads seen so far belong to the
    other side of the breakpoint. Feeding reads outward from the breakpoint,
    ``update`` returns STOP once ``p <= 1 - conf``.
    """

    def __init__(self, table: ProbabilityTable, genotype: str, side: str, conf: float) -> None:
        self.table = table
        self.genotype = genotype
        self.side = side
        self.threshold = 1.0 - conf
        self.p = 1.0
        self.n = 0

    def _observe(self, strand: str) -> float:
        raise NotImplementedError

    def update(self, strand: str) -> Decision:
        self.n += 1
        self.p = self._observe(strand)
        if self.p > self.threshold:
            return Decision.CONTINUE
        return Decision.STOP


class MultiplicativeAccumulator(EvidenceAccumulator):
    """Running product of per-read probabilities."""

    def _observe(self, strand: str) -> float:
        return self.p * self.table.prob(strand, self.side, self.genotype)


class BinomialAccumulator(EvidenceAccumulator):
    """Binomial CDF of the compare-strand count.

    The success probability is the table entry of the read just observed, and
    the tail is ``P(X <= k)`` with ``k`` the compare-strand count.
    """

    def __init__(self, table: ProbabilityTable, genotype: str, side: str, conf: float) -> None:
        super().__init__(table, genotype, side, conf)
        self.counts: Dict[str, int] = {s: 0 for s in STRANDS}
        self.compare = table.compare_strand(side, genotype)

    def _observe(self, strand: str) -> float:
        self.counts[strand] += 1
        q = self.table.prob(strand, self.side, self.genotype)
        return float(binom.cdf(self.counts[self.compare], self.n, q))


_ACCUMULATORS = {
    MULTIPLICATIVE: MultiplicativeAccumulator,
    BINOMIAL: BinomialAccumulator,
}


def make_accumulator(
    table: ProbabilityTable, genotype: str, side: str, conf: float
) -> EvidenceAccumulator:
    return _ACCUMULATORS[table.model](table, genotype, side, conf)
