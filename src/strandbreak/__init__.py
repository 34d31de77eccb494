"""StrandBreak: confidence intervals for strand-state breakpoints.

The statistical core is a plain function call:

    from strandbreak import Breakpoint, ReadFragment, confidence_interval

Most users run it through the CLI:

    strandbreak confint --bam ... --breaks ... --outdir ...

"""

from __future__ import annotations

__all__ = [
    "__version__",
    "Breakpoint",
    "ReadFragment",
    "RefinedBreakpoint",
    "build_probability_table",
    "confidence_interval",
    "confidence_interval_binomial",
]

__version__ = "0.1.0"

from .models import Breakpoint, ReadFragment, RefinedBreakpoint
from .probabilities import build_probability_table
from .walker import confidence_interval, confidence_interval_binomial
