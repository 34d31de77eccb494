from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_width_hist(
    *,
    widths: List[int],
    out_png: str | Path,
    title: str = "Confidence interval width",
    nbins: int = 30,
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    plt.figure()
    if widths:
        plt.hist(widths, bins=nbins)
    plt.xlabel("Interval width (bp)")
    plt.ylabel("Breakpoint count")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_status_counts(
    *,
    status_counts: Dict[str, int],
    out_png: str | Path,
    title: str = "Boundary outcomes",
) -> None:
    """Bar chart of per-side boundary outcomes.

    'exhausted' and 'no_data' boundaries did not reach the requested confidence.
    """
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    labels = ["Confident", "Exhausted", "No data"]
    values = [
        int(status_counts.get("confident", 0)),
        int(status_counts.get("exhausted", 0)),
        int(status_counts.get("no_data", 0)),
    ]

    plt.figure()
    plt.bar(labels, values)
    plt.ylabel("Boundary count")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
