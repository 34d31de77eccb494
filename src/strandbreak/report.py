from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Template

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>StrandBreak Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>StrandBreak Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<div class="grid">
  <div class="card">
    <h3>Inputs</h3>
    <table>
      <tr><th>BAM</th><td><code>{{ bam_path }}</code></td></tr>
      <tr><th>Breakpoints</th><td><code>{{ breaks_path }}</code></td></tr>
      <tr><th>Fragments loaded</th><td>{{ fragment_stats.fragments_kept }}</td></tr>
    </table>
  </div>
  <div class="card">
    <h3>Model</h3>
    <table>
      <tr><th>Model</th><td>{{ model }}</td></tr>
      <tr><th>Background</th><td>{{ background }}</td></tr>
      <tr><th>Confidence</th><td>{{ conf }}</td></tr>
    </table>
  </div>
</div>

<h2>Breakpoints</h2>
<table>
  <tr><th>Breakpoints refined</th><td>{{ widths.n }}</td></tr>
  {% if widths.n %}
  <tr><th>Median width (bp)</th><td>{{ widths.median }}</td></tr>
  <tr><th>Max width (bp)</th><td>{{ widths.max }}</td></tr>
  {% endif %}
  <tr><th>Confident boundaries</th><td>{{ status.confident }}</td></tr>
  <tr><th>Exhausted boundaries</th><td>{{ status.exhausted }}</td></tr>
  <tr><th>Boundaries without data</th><td>{{ status.no_data }}</td></tr>
</table>

<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Interval widths</h3>
    <img src="{{ plots.width_hist }}" alt="width histogram">
  </div>
  <div class="card">
    <h3>Boundary outcomes</h3>
    <img src="{{ plots.status_counts }}" alt="status counts">
  </div>
</div>

<h2>Outputs</h2>
<ul>
  <li><code>{{ refined_tsv }}</code> (refined breakpoints)</li>
  <li><code>summary.json</code> (machine-readable summary)</li>
</ul>

<h2>Interpretation notes</h2>
<ul>
  <li>"Exhausted" boundaries ran out of reads before reaching the requested confidence and are less reliable.</li>
  <li>Boundaries without data keep the input coordinate.</li>
</ul>

<hr>
<p class="small">StrandBreak {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    outdir: str | Path,
    version: str,
    run: Dict[str, Any],
    plots: Dict[str, str],
) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        bam_path=run.get("bam_path"),
        breaks_path=run.get("breaks_path"),
        fragment_stats=run.get("fragment_stats", {}),
        model=run.get("model"),
        background=run.get("background"),
        conf=run.get("conf"),
        widths=run.get("widths", {}),
        status=run.get("status_counts", {}),
        refined_tsv=run.get("refined_tsv"),
        plots=plots,
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    return out_path
