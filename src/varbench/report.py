from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Template

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>varbench Report</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 6px 8px; }
    th { background: #f2f2f2; text-align: left; }
    td.num { text-align: right; }
    tr.group td { font-weight: bold; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>varbench Report</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<div class="grid">
  <div class="card">
    <h3>Inputs</h3>
    <table>
      <tr><th>Truth</th><td><code>{{ inputs.truth }}</code></td></tr>
      <tr><th>Predicted</th><td><code>{{ inputs.predicted }}</code></td></tr>
      <tr><th>Known false positives</th><td><code>{{ inputs.known_fp or "-" }}</code></td></tr>
      <tr><th>Reference</th><td><code>{{ inputs.ref or "- (rescue disabled)" }}</code></td></tr>
    </table>
  </div>
  <div class="card">
    <h3>Matching</h3>
    <table>
      <tr><th>Max indel length</th><td>{{ config.max_indel_length }}</td></tr>
      <tr><th>Max SV breakpoint distance</th><td>{{ config.max_sv_breakpoint_distance }}</td></tr>
      <tr><th>Max variant length difference</th><td>{{ config.max_variant_length_difference }}</td></tr>
      <tr><th>Rescue window size</th><td>{{ config.rescue_window_size }}</td></tr>
    </table>
  </div>
</div>

<h2>Overall</h2>
<table>
  <tr><th>Type</th><th>Truth</th><th>Predicted</th><th>TP</th><th>FP</th><th>FN</th>
      <th>Precision</th><th>Recall</th><th>F1</th></tr>
  {% for r in summary.overall %}
  <tr{% if r.label in group_labels %} class="group"{% endif %}>
    <td>{{ r.label }}</td><td class="num">{{ r.truth }}</td><td class="num">{{ r.predicted }}</td>
    <td class="num">{{ r.tp }}</td><td class="num">{{ r.fp }}</td><td class="num">{{ r.fn }}</td>
    <td class="num">{{ "%.4f"|format(r.precision) }}</td><td class="num">{{ "%.4f"|format(r.recall) }}</td>
    <td class="num">{{ "%.4f"|format(r.f1) }}</td>
  </tr>
  {% endfor %}
</table>

<h2>Genotype concordance</h2>
{% if summary.concordance_rates %}
<table>
  <tr><th>Type</th><th>Matched</th><th>Same genotype</th><th>Rate</th></tr>
  {% for vt, c in summary.concordance_rates.items() %}
  <tr><td>{{ vt }}</td><td class="num">{{ c.matched }}</td><td class="num">{{ c.agreeing }}</td>
      <td class="num">{{ "%.4f"|format(c.rate) }}</td></tr>
  {% endfor %}
</table>
{% else %}
<p>No matched calls.</p>
{% endif %}

{% if summary.rescued_variant_counts is not none %}
<h2>Rescued calls</h2>
<table>
  {% for vt, n in summary.rescued_variant_counts.items() if n %}
  <tr><th>{{ vt }}</th><td class="num">{{ n }}</td></tr>
  {% else %}
  <tr><td>No calls were rescued.</td></tr>
  {% endfor %}
</table>
{% endif %}

{% if summary.all_known_false_positive_counts is not none %}
<h2>Known false positives</h2>
<table>
  <tr><th>Type</th><th>Predicted at known site</th><th>Same reference bases</th></tr>
  {% for vt, n in summary.all_known_false_positive_counts.items() if n %}
  <tr><td>{{ vt }}</td><td class="num">{{ n }}</td>
      <td class="num">{{ summary.correct_known_false_positive_counts[vt] }}</td></tr>
  {% else %}
  <tr><td colspan="3">No predictions at known false positive sites.</td></tr>
  {% endfor %}
</table>
{% endif %}

<h2>Per contig</h2>
<table>
  <tr><th>Contig</th><th>TP</th><th>FP</th><th>FN</th><th>Precision</th><th>Recall</th>
      <th>Incorrect</th><th>SV breakpoint matches</th></tr>
  {% for c in summary.contigs %}
  {% set tot = c.metrics[-1] %}
  <tr><td>{{ c.contig }}</td><td class="num">{{ tot.tp }}</td><td class="num">{{ tot.fp }}</td>
      <td class="num">{{ tot.fn }}</td><td class="num">{{ "%.4f"|format(tot.precision) }}</td>
      <td class="num">{{ "%.4f"|format(tot.recall) }}</td>
      <td class="num">{{ c.incorrect_predictions.values()|sum }}</td>
      <td class="num">{{ c.structural_matches }}</td></tr>
  {% endfor %}
</table>

{% if plots %}
<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Calls by type</h3>
    <img src="{{ plots.type_counts }}" alt="type counts">
  </div>
  <div class="card">
    <h3>Genotype concordance</h3>
    <img src="{{ plots.concordance }}" alt="genotype concordance">
  </div>
</div>
{% endif %}

<h2>Interpretation notes</h2>
<ul>
  <li>A call at a shared position with a different type or allele counts as both FP and FN.</li>
  <li>SVs match within the breakpoint distance when their length change is similar.</li>
  <li>Rescued indels were re-expressed against the reference and found to describe the same sequence.</li>
</ul>

<hr>
<p class="small">varbench {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    outdir: str | Path,
    version: str,
    summary: Dict[str, Any],
    config: Dict[str, Any],
    inputs: Dict[str, Optional[str]],
    plots: Optional[Dict[str, str]] = None,
) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        summary=summary,
        config=config,
        inputs=inputs,
        plots=plots or {},
        group_labels={"INDEL", "SV", "ALL"},
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    logger.debug("Wrote %s", out_path)
    return out_path
