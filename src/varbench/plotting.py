from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

import matplotlib.pyplot as plt
import numpy as np

from .concordance import GenotypeConcordance
from .models import Genotype, VariantType

logger = logging.getLogger(__name__)


def plot_type_counts(
    *,
    rows: List[Dict[str, Any]],
    out_png: str | Path,
    title: str = "Calls by variant type",
) -> None:
    """Grouped TP/FP/FN bars for each per-type metrics row."""
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    type_names = {vt.name for vt in VariantType}
    rows = [r for r in rows if r["label"] in type_names]
    labels = [r["label"] for r in rows]
    xs = np.arange(len(labels))
    width = 0.27

    plt.figure(figsize=(max(6.0, 1.2 * len(labels)), 4.5))
    plt.bar(xs - width, [r["tp"] for r in rows], width=width, label="TP")
    plt.bar(xs, [r["fp"] for r in rows], width=width, label="FP")
    plt.bar(xs + width, [r["fn"] for r in rows], width=width, label="FN")
    plt.ylabel("Call count")
    plt.title(title)
    plt.xticks(xs, labels, rotation=20, ha="right")
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_concordance(
    *,
    concordance: GenotypeConcordance,
    out_png: str | Path,
    title: str = "Genotype concordance (all types)",
) -> None:
    """Truth x predicted genotype heatmap summed over variant types."""
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    table = np.zeros((len(Genotype), len(Genotype)), dtype=np.int64)
    for vt in VariantType:
        table += concordance.matrix(vt)
    labels = [gt.name for gt in Genotype]

    plt.figure(figsize=(5.5, 4.5))
    plt.imshow(table, cmap="Blues")
    plt.colorbar(label="Matched calls")
    for i in range(table.shape[0]):
        for j in range(table.shape[1]):
            plt.text(j, i, str(int(table[i, j])), ha="center", va="center")
    plt.xticks(range(len(labels)), labels, rotation=20, ha="right")
    plt.yticks(range(len(labels)), labels)
    plt.xlabel("Predicted genotype")
    plt.ylabel("Truth genotype")
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
