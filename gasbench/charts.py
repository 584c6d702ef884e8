from __future__ import annotations

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

LOGGER = logging.getLogger("gasbench.charts")

CHART_FILENAME = "gas_by_load.png"

sns.set_style("whitegrid")
plt.rcParams["figure.dpi"] = 100
plt.rcParams["savefig.dpi"] = 300
plt.rcParams["font.size"] = 10
plt.rcParams["axes.labelsize"] = 11
plt.rcParams["axes.titlesize"] = 13
plt.rcParams["legend.fontsize"] = 9

CATEGORY_COLORS = {
    "minting": "#2E86AB",
    "burning": "#A23B72",
    "exchanging": "#F18F01",
    "claiming": "#6A994E",
}


def summarise_samples(samples: pd.DataFrame) -> pd.DataFrame:
    """Per level and category: mean gas of successful samples and failure count."""
    if samples.empty:
        return pd.DataFrame(columns=["level", "category", "mean_gas", "failures", "samples"])

    df = samples.copy()
    df["failed"] = ~df["succeeded"].astype(bool)
    df["ok_gas"] = df["gas_used"].where(~df["failed"])
    summary = (
        df.groupby(["level", "category"])
        .agg(
            mean_gas=("ok_gas", "mean"),
            failures=("failed", "sum"),
            samples=("gas_used", "size"),
        )
        .reset_index()
    )
    summary["failures"] = summary["failures"].astype(int)
    return summary


def render_gas_chart(samples: pd.DataFrame, chart_path: Path) -> Path | None:
    """Line chart of mean gas per operation category against the synth count."""
    summary = summarise_samples(samples)
    if summary.empty:
        LOGGER.warning("No gas samples available for chart")
        return None

    fig, ax = plt.subplots(figsize=(10, 6))
    for category, group in summary.groupby("category"):
        group = group.sort_values("level")
        color = CATEGORY_COLORS.get(category, "#808080")
        ax.plot(
            group["level"],
            group["mean_gas"],
            marker="o",
            linewidth=2.5,
            markersize=7,
            color=color,
            label=category,
        )
        failed = group[group["failures"] > 0]
        if not failed.empty:
            # failed-only levels have no successful mean; pin the marker to the axis
            y = failed["mean_gas"].fillna(0)
            ax.scatter(failed["level"], y, marker="x", s=80, color=color, zorder=3)

    levels = np.sort(summary["level"].unique())
    ax.set_xticks(levels)
    ax.set_xlabel("Synths in system", fontweight="semibold")
    ax.set_ylabel("Mean cumulative gas used (successful txs)", fontweight="semibold")
    ax.set_title("Gas Cost vs Synth Count", fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, linestyle="--")
    ax.legend(title="Operation", frameon=True, fancybox=True)

    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    LOGGER.info("Rendering chart %s", chart_path)
    return chart_path

