"""
Shooting Pulse - Plots

Charts for the exploration counts and the classifier results. Each function
writes one PNG and returns its path.

Usage:
    from shooting_pulse.reporting import plots

    plots.plot_counts(result.by_borough, "Shootings by Borough", "Borough", "reports/boro.png")
    plots.plot_confusion_matrix(training.confusion_matrix, "reports/confusion.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

from shooting_pulse.datasets.shooting.aggregate import AggregationResult  # noqa: E402
from shooting_pulse.modeling.classifier import TrainingResult  # noqa: E402

logger = logging.getLogger(__name__)

DEFAULT_DPI = 120

COUNT_TITLES = {
    "borough": ("Shootings by Borough", "Borough"),
    "month": ("Shootings by Month", "Month"),
    "year": ("Shootings by Year", "Year"),
    "hour": ("Shootings by Hour of Day", "Hour"),
}


def _prepare(output_path: str | Path) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def plot_counts(
    counts: dict[Any, int],
    title: str,
    xlabel: str,
    output_path: str | Path,
    dpi: int = DEFAULT_DPI,
) -> Path:
    """Bar chart of group counts."""
    path = _prepare(output_path)
    series = pd.Series(counts, dtype="int64")

    plt.figure(figsize=(10, 6))
    series.plot(kind="bar", color="steelblue")
    plt.title(title, fontsize=14, fontweight="bold")
    plt.xlabel(xlabel)
    plt.ylabel("Number of Shootings")
    plt.xticks(rotation=45)
    plt.tight_layout()
    plt.savefig(path, dpi=dpi)
    plt.close()

    logger.info(f"Saved {title} chart to {path}")
    return path


def plot_confusion_matrix(
    cm: pd.DataFrame,
    output_path: str | Path,
    dpi: int = DEFAULT_DPI,
) -> Path:
    """Tile heatmap of predicted (rows) vs actual (columns) counts."""
    path = _prepare(output_path)

    plt.figure(figsize=(9, 7))
    sns.heatmap(cm, annot=True, fmt="d", cmap="Blues", cbar_kws={"label": "Incidents"})
    plt.title("Borough Confusion Matrix", fontsize=14, fontweight="bold")
    plt.xlabel("Actual Borough")
    plt.ylabel("Predicted Borough")
    plt.tight_layout()
    plt.savefig(path, dpi=dpi)
    plt.close()

    logger.info(f"Saved confusion matrix heatmap to {path}")
    return path


def plot_feature_importance(
    importance: dict[str, float],
    output_path: str | Path,
    dpi: int = DEFAULT_DPI,
) -> Path:
    """Horizontal bar chart of feature importance, most important on top."""
    path = _prepare(output_path)
    series = pd.Series(importance, dtype="float64").sort_values()

    plt.figure(figsize=(8, 5))
    series.plot(kind="barh", color="#4ECDC4")
    plt.title("Variable Importance", fontsize=14, fontweight="bold")
    plt.xlabel("Mean Decrease in Impurity")
    plt.tight_layout()
    plt.savefig(path, dpi=dpi)
    plt.close()

    logger.info(f"Saved variable importance chart to {path}")
    return path


def render_report(
    aggregation: AggregationResult,
    training: TrainingResult | None,
    output_dir: str | Path,
    dpi: int = DEFAULT_DPI,
) -> list[Path]:
    """Write every chart for one pipeline run into `output_dir`."""
    output_dir = Path(output_dir)
    paths = []

    for name, counts in aggregation.groupings().items():
        title, xlabel = COUNT_TITLES[name]
        paths.append(plot_counts(counts, title, xlabel, output_dir / f"count_by_{name}.png", dpi))

    if training is not None and training.success:
        paths.append(
            plot_confusion_matrix(
                training.confusion_matrix, output_dir / "confusion_matrix.png", dpi
            )
        )
        paths.append(
            plot_feature_importance(
                training.feature_importance, output_dir / "feature_importance.png", dpi
            )
        )

    logger.info(f"All charts saved to {output_dir}", extra={"charts": [str(p) for p in paths]})
    return paths
