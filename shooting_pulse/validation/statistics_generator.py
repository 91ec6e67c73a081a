"""
Shooting Pulse - Statistics Generator

Generate and store descriptive statistics using pandas.
Statistics are used for:
- Printed column summaries of the raw and cleaned tables
- Missing-value reporting
- Snapshots for comparing runs

Usage:
    generator = StatisticsGenerator(config)

    # Generate statistics for a table
    stats = generator.generate_statistics(df, dataset="shooting", layer="raw")

    # Save statistics to the local statistics directory
    generator.save_statistics(stats)

    # Load a previous snapshot
    stats = generator.load_statistics(dataset="shooting", layer="raw", date="20240115")
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from shooting_pulse.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


@dataclass
class FeatureStatistics:
    """Statistics for a single column."""

    name: str
    dtype: str
    count: int
    num_missing: int
    missing_ratio: float

    # Numerical stats (None for non-numeric)
    mean: float | None = None
    std: float | None = None
    min: float | None = None
    max: float | None = None
    median: float | None = None
    q1: float | None = None
    q3: float | None = None

    # Temporal stats (None for non-temporal)
    earliest: str | None = None
    latest: str | None = None

    # Categorical stats (None for numeric)
    num_unique: int | None = None
    top_values: dict[str, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class DataStatistics:
    """Container for table statistics."""

    dataset: str
    layer: str  # raw, clean, model
    date: datetime
    num_examples: int
    num_features: int
    feature_statistics: list[FeatureStatistics] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert statistics to dictionary for JSON serialization."""
        return {
            "dataset": self.dataset,
            "layer": self.layer,
            "date": self.date.isoformat(),
            "num_examples": self.num_examples,
            "num_features": self.num_features,
            "feature_statistics": [f.to_dict() for f in self.feature_statistics],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DataStatistics:
        """Create DataStatistics from dictionary."""
        return cls(
            dataset=data["dataset"],
            layer=data["layer"],
            date=datetime.fromisoformat(data["date"]),
            num_examples=data["num_examples"],
            num_features=data["num_features"],
            feature_statistics=[FeatureStatistics(**f) for f in data.get("feature_statistics", [])],
        )

    def get_feature_stats(self, feature_name: str) -> FeatureStatistics | None:
        """Get statistics for a specific column."""
        for f in self.feature_statistics:
            if f.name == feature_name:
                return f
        return None


class StatisticsGenerator:
    """
    Generate and manage table statistics.

    Snapshots are stored under the reporting statistics directory at:
        {statistics_dir}/{dataset}/{layer}/{YYYYMMDD}.json
        {statistics_dir}/{dataset}/{layer}/latest.json
    """

    TOP_VALUES = 10

    def __init__(self, config: Settings | None = None):
        """
        Initialize statistics generator.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self.stats_base_path = Path(self.config.reporting.statistics_dir)

    def generate_statistics(
        self,
        df: pd.DataFrame,
        dataset: str,
        layer: str,
    ) -> DataStatistics:
        """
        Generate statistics for a DataFrame.

        Args:
            df: Source DataFrame
            dataset: Dataset name
            layer: Pipeline layer (raw, clean, model)

        Returns:
            DataStatistics object with computed statistics
        """
        logger.info(
            f"Generating statistics for {dataset}/{layer}",
            extra={"dataset": dataset, "layer": layer, "rows": len(df)},
        )

        feature_statistics = [self._compute_feature_statistics(df[col], col) for col in df.columns]

        return DataStatistics(
            dataset=dataset,
            layer=layer,
            date=datetime.now(UTC),
            num_examples=len(df),
            num_features=len(df.columns),
            feature_statistics=feature_statistics,
        )

    def _compute_feature_statistics(self, series: pd.Series, name: str) -> FeatureStatistics:
        """Compute statistics for a single column."""
        count = len(series)
        num_missing = int(series.isna().sum())

        stats = FeatureStatistics(
            name=name,
            dtype=str(series.dtype),
            count=count,
            num_missing=num_missing,
            missing_ratio=num_missing / count if count > 0 else 0.0,
        )

        non_null = series.dropna()
        if len(non_null) == 0:
            return stats

        if pd.api.types.is_datetime64_any_dtype(series) or pd.api.types.is_timedelta64_dtype(
            series
        ):
            stats.earliest = str(non_null.min())
            stats.latest = str(non_null.max())
        elif pd.api.types.is_bool_dtype(series):
            stats.mean = float(non_null.mean())
            stats.top_values = {str(k): int(v) for k, v in non_null.value_counts().items()}
        elif pd.api.types.is_numeric_dtype(series):
            stats.mean = float(non_null.mean())
            stats.std = float(non_null.std()) if len(non_null) > 1 else 0.0
            stats.min = float(non_null.min())
            stats.max = float(non_null.max())
            stats.median = float(non_null.median())
            stats.q1 = float(non_null.quantile(0.25))
            stats.q3 = float(non_null.quantile(0.75))
            stats.num_unique = int(non_null.nunique())
        else:
            stats.num_unique = int(non_null.nunique())
            top_values = non_null.astype(str).value_counts().head(self.TOP_VALUES)
            stats.top_values = {str(k): int(v) for k, v in top_values.items()}

        return stats

    def save_statistics(
        self,
        stats: DataStatistics,
        date: datetime | None = None,
    ) -> Path:
        """
        Save statistics as JSON.

        Args:
            stats: DataStatistics object to save
            date: Date to use in path (uses stats.date if not provided)

        Returns:
            Path of the versioned snapshot
        """
        date = date or stats.date
        layer_dir = self.stats_base_path / stats.dataset / stats.layer
        layer_dir.mkdir(parents=True, exist_ok=True)

        payload = json.dumps(stats.to_dict(), indent=2)
        versioned_path = layer_dir / f"{date.strftime('%Y%m%d')}.json"
        versioned_path.write_text(payload)
        (layer_dir / "latest.json").write_text(payload)

        logger.info(
            f"Saved statistics for {stats.dataset}/{stats.layer} to {versioned_path}",
            extra={"dataset": stats.dataset, "layer": stats.layer, "path": str(versioned_path)},
        )

        return versioned_path

    def load_statistics(
        self,
        dataset: str,
        layer: str,
        date: str | datetime | None = None,
    ) -> DataStatistics:
        """
        Load a statistics snapshot.

        Args:
            dataset: Dataset name
            layer: Pipeline layer
            date: Date string (YYYYMMDD) or datetime (uses latest if not provided)

        Returns:
            DataStatistics object

        Raises:
            FileNotFoundError: If the snapshot doesn't exist
        """
        if date is None:
            filename = "latest.json"
        else:
            date_str = date.strftime("%Y%m%d") if isinstance(date, datetime) else date
            filename = f"{date_str}.json"

        path = self.stats_base_path / dataset / layer / filename
        if not path.exists():
            raise FileNotFoundError(f"Statistics not found: {dataset}/{layer} date={date}")

        return DataStatistics.from_dict(json.loads(path.read_text()))


def missing_value_counts(df: pd.DataFrame) -> dict[str, int]:
    """Missing values per column, in column order."""
    return {col: int(n) for col, n in df.isna().sum().items()}


def format_statistics(stats: DataStatistics) -> str:
    """Render statistics as a plain-text column summary."""
    lines = [
        f"{stats.dataset}/{stats.layer}: {stats.num_examples:,} rows x {stats.num_features} columns"
    ]
    for f in stats.feature_statistics:
        if f.mean is not None and f.std is not None:
            detail = f"mean={f.mean:.2f} std={f.std:.2f} min={f.min:g} max={f.max:g}"
        elif f.earliest is not None:
            detail = f"range={f.earliest} .. {f.latest}"
        elif f.top_values:
            top = ", ".join(f"{k}={v}" for k, v in list(f.top_values.items())[:3])
            detail = f"unique={f.num_unique} top: {top}" if f.num_unique else f"top: {top}"
        else:
            detail = ""
        lines.append(f"  {f.name:<26} {f.dtype:<16} missing={f.num_missing:<6} {detail}".rstrip())
    return "\n".join(lines)
