"""
Shooting Pulse - Shooting Aggregator

Frequency counts over the cleaned shooting table for exploration:
    - incidents per borough
    - incidents per calendar month (1-12)
    - incidents per year
    - incidents per hour of day (0-23)

No rows are filtered; every grouping's counts sum to the input row count.

Usage:
    from shooting_pulse.datasets.shooting.aggregate import ShootingAggregator

    aggregator = ShootingAggregator()
    result = aggregator.run(clean_df)
    result.by_borough  # {"BRONX": 7937, ...}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass
class AggregationResult:
    """Group counts computed from one cleaned table."""

    rows_input: int
    by_borough: dict[str, int] = field(default_factory=dict)
    by_month: dict[int, int] = field(default_factory=dict)
    by_year: dict[int, int] = field(default_factory=dict)
    by_hour: dict[int, int] = field(default_factory=dict)

    def groupings(self) -> dict[str, dict[Any, int]]:
        """All groupings keyed by name."""
        return {
            "borough": self.by_borough,
            "month": self.by_month,
            "year": self.by_year,
            "hour": self.by_hour,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {"rows_input": self.rows_input, **self.groupings()}


def _counts(keys: pd.Series) -> dict[Any, int]:
    counts = keys.value_counts(sort=False, dropna=False).sort_index()
    return {_plain(k): int(v) for k, v in counts.items()}


def _plain(value: Any) -> Any:
    # numpy scalars -> builtin types so results compare and serialize cleanly
    return value.item() if hasattr(value, "item") else value


class ShootingAggregator:
    """Compute exploration group counts from the cleaned shooting table."""

    def __init__(
        self,
        borough_col: str = "boro",
        date_col: str = "occur_date",
        time_col: str = "occur_time",
    ):
        self.borough_col = borough_col
        self.date_col = date_col
        self.time_col = time_col

    def count_by_borough(self, df: pd.DataFrame) -> dict[str, int]:
        """Incidents per borough label."""
        return _counts(df[self.borough_col].astype(str))

    def count_by_month(self, df: pd.DataFrame) -> dict[int, int]:
        """Incidents per calendar month of occurrence."""
        return _counts(df[self.date_col].dt.month)

    def count_by_year(self, df: pd.DataFrame) -> dict[int, int]:
        """Incidents per year of occurrence."""
        return _counts(df[self.date_col].dt.year)

    def count_by_hour(self, df: pd.DataFrame) -> dict[int, int]:
        """Incidents per hour of day of occurrence."""
        return _counts(df[self.time_col].dt.components["hours"])

    def run(self, df: pd.DataFrame) -> AggregationResult:
        """
        Compute all groupings.

        Args:
            df: Cleaned shooting table

        Returns:
            AggregationResult with one mapping per grouping
        """
        result = AggregationResult(
            rows_input=len(df),
            by_borough=self.count_by_borough(df),
            by_month=self.count_by_month(df),
            by_year=self.count_by_year(df),
            by_hour=self.count_by_hour(df),
        )

        logger.info(
            f"Aggregated {len(df)} rows into {len(result.by_borough)} boroughs, "
            f"{len(result.by_year)} years",
            extra=result.to_dict(),
        )

        return result
