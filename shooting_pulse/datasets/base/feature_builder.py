"""
Shooting Pulse - Base Feature Builder

Abstract base class for dataset feature builders. Provides a consistent interface
for preparing a model-ready table with:
- Ordered row-exclusion steps with per-step row counts
- Closed categorical vocabularies
- Feature statistics and validation against feature definitions

Usage:
    class ShootingFeatureBuilder(BaseFeatureBuilder):
        def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
            ...
        def get_feature_definitions(self) -> list[FeatureDefinition]:
            ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from shooting_pulse.shared.config import Settings, get_config
from shooting_pulse.shared.errors import UnknownCategoryError

logger = logging.getLogger(__name__)

# FeatureDefinition.dtype -> check on the built column
DTYPE_CHECKS = {
    "category": lambda s: isinstance(s.dtype, pd.CategoricalDtype),
    "date": pd.api.types.is_datetime64_any_dtype,
    "time": pd.api.types.is_timedelta64_dtype,
}


@dataclass
class FeatureDefinition:
    """Definition of a model feature."""

    name: str
    description: str
    dtype: str  # category, date, time
    nullable: bool = False
    categories: list[str] | None = None  # fixed vocabulary, None = frozen from data


@dataclass
class FeatureBuildResult:
    """Result of a feature building operation."""

    dataset: str
    execution_date: str
    rows_input: int
    rows_output: int
    features_computed: int
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    step_counts: list[tuple[str, int]] = field(default_factory=list)
    vocabulary: dict[str, list[str]] = field(default_factory=dict)
    feature_stats: dict[str, dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_input": self.rows_input,
            "rows_output": self.rows_output,
            "features_computed": self.features_computed,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "step_counts": [list(step) for step in self.step_counts],
            "vocabulary": self.vocabulary,
            "feature_stats": self.feature_stats,
        }


class BaseFeatureBuilder(ABC):
    """
    Abstract base class for feature building.

    Subclasses must implement:
    - build_features(): Compute the model table from processed data
    - get_dataset_name(): Return the dataset name
    - get_feature_definitions(): Return list of feature definitions
    - get_target(): Return the label column
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the feature builder.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self._feature_stats: dict[str, dict[str, Any]] = {}
        self._step_counts: list[tuple[str, int]] = []
        self.vocabulary: dict[str, list[str]] = {}

    @abstractmethod
    def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Build features from processed data.

        Args:
            df: Processed DataFrame

        Returns:
            DataFrame ready for modeling
        """
        pass

    @abstractmethod
    def get_dataset_name(self) -> str:
        """
        Get the dataset name.

        Returns:
            Dataset name (e.g., "shooting")
        """
        pass

    @abstractmethod
    def get_feature_definitions(self) -> list[FeatureDefinition]:
        """
        Get list of feature definitions.

        Returns:
            List of FeatureDefinition objects describing each column
        """
        pass

    @abstractmethod
    def get_target(self) -> str:
        """
        Get the label column predicted from the other features.

        Returns:
            Column name
        """
        pass

    def run(
        self,
        df: pd.DataFrame,
        execution_date: str,
    ) -> FeatureBuildResult:
        """
        Run the feature building pipeline.

        Args:
            df: Processed DataFrame
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            FeatureBuildResult with details about the feature building
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        rows_input = len(df)

        logger.info(
            f"Starting feature building for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "execution_date": execution_date,
                "rows_input": rows_input,
            },
        )

        try:
            self._feature_stats = {}
            self._step_counts = [("input", rows_input)]

            features_df = self.build_features(df.copy())

            self._compute_feature_stats(features_df)
            self._validate_features(features_df)

            result = FeatureBuildResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=len(features_df),
                features_computed=len(features_df.columns),
                duration_seconds=time.time() - start_time,
                success=True,
                step_counts=list(self._step_counts),
                vocabulary=dict(self.vocabulary),
                feature_stats=self._feature_stats,
            )

            logger.info(
                f"Feature building complete for {dataset_name}: "
                f"{len(features_df)} rows, {len(features_df.columns)} features",
                extra=result.to_dict(),
            )

            self._data = features_df

            return result

        except Exception as e:
            logger.error(
                f"Feature building failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )

            return FeatureBuildResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=0,
                features_computed=0,
                duration_seconds=time.time() - start_time,
                success=False,
                error_message=str(e),
                step_counts=list(self._step_counts),
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently built features."""
        return getattr(self, "_data", None)

    @property
    def step_counts(self) -> list[tuple[str, int]]:
        """Row count after each step of the most recent build."""
        return list(self._step_counts)

    def _record_step(self, name: str, df: pd.DataFrame) -> None:
        self._step_counts.append((name, len(df)))
        logger.debug(f"{name}: {len(df)} rows remaining")

    def _compute_feature_stats(self, df: pd.DataFrame) -> None:
        """Compute statistics for each feature."""
        descriptions = {f.name: f.description for f in self.get_feature_definitions()}
        for col in df.columns:
            stats: dict[str, Any] = {
                "description": descriptions.get(col),
                "dtype": str(df[col].dtype),
                "null_count": int(df[col].isna().sum()),
                "null_ratio": float(df[col].isna().mean()) if len(df) else 0.0,
            }

            if isinstance(df[col].dtype, pd.CategoricalDtype):
                stats["categories"] = len(df[col].cat.categories)
                stats["unique_count"] = int(df[col].nunique())
            elif pd.api.types.is_numeric_dtype(df[col]):
                non_null = df[col].dropna()
                if len(non_null) > 0:
                    stats.update(
                        {
                            "mean": float(non_null.mean()),
                            "min": float(non_null.min()),
                            "max": float(non_null.max()),
                        }
                    )
            else:
                stats["unique_count"] = int(df[col].nunique())

            self._feature_stats[col] = stats

    def _validate_features(self, df: pd.DataFrame) -> None:
        """Validate features against definitions."""
        definitions = {f.name: f for f in self.get_feature_definitions()}

        missing = [name for name in definitions if name not in df.columns]
        if missing:
            raise ValueError(f"Missing feature columns: {missing}")

        for col, defn in definitions.items():
            if not defn.nullable and df[col].isna().any():
                raise ValueError(f"Feature '{col}' has null values but is marked as non-nullable")
            check = DTYPE_CHECKS.get(defn.dtype)
            if check is not None and not check(df[col]):
                raise ValueError(
                    f"Feature '{col}' has dtype {df[col].dtype}, expected {defn.dtype}"
                )

    # ==========================================================================
    # Common Feature Building Utilities
    # ==========================================================================

    def exclude_values(
        self,
        df: pd.DataFrame,
        col: str,
        values: Iterable[str],
        step: str,
    ) -> pd.DataFrame:
        """
        Drop rows whose `col` equals any of `values`.

        Args:
            df: Input DataFrame
            col: Column to test
            values: Sentinel values to exclude
            step: Step name recorded in step_counts

        Returns:
            New DataFrame without the matching rows
        """
        df = df[~df[col].isin(list(values))].copy()
        self._record_step(step, df)
        return df

    def coerce_categorical(
        self,
        df: pd.DataFrame,
        col: str,
        categories: list[str] | None = None,
    ) -> pd.DataFrame:
        """
        Coerce a column to a closed categorical type and freeze its vocabulary.

        With `categories` given, any value outside it raises
        UnknownCategoryError. Without, the vocabulary is the sorted set of
        values present now.
        """
        values = df[col].astype(str)
        if categories is None:
            categories = sorted(values.unique().tolist())
        else:
            unknown = sorted(set(values.unique()) - set(categories))
            if unknown:
                raise UnknownCategoryError(col, unknown)

        df[col] = pd.Categorical(values, categories=list(categories))
        self.vocabulary[col] = list(categories)
        return df
