"""
Shooting Pulse - Shooting Feature Builder

Prepares the cleaned shooting table for the borough classifier.

Steps (in order, each applied to the previous step's output):
    1. Drop rows with an unknown victim sex
    2. Drop rows with an unknown or invalid victim age group
    3. Drop rows whose location description is the null placeholder
    4. Drop rows with an unknown perpetrator sex
    5. Drop precinct, murder flag and location classification columns
    6. Drop rows with missing values
Then keep the model columns and coerce categoricals to closed vocabularies.

Usage:
    from shooting_pulse.datasets.shooting.features import ShootingFeatureBuilder

    builder = ShootingFeatureBuilder()
    result = builder.run(clean_df, execution_date="2024-01-15")
    model_df = builder.get_data()
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from shooting_pulse.datasets.base import BaseFeatureBuilder, FeatureDefinition
from shooting_pulse.shared.config import Settings

logger = logging.getLogger(__name__)


class ShootingFeatureBuilder(BaseFeatureBuilder):
    """
    Feature builder for the borough classifier.

    Vocabularies are frozen on the builder the first time each categorical
    column is coerced; `vocabulary` is what the classifier validates against.
    """

    def __init__(self, config: Settings | None = None):
        """Initialize shooting feature builder."""
        super().__init__(config)
        self.filtering = self.config.filtering

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shooting"

    def get_target(self) -> str:
        """Return the label column."""
        return self.config.model.target

    def get_feature_definitions(self) -> list[FeatureDefinition]:
        """Return feature definitions."""
        return [
            FeatureDefinition(
                name="boro",
                description="Borough where the incident occurred",
                dtype="category",
                categories=self.filtering.vocabularies.get("boro"),
            ),
            FeatureDefinition(
                name="vic_sex",
                description="Victim sex (unknown excluded)",
                dtype="category",
                categories=self.filtering.vocabularies.get("vic_sex"),
            ),
            FeatureDefinition(
                name="vic_age_group",
                description="Victim age bucket (unknown excluded)",
                dtype="category",
                categories=self.filtering.vocabularies.get("vic_age_group"),
            ),
            FeatureDefinition(
                name="perp_sex",
                description="Perpetrator sex (unknown excluded)",
                dtype="category",
                categories=self.filtering.vocabularies.get("perp_sex"),
            ),
            FeatureDefinition(
                name="location_desc",
                description="Location description label",
                dtype="category",
                categories=self.filtering.vocabularies.get("location_desc"),
            ),
            FeatureDefinition(
                name="occur_date",
                description="Calendar date of occurrence",
                dtype="date",
            ),
            FeatureDefinition(
                name="occur_time",
                description="Time of day of occurrence",
                dtype="time",
            ),
        ]

    def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Filter the cleaned table and coerce it to the model schema.

        Args:
            df: Cleaned shooting DataFrame

        Returns:
            Model table restricted to the model columns
        """
        self.vocabulary = {}

        f = self.filtering
        df = self.exclude_values(df, "vic_sex", f.vic_sex_unknown, "exclude_vic_sex_unknown")
        df = self.exclude_values(
            df, "vic_age_group", f.vic_age_group_excluded, "exclude_vic_age_group_invalid"
        )
        df = self.exclude_values(
            df, "location_desc", f.location_desc_null, "exclude_location_desc_null"
        )
        df = self.exclude_values(df, "perp_sex", f.perp_sex_unknown, "exclude_perp_sex_unknown")

        df = df.drop(columns=self.filtering.dropped_columns, errors="ignore")
        self._record_step("drop_columns", df)

        df = df.dropna()
        self._record_step("drop_missing", df)

        df = df[self.filtering.model_columns].copy()

        definitions = {f.name: f for f in self.get_feature_definitions()}
        for col in self.filtering.categorical_columns:
            defn = definitions.get(col)
            df = self.coerce_categorical(df, col, defn.categories if defn else None)

        logger.info(
            f"Model table has {len(df)} rows",
            extra={"vocabulary_sizes": {k: len(v) for k, v in self.vocabulary.items()}},
        )

        return df


# =============================================================================
# Convenience Functions
# =============================================================================


def build_shooting_features(
    df: pd.DataFrame,
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for building shooting model features.

    Returns result dictionary for logging.
    """
    builder = ShootingFeatureBuilder(config)
    result = builder.run(df, execution_date)
    return result.to_dict()
