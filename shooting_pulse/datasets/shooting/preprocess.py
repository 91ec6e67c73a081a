"""
Shooting Pulse - Shooting Data Preprocessor

Cleans the raw NYPD shooting export.

Transformations:
    - Keep the leading 16 source columns (coordinates and later columns are dropped)
    - Column renaming to standardized names
    - Numeric identifier conversion
    - Missing value removal
    - Date, time-of-day and murder-flag parsing

Usage:
    from shooting_pulse.datasets.shooting.preprocess import ShootingPreprocessor

    preprocessor = ShootingPreprocessor()
    result = preprocessor.run(raw_df, execution_date="2024-01-15")
    clean_df = preprocessor.get_data()
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from shooting_pulse.datasets.base import BasePreprocessor
from shooting_pulse.shared.config import Settings, get_dataset_config

logger = logging.getLogger(__name__)

DATASET_CONFIG = get_dataset_config("shooting")

# Truthy/falsy spellings seen in the murder flag across export vintages
TRUE_VALUES = {"TRUE", "Y", "YES", "1"}
FALSE_VALUES = {"FALSE", "N", "NO", "0"}


class ShootingPreprocessor(BasePreprocessor):
    """
    Preprocessor for NYPD shooting incident data.

    Output columns are exactly the standardized names of the retained
    column prefix, with no missing values.
    """

    # Column mapping from raw export names to standardized names
    COLUMN_MAPPINGS = DATASET_CONFIG.get("columns") or {
        "INCIDENT_KEY": "incident_key",
        "OCCUR_DATE": "occur_date",
        "OCCUR_TIME": "occur_time",
        "BORO": "boro",
        "LOC_OF_OCCUR_DESC": "loc_of_occur_desc",
        "PRECINCT": "precinct",
        "JURISDICTION_CODE": "jurisdiction_code",
        "LOC_CLASSFCTN_DESC": "loc_classfctn_desc",
        "LOCATION_DESC": "location_desc",
        "STATISTICAL_MURDER_FLAG": "statistical_murder_flag",
        "PERP_AGE_GROUP": "perp_age_group",
        "PERP_SEX": "perp_sex",
        "PERP_RACE": "perp_race",
        "VIC_AGE_GROUP": "vic_age_group",
        "VIC_SEX": "vic_sex",
        "VIC_RACE": "vic_race",
    }

    DTYPE_MAPPINGS = {
        "incident_key": "int",
        "precinct": "int",
        "jurisdiction_code": "int",
    }

    REQUIRED_COLUMNS = [
        "occur_date",
        "occur_time",
        "boro",
        "statistical_murder_flag",
    ]

    def __init__(self, config: Settings | None = None):
        """Initialize shooting preprocessor."""
        super().__init__(config)
        self.retained_column_count = self.config.cleaning.retained_column_count

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shooting"

    def get_required_columns(self) -> list[str]:
        """Return required output columns."""
        return self.REQUIRED_COLUMNS

    def get_column_mappings(self) -> dict[str, str]:
        """Return column name mappings."""
        return self.COLUMN_MAPPINGS

    def get_dtype_mappings(self) -> dict[str, str]:
        """Return data type mappings."""
        return self.DTYPE_MAPPINGS

    def select_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Keep only the leading source columns."""
        dropped = list(df.columns[self.retained_column_count :])
        df = df.iloc[:, : self.retained_column_count].copy()
        if dropped:
            logger.debug(f"Dropping trailing columns: {dropped}")
        self.log_transformation(f"retain_first_{self.retained_column_count}_columns")
        return df

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply shooting-specific transformations.

        Args:
            df: Raw DataFrame with renamed columns

        Returns:
            Cleaned DataFrame with no missing values
        """
        df = self.drop_missing(df)

        df = self._process_date(df)
        df = self._process_time(df)
        df = self._process_murder_flag(df)

        # Conversions above can surface new gaps
        df = self.drop_missing(df, reason="missing_after_conversion")

        return df

    def _drop_unparseable(self, df: pd.DataFrame, col: str) -> pd.DataFrame:
        invalid = df[col].isna()
        invalid_count = int(invalid.sum())
        if invalid_count > 0:
            logger.warning(f"Dropping {invalid_count} rows with unparseable {col}")
            self.log_dropped_rows(f"unparseable_{col}", invalid_count)
            df = df[~invalid].copy()
        return df

    def _process_date(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse month/day/year text into a calendar date."""
        if "occur_date" in df.columns:
            df["occur_date"] = pd.to_datetime(
                df["occur_date"].astype(str).str.strip(),
                format=self.config.cleaning.date_format,
                errors="coerce",
            ).dt.normalize()
            df = self._drop_unparseable(df, "occur_date")
            self.log_transformation("parse_occur_date")
        return df

    def _process_time(self, df: pd.DataFrame) -> pd.DataFrame:
        """Parse clock text into a time of day within a single day."""
        if "occur_time" in df.columns:
            clock = pd.to_datetime(
                df["occur_time"].astype(str).str.strip(),
                format=self.config.cleaning.time_format,
                errors="coerce",
            )
            # Clock values parse into [00:00:00, 23:59:59]; anything else is NaT
            df["occur_time"] = clock - clock.dt.normalize()
            df = self._drop_unparseable(df, "occur_time")
            self.log_transformation("parse_occur_time")
        return df

    def _process_murder_flag(self, df: pd.DataFrame) -> pd.DataFrame:
        """Convert the murder flag to boolean."""
        if "statistical_murder_flag" in df.columns:
            flags = df["statistical_murder_flag"].astype(str).str.strip().str.upper()
            parsed = pd.Series(pd.NA, index=df.index, dtype="boolean")
            parsed[flags.isin(TRUE_VALUES)] = True
            parsed[flags.isin(FALSE_VALUES)] = False
            df["statistical_murder_flag"] = parsed
            df = self._drop_unparseable(df, "statistical_murder_flag")
            df["statistical_murder_flag"] = df["statistical_murder_flag"].astype(bool)
            self.log_transformation("convert_murder_flag_to_boolean")
        return df


# =============================================================================
# Convenience Functions
# =============================================================================


def preprocess_shooting_data(
    df: pd.DataFrame,
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for preprocessing shooting data.

    Returns result dictionary for logging.
    """
    preprocessor = ShootingPreprocessor(config)
    result = preprocessor.run(df, execution_date)
    return result.to_dict()
