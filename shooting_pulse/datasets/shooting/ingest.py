"""
Shooting Pulse - Shooting Data Ingester

Downloads the NYPD Shooting Incident Data (Historic) CSV export from NYC Open Data.

Data Source:
    NYPD Shooting Incident Data (Historic)
    https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8

Configuration:
    Source URL and timeout from the `source` config section,
    dataset metadata from configs/datasets/shooting.yaml

Usage:
    from shooting_pulse.datasets.shooting.ingest import ShootingIngester

    ingester = ShootingIngester()
    result = ingester.run(execution_date="2024-01-15")
    df = ingester.get_data()
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

import pandas as pd
import requests

from shooting_pulse.datasets.base import BaseIngester
from shooting_pulse.shared.config import Settings, get_dataset_config
from shooting_pulse.shared.errors import IngestionError

logger = logging.getLogger(__name__)

# =============================================================================
# Dataset Configuration (loaded from shooting.yaml)
# =============================================================================
DATASET_CONFIG = get_dataset_config("shooting")

INGESTION_CONFIG = DATASET_CONFIG.get("ingestion", {})
PRIMARY_KEY = INGESTION_CONFIG.get("primary_key", "INCIDENT_KEY")


def parse_csv(source: str | Path | io.StringIO, na_values: list[str]) -> pd.DataFrame:
    """
    Parse the shooting CSV format.

    Every cell is read as text. Empty cells stay empty strings; only the
    given `na_values` become missing. Numeric columns get their missing
    values from type conversion in the preprocessor.
    """
    return pd.read_csv(
        source,
        dtype=str,
        keep_default_na=False,
        na_values=na_values,
    )


class ShootingIngester(BaseIngester):
    """
    Ingester for NYPD shooting incident data.

    Fetches the full CSV export in a single request. There is no pagination
    and no retry; any failure is reported as IngestionError.
    """

    def __init__(self, config: Settings | None = None):
        """Initialize shooting ingester with the configured source."""
        super().__init__(config)
        self.url = self.config.source.url
        self.timeout = self.config.source.timeout_seconds
        self.local_path = self.config.source.local_path

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "shooting"

    def get_primary_key(self) -> str:
        """Return the primary key field (from config)."""
        return PRIMARY_KEY

    def get_source_url(self) -> str:
        """Get the CSV download URL, or the local file read in its place."""
        return self.local_path or self.url

    def fetch_data(self) -> pd.DataFrame:
        """
        Download and parse the shooting CSV.

        Reads `source.local_path` instead when it is configured.

        Returns:
            DataFrame with one row per incident record, columns in source order

        Raises:
            IngestionError: On transport errors, non-200 responses or unparseable bodies
        """
        if self.local_path:
            return self.load_local_csv(self.local_path)

        logger.info(f"Fetching shooting data from {self.url}", extra={"url": self.url})

        try:
            response = requests.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            raise IngestionError(f"Request to {self.url} failed: {e}") from e

        if response.status_code != 200:
            raise IngestionError(f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            df = parse_csv(io.StringIO(response.text), self.config.source.na_values)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise IngestionError(f"Could not parse CSV from {self.url}: {e}") from e

        logger.info(
            f"Fetched {len(df)} shooting records",
            extra={"rows": len(df), "columns": list(df.columns)},
        )

        return df

    def load_local_csv(self, path: str | Path) -> pd.DataFrame:
        """
        Load a previously downloaded export from disk.

        Args:
            path: Path to the CSV file

        Returns:
            DataFrame parsed exactly like fetch_data()
        """
        try:
            df = parse_csv(path, self.config.source.na_values)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise IngestionError(f"Could not read CSV from {path}: {e}") from e

        logger.info(f"Loaded {len(df)} shooting records from {path}")
        return df
