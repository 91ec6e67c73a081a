"""
Shooting Pulse - Shooting Dataset

NYPD Shooting Incident Data (Historic) from NYC Open Data.

Components:
    - ShootingIngester: Downloads the CSV export
    - ShootingPreprocessor: Cleans and types the raw table
    - ShootingAggregator: Exploration group counts
    - ShootingFeatureBuilder: Filters the table for the borough classifier

Data Source:
    https://data.cityofnewyork.us/Public-Safety/NYPD-Shooting-Incident-Data-Historic-/833y-fsy8

Usage:
    from shooting_pulse.datasets.shooting import (
        ShootingAggregator,
        ShootingFeatureBuilder,
        ShootingIngester,
        ShootingPreprocessor,
    )

    # Ingest
    ingester = ShootingIngester()
    result = ingester.run(execution_date="2024-01-15")
    raw_df = ingester.get_data()

    # Clean
    preprocessor = ShootingPreprocessor()
    result = preprocessor.run(raw_df, execution_date="2024-01-15")
    clean_df = preprocessor.get_data()

    # Explore
    counts = ShootingAggregator().run(clean_df)

    # Prepare model table
    builder = ShootingFeatureBuilder()
    result = builder.run(clean_df, execution_date="2024-01-15")
    model_df = builder.get_data()
"""

from shooting_pulse.datasets.shooting.aggregate import AggregationResult, ShootingAggregator
from shooting_pulse.datasets.shooting.features import (
    ShootingFeatureBuilder,
    build_shooting_features,
)
from shooting_pulse.datasets.shooting.ingest import ShootingIngester, parse_csv
from shooting_pulse.datasets.shooting.preprocess import (
    ShootingPreprocessor,
    preprocess_shooting_data,
)

__all__ = [
    "ShootingIngester",
    "ShootingPreprocessor",
    "ShootingAggregator",
    "ShootingFeatureBuilder",
    "AggregationResult",
    "parse_csv",
    "preprocess_shooting_data",
    "build_shooting_features",
]
