from shooting_pulse.validation.statistics_generator import (
    DataStatistics,
    FeatureStatistics,
    StatisticsGenerator,
    format_statistics,
    missing_value_counts,
)

__all__ = [
    "StatisticsGenerator",
    "DataStatistics",
    "FeatureStatistics",
    "format_statistics",
    "missing_value_counts",
]
