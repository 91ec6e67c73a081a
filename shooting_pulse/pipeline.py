"""
Shooting Pulse - Pipeline

Runs the stages in order:

    load -> clean -> aggregate
                  -> filter -> train/evaluate

Each stage returns a new table; a stage reporting failure stops the run with
PipelineError.

Usage:
    from shooting_pulse.pipeline import format_summary, run_pipeline

    result = run_pipeline()
    print(format_summary(result))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd

from shooting_pulse.datasets.base import FeatureBuildResult, IngestionResult, PreprocessingResult
from shooting_pulse.datasets.shooting import (
    AggregationResult,
    ShootingAggregator,
    ShootingFeatureBuilder,
    ShootingIngester,
    ShootingPreprocessor,
)
from shooting_pulse.modeling import BoroughClassifier, TrainingResult, diagonal_total
from shooting_pulse.shared.config import Settings, get_config
from shooting_pulse.shared.errors import PipelineError
from shooting_pulse.validation import (
    DataStatistics,
    StatisticsGenerator,
    format_statistics,
    missing_value_counts,
)

logger = logging.getLogger(__name__)

DATASET = "shooting"


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""

    execution_date: str
    ingestion: IngestionResult | None
    preprocessing: PreprocessingResult
    aggregation: AggregationResult
    features: FeatureBuildResult
    training: TrainingResult
    raw_statistics: DataStatistics
    clean_statistics: DataStatistics
    raw_missing: dict[str, int] = field(default_factory=dict)
    charts: list[Path] = field(default_factory=list)


def _check(stage: str, result) -> None:
    if not result.success:
        raise PipelineError(stage, result.error_message)


def _statistics(generator: StatisticsGenerator, df: pd.DataFrame, layer: str) -> DataStatistics:
    try:
        return generator.generate_statistics(df, DATASET, layer)
    except Exception as e:
        raise PipelineError(f"{layer} statistics", str(e)) from e


def run_pipeline(
    config: Settings | None = None,
    raw_df: pd.DataFrame | None = None,
    execution_date: str | None = None,
) -> PipelineResult:
    """
    Run the full analysis.

    Args:
        config: Configuration object (uses default if not provided)
        raw_df: Raw table to use instead of loading from the source
        execution_date: Run date in YYYY-MM-DD format (defaults to today)

    Returns:
        PipelineResult with every stage's result

    Raises:
        PipelineError: A stage failed
    """
    config = config or get_config()
    execution_date = execution_date or datetime.now(UTC).strftime("%Y-%m-%d")
    stats_generator = StatisticsGenerator(config)

    # Load
    ingestion = None
    if raw_df is None:
        ingester = ShootingIngester(config)
        ingestion = ingester.run(execution_date)
        _check("ingestion", ingestion)
        raw_df = ingester.get_data()

    raw_statistics = _statistics(stats_generator, raw_df, "raw")
    raw_missing = missing_value_counts(raw_df)

    # Clean
    preprocessor = ShootingPreprocessor(config)
    preprocessing = preprocessor.run(raw_df, execution_date)
    _check("preprocessing", preprocessing)
    clean_df = preprocessor.get_data()

    clean_statistics = _statistics(stats_generator, clean_df, "clean")
    if config.reporting.save_statistics:
        stats_generator.save_statistics(raw_statistics)
        stats_generator.save_statistics(clean_statistics)

    # Explore
    try:
        aggregation = ShootingAggregator().run(clean_df)
    except Exception as e:
        raise PipelineError("aggregation", str(e)) from e

    # Model
    builder = ShootingFeatureBuilder(config)
    features = builder.run(clean_df, execution_date)
    _check("feature building", features)

    classifier = BoroughClassifier(
        config, vocabulary=builder.vocabulary, target=builder.get_target()
    )
    training = classifier.run(builder.get_data())
    _check("training", training)

    result = PipelineResult(
        execution_date=execution_date,
        ingestion=ingestion,
        preprocessing=preprocessing,
        aggregation=aggregation,
        features=features,
        training=training,
        raw_statistics=raw_statistics,
        clean_statistics=clean_statistics,
        raw_missing=raw_missing,
    )

    if config.reporting.plots_enabled:
        from shooting_pulse.reporting.plots import render_report

        result.charts = render_report(
            aggregation,
            training,
            config.reporting.output_dir,
            dpi=config.reporting.figure_dpi,
        )

    logger.info(
        f"Pipeline complete for {execution_date}",
        extra={
            "rows_raw": preprocessing.rows_input,
            "rows_clean": preprocessing.rows_output,
            "rows_model": features.rows_output,
            "accuracy": training.accuracy,
        },
    )

    return result


def format_summary(result: PipelineResult) -> str:
    """Render the printed report for a pipeline run."""
    lines = ["=== Column Summary (raw) ===", format_statistics(result.raw_statistics)]

    lines.append("\n=== Missing Values (raw) ===")
    for col, n in result.raw_missing.items():
        lines.append(f"  {col}: {n}")

    lines.append("\n=== Column Summary (clean) ===")
    lines.append(format_statistics(result.clean_statistics))
    for reason, n in result.preprocessing.drop_reasons.items():
        lines.append(f"  dropped {n} rows: {reason}")

    for name, counts in result.aggregation.groupings().items():
        lines.append(f"\n=== Shootings by {name} ===")
        for key, n in counts.items():
            lines.append(f"  {key}: {n}")

    lines.append("\n=== Model Table ===")
    for step, n in result.features.step_counts:
        lines.append(f"  {step}: {n} rows")

    training = result.training
    cm = training.confusion_matrix
    lines.append("\n=== Borough Classifier ===")
    lines.append(f"  train rows: {training.rows_train}, test rows: {training.rows_test}")
    lines.append(
        f"  accuracy: {training.accuracy:.4f} ({diagonal_total(cm)}/{training.rows_test} correct)"
    )
    lines.append("\n  Confusion matrix (rows: predicted, columns: actual)")
    lines.append(cm.to_string())
    lines.append("\n  Variable importance")
    for col, score in training.feature_importance.items():
        lines.append(f"  {col}: {score:.4f}")

    return "\n".join(lines)
