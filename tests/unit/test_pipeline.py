"""
Unit tests for the end-to-end pipeline runner.
"""

from unittest.mock import MagicMock, patch

import pytest

from shooting_pulse.pipeline import format_summary, run_pipeline
from shooting_pulse.shared.errors import PipelineError


class TestRunPipeline:
    """Test cases for run_pipeline."""

    def test_run_from_table(self, fast_config, make_raw_shooting_df):
        """Every stage runs on a supplied raw table."""
        result = run_pipeline(
            fast_config, raw_df=make_raw_shooting_df(200), execution_date="2024-01-15"
        )

        assert result.ingestion is None
        assert result.preprocessing.rows_output == 200
        assert result.features.rows_output == 200
        assert result.training.success
        assert result.training.rows_train == 180
        assert result.training.rows_test == 20
        assert result.charts == []

    def test_counts_cover_clean_table(self, fast_config, make_raw_shooting_df):
        """Exploration counts sum to the cleaned row count."""
        result = run_pipeline(fast_config, raw_df=make_raw_shooting_df(200))

        for counts in result.aggregation.groupings().values():
            assert sum(counts.values()) == result.preprocessing.rows_output

    def test_raw_missing_counts(self, fast_config, make_raw_shooting_df):
        """Missing values are reported per raw column."""
        raw = make_raw_shooting_df(200)
        raw.loc[0, "JURISDICTION_CODE"] = None

        result = run_pipeline(fast_config, raw_df=raw)

        assert result.raw_missing["JURISDICTION_CODE"] == 1
        assert result.preprocessing.rows_output == 199

    def test_statistics_and_plots_written(self, fast_config, make_raw_shooting_df, tmp_path):
        """Enabled outputs land in the configured directories."""
        config = fast_config.model_copy(
            update={
                "reporting": fast_config.reporting.model_copy(
                    update={"plots_enabled": True, "save_statistics": True, "figure_dpi": 50}
                )
            }
        )

        result = run_pipeline(config, raw_df=make_raw_shooting_df(200))

        assert len(result.charts) == 6
        assert (tmp_path / "statistics" / "shooting" / "raw" / "latest.json").exists()
        assert (tmp_path / "statistics" / "shooting" / "clean" / "latest.json").exists()

    def test_training_failure_raises(self, fast_config, make_raw_shooting_df):
        """A model table that cannot be split stops the run."""
        raw = make_raw_shooting_df(200)
        raw["VIC_SEX"] = "U"

        with pytest.raises(PipelineError) as exc_info:
            run_pipeline(fast_config, raw_df=raw)

        assert exc_info.value.stage == "training"

    def test_aggregation_failure_raises(self, mocker, fast_config, make_raw_shooting_df):
        """An error while counting stops the run as a stage failure."""
        mocker.patch(
            "shooting_pulse.pipeline.ShootingAggregator.run", side_effect=KeyError("boro")
        )

        with pytest.raises(PipelineError) as exc_info:
            run_pipeline(fast_config, raw_df=make_raw_shooting_df(200))

        assert exc_info.value.stage == "aggregation"
        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_statistics_failure_raises(self, mocker, fast_config, make_raw_shooting_df):
        """An error while summarizing the raw table stops the run."""
        mocker.patch(
            "shooting_pulse.pipeline.StatisticsGenerator.generate_statistics",
            side_effect=ValueError("bad column"),
        )

        with pytest.raises(PipelineError, match="bad column") as exc_info:
            run_pipeline(fast_config, raw_df=make_raw_shooting_df(200))

        assert exc_info.value.stage == "raw statistics"

    def test_classifier_target_from_builder(self, mocker, fast_config, make_raw_shooting_df):
        """The classifier predicts the label column the feature builder names."""
        get_target = mocker.patch(
            "shooting_pulse.pipeline.ShootingFeatureBuilder.get_target", return_value="boro"
        )

        result = run_pipeline(fast_config, raw_df=make_raw_shooting_df(200))

        get_target.assert_called_once()
        assert result.training.target == "boro"

    @patch("shooting_pulse.datasets.shooting.ingest.requests.get")
    def test_ingestion_failure_raises(self, mock_get, fast_config):
        """A failed download stops the run before cleaning."""
        mock_response = MagicMock()
        mock_response.status_code = 404
        mock_response.text = "Not Found"
        mock_get.return_value = mock_response

        with pytest.raises(PipelineError, match="HTTP 404") as exc_info:
            run_pipeline(fast_config)

        assert exc_info.value.stage == "ingestion"


class TestFormatSummary:
    """Test cases for format_summary."""

    def test_summary_sections(self, fast_config, make_raw_shooting_df):
        """The printed report covers every stage."""
        result = run_pipeline(fast_config, raw_df=make_raw_shooting_df(200))

        summary = format_summary(result)

        assert "=== Missing Values (raw) ===" in summary
        assert "=== Shootings by borough ===" in summary
        assert "exclude_vic_sex_unknown: 200 rows" in summary
        assert "train rows: 180, test rows: 20" in summary
        assert "Confusion matrix (rows: predicted, columns: actual)" in summary
