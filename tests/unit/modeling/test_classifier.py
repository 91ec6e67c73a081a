"""
Unit tests for BoroughClassifier.

Tests the stratified split, training, evaluation and the closed schema check.
"""

import numpy as np
import pandas as pd
import pytest

from shooting_pulse.modeling import BoroughClassifier, diagonal_total
from shooting_pulse.shared.errors import InsufficientDataError, UnknownCategoryError

LABELS = ["BRONX", "BROOKLYN", "MANHATTAN", "QUEENS", "STATEN ISLAND"]


class TestSplit:
    """Test cases for the train/test split."""

    @pytest.fixture
    def classifier(self, fast_config, model_vocabulary):
        """Create a BoroughClassifier with a small forest."""
        return BoroughClassifier(fast_config, vocabulary=model_vocabulary)

    def test_split_sizes(self, classifier, sample_model_df):
        """100 rows at 0.9 split into 90 train and 10 test."""
        train, test = classifier.split(sample_model_df)

        assert len(train) == 90
        assert len(test) == 10

    def test_split_is_partition(self, classifier, sample_model_df):
        """Every row lands in exactly one partition."""
        train, test = classifier.split(sample_model_df)

        assert not set(train.index) & set(test.index)
        assert set(train.index) | set(test.index) == set(sample_model_df.index)

    def test_split_is_stratified(self, classifier, sample_model_df):
        """Per-borough share of the test partition matches the source within one row."""
        _, test = classifier.split(sample_model_df)

        source_share = sample_model_df["boro"].value_counts(normalize=True)
        test_counts = test["boro"].value_counts()
        for boro, share in source_share.items():
            assert abs(test_counts.get(boro, 0) - share * len(test)) <= 1, boro

    def test_split_reproducible(self, fast_config, model_vocabulary, sample_model_df):
        """The same seed gives the same partition."""
        first, _ = BoroughClassifier(fast_config, model_vocabulary).split(sample_model_df)
        second, _ = BoroughClassifier(fast_config, model_vocabulary).split(sample_model_df)

        assert first.index.equals(second.index)

    def test_split_single_row_class(self, classifier, sample_model_df):
        """A borough with one row cannot be stratified."""
        df = sample_model_df.copy()
        df.loc[0, "boro"] = "STATEN ISLAND"

        with pytest.raises(InsufficientDataError, match="fewer than 2"):
            classifier.split(df)

    def test_split_empty_table(self, classifier, sample_model_df):
        """An empty table cannot be split."""
        with pytest.raises(InsufficientDataError):
            classifier.split(sample_model_df.iloc[0:0])


class TestTrainEvaluate:
    """Test cases for fit, predict and evaluate."""

    @pytest.fixture
    def classifier(self, fast_config, model_vocabulary):
        """Create a BoroughClassifier with a small forest."""
        return BoroughClassifier(fast_config, vocabulary=model_vocabulary)

    def test_run_success(self, classifier, sample_model_df):
        """Test successful training run."""
        result = classifier.run(sample_model_df)

        assert result.success
        assert result.target == "boro"
        assert result.rows_train == 90
        assert result.rows_test == 10
        assert 0.0 <= result.accuracy <= 1.0
        assert result.random_seed == 42

    def test_confusion_matrix_totals(self, classifier, sample_model_df):
        """Matrix cells sum to the test rows; the diagonal is the correct count."""
        result = classifier.run(sample_model_df)
        cm = result.confusion_matrix

        assert int(cm.to_numpy().sum()) == result.rows_test
        assert diagonal_total(cm) / result.rows_test == pytest.approx(result.accuracy)

    def test_confusion_matrix_orientation(self, classifier, sample_model_df):
        """Rows are predicted labels, columns are actual labels."""
        result = classifier.run(sample_model_df)
        cm = result.confusion_matrix
        _, test = classifier.split(sample_model_df)

        assert cm.index.name == "predicted"
        assert cm.columns.name == "actual"
        assert list(cm.columns) == LABELS
        actual_counts = test["boro"].astype(str).value_counts()
        for boro in LABELS:
            assert cm[boro].sum() == actual_counts.get(boro, 0)

    def test_run_reproducible(self, fast_config, model_vocabulary, sample_model_df):
        """The same seed gives the same accuracy and matrix."""
        first = BoroughClassifier(fast_config, model_vocabulary).run(sample_model_df)
        second = BoroughClassifier(fast_config, model_vocabulary).run(sample_model_df)

        assert first.accuracy == second.accuracy
        pd.testing.assert_frame_equal(first.confusion_matrix, second.confusion_matrix)

    def test_feature_importance(self, classifier, sample_model_df):
        """Importance covers every non-target column, highest first."""
        result = classifier.run(sample_model_df)
        scores = list(result.feature_importance.values())

        assert set(result.feature_importance) == set(sample_model_df.columns) - {"boro"}
        assert scores == sorted(scores, reverse=True)
        assert sum(scores) == pytest.approx(1.0)

    def test_predict_labels(self, classifier, sample_model_df):
        """Predictions stay within the target vocabulary."""
        train, test = classifier.split(sample_model_df)
        classifier.fit(train)

        predicted = classifier.predict(test)

        assert len(predicted) == len(test)
        assert set(predicted.astype(str)) <= set(LABELS)

    def test_predict_unknown_category(self, classifier, sample_model_df):
        """A value unseen at build time is rejected, not silently encoded."""
        train, test = classifier.split(sample_model_df)
        classifier.fit(train)
        bad = test.copy()
        bad["vic_sex"] = "X"

        with pytest.raises(UnknownCategoryError) as exc_info:
            classifier.predict(bad)

        assert exc_info.value.column == "vic_sex"

    def test_predict_before_fit(self, classifier, sample_model_df):
        """Predicting without a fitted model is an error."""
        with pytest.raises(ValueError, match="not been fitted"):
            classifier.predict(sample_model_df)

    def test_run_failure(self, classifier, sample_model_df):
        """Unsplittable tables give a failed result."""
        df = sample_model_df.copy()
        df.loc[0, "boro"] = "MANHATTAN"

        result = classifier.run(df)

        assert not result.success
        assert "fewer than 2" in result.error_message
        assert result.confusion_matrix is None

    def test_vocabulary_frozen_from_training_table(self, fast_config, sample_model_df):
        """Without a supplied vocabulary, categories come from the table."""
        classifier = BoroughClassifier(fast_config)

        result = classifier.run(sample_model_df)

        assert result.success
        assert classifier.vocabulary["vic_sex"] == ["F", "M"]
        assert classifier.labels == LABELS

    def test_explicit_target(self, fast_config, model_vocabulary, sample_model_df):
        """A target passed in replaces the configured label column."""
        classifier = BoroughClassifier(fast_config, vocabulary=model_vocabulary, target="vic_sex")

        result = classifier.run(sample_model_df)

        assert result.success
        assert result.target == "vic_sex"
        assert classifier.labels == ["F", "M"]
        assert "boro" in classifier.feature_columns
        assert list(result.confusion_matrix.index) == ["F", "M"]


class TestEncode:
    """Test cases for feature encoding."""

    def test_encode_types(self, fast_config, model_vocabulary, sample_model_df):
        """Categoricals become codes, dates days, times seconds."""
        classifier = BoroughClassifier(fast_config, vocabulary=model_vocabulary)
        classifier.feature_columns = ["vic_sex", "occur_date", "occur_time"]

        encoded = classifier.encode(sample_model_df.head(2))

        assert list(encoded["vic_sex"]) == [0, 1]
        assert encoded["occur_date"].iloc[0] == (
            pd.Timestamp("2010-01-01") - pd.Timestamp("1970-01-01")
        ).days
        assert encoded["occur_time"].iloc[1] == 977.0
        assert all(np.issubdtype(dtype, np.number) for dtype in encoded.dtypes)
