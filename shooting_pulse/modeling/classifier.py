"""
Shooting Pulse - Borough Classifier

Random forest predicting the borough of an incident from the model table
produced by ShootingFeatureBuilder.

Encoding:
    - categorical columns -> index into their frozen vocabulary
    - datetime columns -> days since 1970-01-01
    - timedelta columns -> seconds since midnight
    - bool/numeric columns -> as is

Usage:
    from shooting_pulse.modeling import BoroughClassifier

    classifier = BoroughClassifier(vocabulary=builder.vocabulary)
    result = classifier.run(model_df)
    result.accuracy
    result.confusion_matrix  # rows: predicted borough, columns: actual borough
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import accuracy_score, confusion_matrix
from sklearn.model_selection import train_test_split

from shooting_pulse.shared.config import Settings, get_config
from shooting_pulse.shared.errors import InsufficientDataError, UnknownCategoryError

logger = logging.getLogger(__name__)

EPOCH = pd.Timestamp("1970-01-01")


@dataclass
class TrainingResult:
    """Result of a train/evaluate run."""

    target: str
    rows_train: int
    rows_test: int
    accuracy: float | None = None
    confusion_matrix: pd.DataFrame | None = None
    feature_importance: dict[str, float] = field(default_factory=dict)
    random_seed: int | None = None
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "target": self.target,
            "rows_train": self.rows_train,
            "rows_test": self.rows_test,
            "accuracy": self.accuracy,
            "confusion_matrix": (
                self.confusion_matrix.to_dict() if self.confusion_matrix is not None else None
            ),
            "feature_importance": self.feature_importance,
            "random_seed": self.random_seed,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
        }


class BoroughClassifier:
    """
    Train and evaluate a random forest on the model table.

    `vocabulary` maps each categorical column (target included) to the
    categories frozen when the table was built. Without it, the vocabulary
    is frozen from the table given to fit(). `target` overrides the
    configured label column.
    """

    def __init__(
        self,
        config: Settings | None = None,
        vocabulary: dict[str, list[str]] | None = None,
        target: str | None = None,
    ):
        self.config = config or get_config()
        self.target = target or self.config.model.target
        self.n_estimators = self.config.model.n_estimators
        self.split_ratio = self.config.model.split_ratio
        self.random_seed = self.config.model.random_seed
        self.vocabulary = dict(vocabulary) if vocabulary else None
        self.feature_columns: list[str] = []
        self.model: RandomForestClassifier | None = None

    @property
    def labels(self) -> list[str]:
        """Target vocabulary in frozen order."""
        if not self.vocabulary or self.target not in self.vocabulary:
            raise ValueError(f"No vocabulary frozen for target '{self.target}'")
        return self.vocabulary[self.target]

    # ==========================================================================
    # Schema
    # ==========================================================================

    def _freeze_vocabulary(self, df: pd.DataFrame) -> None:
        vocabulary = {}
        for col in df.columns:
            if isinstance(df[col].dtype, pd.CategoricalDtype):
                vocabulary[col] = [str(c) for c in df[col].cat.categories]
            elif pd.api.types.is_object_dtype(df[col]) or pd.api.types.is_string_dtype(df[col]):
                vocabulary[col] = sorted(df[col].dropna().astype(str).unique().tolist())
        self.vocabulary = vocabulary
        logger.warning(
            "No vocabulary supplied; freezing categories from the training table",
            extra={"columns": list(vocabulary)},
        )

    def validate_features(self, df: pd.DataFrame) -> None:
        """
        Check every vocabulary column against its frozen categories.

        Raises:
            UnknownCategoryError: A column holds values outside its vocabulary
            ValueError: A vocabulary column is missing or has missing values
        """
        for col, categories in (self.vocabulary or {}).items():
            if col not in df.columns:
                raise ValueError(f"Missing categorical column '{col}'")
            values = df[col]
            if values.isna().any():
                raise ValueError(f"Column '{col}' has missing values")
            observed = set(values.astype(str).unique())
            unknown = sorted(observed - set(categories))
            if unknown:
                raise UnknownCategoryError(col, unknown)

    def encode(self, df: pd.DataFrame) -> pd.DataFrame:
        """Encode the feature columns as a numeric matrix."""
        encoded = {}
        for col in self.feature_columns:
            values = df[col]
            if self.vocabulary and col in self.vocabulary:
                encoded[col] = pd.Categorical(
                    values.astype(str), categories=self.vocabulary[col]
                ).codes
            elif pd.api.types.is_datetime64_any_dtype(values):
                encoded[col] = ((values - EPOCH) // pd.Timedelta(days=1)).to_numpy()
            elif pd.api.types.is_timedelta64_dtype(values):
                encoded[col] = values.dt.total_seconds().to_numpy()
            elif pd.api.types.is_bool_dtype(values) or pd.api.types.is_numeric_dtype(values):
                encoded[col] = values.astype(float).to_numpy()
            else:
                raise ValueError(f"Column '{col}' has unsupported dtype {values.dtype}")
        return pd.DataFrame(encoded, index=df.index)

    # ==========================================================================
    # Train / evaluate
    # ==========================================================================

    def split(self, df: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
        """
        Stratified train/test split on the target.

        Returns:
            (train, test) partitions; together they hold every input row once

        Raises:
            InsufficientDataError: The table cannot be stratified at this ratio
        """
        if self.random_seed is None:
            logger.warning("random_seed is unset; the train/test split is not reproducible")

        if len(df) == 0:
            raise InsufficientDataError("Cannot split an empty table")

        y = df[self.target].astype(str)
        class_counts = y.value_counts()
        too_small = class_counts[class_counts < 2]
        if not too_small.empty:
            raise InsufficientDataError(
                f"Classes with fewer than 2 rows cannot be stratified: {too_small.to_dict()}"
            )

        try:
            train, test = train_test_split(
                df,
                train_size=self.split_ratio,
                stratify=y,
                random_state=self.random_seed,
            )
        except ValueError as e:
            raise InsufficientDataError(f"Cannot stratify {len(df)} rows: {e}") from e

        logger.info(
            f"Split {len(df)} rows into {len(train)} train / {len(test)} test",
            extra={"rows_train": len(train), "rows_test": len(test), "seed": self.random_seed},
        )
        return train.copy(), test.copy()

    def fit(self, train: pd.DataFrame) -> BoroughClassifier:
        """Fit the random forest on the training partition."""
        if self.vocabulary is None:
            self._freeze_vocabulary(train)
        self.validate_features(train)

        self.feature_columns = [c for c in train.columns if c != self.target]
        X = self.encode(train)
        y = train[self.target].astype(str)

        self.model = RandomForestClassifier(
            n_estimators=self.n_estimators,
            random_state=self.random_seed,
        )
        self.model.fit(X, y)

        logger.info(
            f"Fitted {self.n_estimators} trees on {len(train)} rows",
            extra={"features": self.feature_columns},
        )
        return self

    @property
    def feature_importance(self) -> dict[str, float]:
        """Impurity-based importance per feature, highest first."""
        if self.model is None:
            raise ValueError("Classifier has not been fitted")
        pairs = zip(self.feature_columns, self.model.feature_importances_)
        return {col: float(score) for col, score in sorted(pairs, key=lambda p: -p[1])}

    def predict(self, df: pd.DataFrame) -> pd.Series:
        """Predict the target for every row."""
        if self.model is None:
            raise ValueError("Classifier has not been fitted")
        self.validate_features(df)
        predictions = self.model.predict(self.encode(df))
        return pd.Series(
            pd.Categorical(predictions, categories=self.labels),
            index=df.index,
            name=f"predicted_{self.target}",
        )

    def evaluate(self, test: pd.DataFrame) -> tuple[float, pd.DataFrame]:
        """
        Score predictions on the test partition.

        Returns:
            (accuracy, confusion matrix indexed by predicted x actual label)
        """
        if len(test) == 0:
            raise InsufficientDataError("Cannot evaluate on an empty test partition")

        predicted = self.predict(test).astype(str)
        actual = test[self.target].astype(str)

        accuracy = float(accuracy_score(actual, predicted))

        labels = self.labels
        # sklearn orders rows by actual label; transpose to predicted x actual
        matrix = confusion_matrix(actual, predicted, labels=labels).T
        cm = pd.DataFrame(
            matrix,
            index=pd.Index(labels, name="predicted"),
            columns=pd.Index(labels, name="actual"),
        )
        return accuracy, cm

    def run(self, df: pd.DataFrame) -> TrainingResult:
        """
        Split, fit and evaluate.

        Args:
            df: Model table

        Returns:
            TrainingResult; success is False when any step raised
        """
        start_time = time.time()

        logger.info(
            f"Starting borough classifier training on {len(df)} rows",
            extra={"target": self.target, "n_estimators": self.n_estimators},
        )

        try:
            train, test = self.split(df)
            self.fit(train)
            accuracy, cm = self.evaluate(test)

            result = TrainingResult(
                target=self.target,
                rows_train=len(train),
                rows_test=len(test),
                accuracy=accuracy,
                confusion_matrix=cm,
                feature_importance=self.feature_importance,
                random_seed=self.random_seed,
                duration_seconds=time.time() - start_time,
            )

            logger.info(
                f"Training complete: accuracy {accuracy:.4f} on {len(test)} test rows",
                extra={"accuracy": accuracy, "rows_test": len(test)},
            )
            return result

        except Exception as e:
            logger.error(
                f"Training failed: {e}",
                extra={"target": self.target, "error": str(e)},
                exc_info=True,
            )
            return TrainingResult(
                target=self.target,
                rows_train=0,
                rows_test=0,
                random_seed=self.random_seed,
                duration_seconds=time.time() - start_time,
                success=False,
                error_message=str(e),
            )


def diagonal_total(cm: pd.DataFrame) -> int:
    """Number of correct predictions recorded in a confusion matrix."""
    return int(np.trace(cm.to_numpy()))
