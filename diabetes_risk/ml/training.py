"""
Serving Trainer — One-Shot Startup Training

Produces the ServingContext: the only state shared across requests.

Constraints:
- Trained once, before serving begins
- Ordered 80/20 split (no shuffling), accuracy on the 20% holdout
- Context is frozen and only returned after the final iteration, so no
  caller can observe a partially trained model
- Never persisted
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from diabetes_risk.features.encoder import FeatureEncoder, NormalizationStats, VOCABULARY_VERSION
from diabetes_risk.ml.classifier import LinearClassifier, TrainedModel, DEFAULT_LEARNING_RATE
from diabetes_risk.ml.dataset import DatasetProcessor


logger = logging.getLogger(__name__)


SERVING_ITERATIONS = 2000
DEFAULT_TRAIN_SPLIT = 0.8


@dataclass(frozen=True)
class ServingContext:
    """Read-only model state handed to request handlers."""
    model: TrainedModel
    stats: NormalizationStats
    include_clinical: bool
    dataset_size: int
    valid_rows: int
    invalid_rows: int
    diabetes_rate: float
    vocabulary_version: str = VOCABULARY_VERSION
    trained_at: Optional[datetime] = None

    @property
    def accuracy(self) -> Optional[float]:
        return self.model.accuracy

    def encoder(self) -> FeatureEncoder:
        """Encoder configured exactly as it was during training."""
        return FeatureEncoder(stats=self.stats, include_clinical=self.include_clinical)


def build_serving_context(
    rows: Sequence[Mapping[str, Any]],
    learning_rate: float = DEFAULT_LEARNING_RATE,
    iterations: int = SERVING_ITERATIONS,
    train_split: float = DEFAULT_TRAIN_SPLIT,
) -> ServingContext:
    """
    Process a dataset, train the classifier and measure holdout accuracy.

    Args:
        rows: Raw dataset records
        learning_rate: Gradient descent step size
        iterations: Exact number of gradient steps
        train_split: Leading fraction of valid rows used for training

    Returns:
        ServingContext ready to be published

    Raises:
        DatasetError: If the dataset has no valid rows
        TrainingError: If the training slice is empty
    """
    processed = DatasetProcessor().fit(rows)

    split_index = int(processed.valid_rows * train_split)
    train_x, train_y = processed.features[:split_index], processed.labels[:split_index]
    test_x, test_y = processed.features[split_index:], processed.labels[split_index:]

    logger.info(f"[Trainer] Training model on {len(train_x)} samples, holding out {len(test_x)}...")

    classifier = LinearClassifier(learning_rate=learning_rate, iterations=iterations)
    model = classifier.train(train_x, train_y, feature_names=processed.feature_names)

    accuracy = classifier.accuracy(test_x, test_y, model)
    model = model.model_copy(update={"accuracy": accuracy})

    if accuracy is None:
        logger.warning("[Trainer] Empty holdout set — accuracy unknown")
    else:
        logger.info(f"[Trainer] Model trained with {accuracy:.2f}% accuracy")

    return ServingContext(
        model=model,
        stats=processed.stats,
        include_clinical=processed.include_clinical,
        dataset_size=processed.total_rows,
        valid_rows=processed.valid_rows,
        invalid_rows=processed.invalid_rows,
        diabetes_rate=processed.diabetes_rate,
        trained_at=datetime.now(timezone.utc),
    )
