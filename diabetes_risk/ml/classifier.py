"""
Linear Classifier — Logistic Regression by Batch Gradient Descent

Training and inference over encoded feature vectors.

Constraints:
- Full-batch gradient descent, zero-initialised weights
- Gradient is the plain residual e = sigmoid(w·x+b) - y (not cross-entropy
  weighted); kept as-is for parity with previously trained models
- No regularization, no convergence check: exactly `iterations` steps
- predict() is pure: dot product + bias, sigmoid
- Model is immutable once trained
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from diabetes_risk.schemas import RiskLevel, round_half_up


logger = logging.getLogger(__name__)


DEFAULT_LEARNING_RATE = 0.01
DEFAULT_ITERATIONS = 1000

# Probability tiers
PROBABILITY_LOW_MAX = 0.3     # Below this = Low
PROBABILITY_MEDIUM_MAX = 0.7  # Below this = Medium

# Holdout classification cut-off
DECISION_THRESHOLD = 0.5


class TrainingError(Exception):
    """Raised when training input is empty or malformed."""
    pass


class TrainedModel(BaseModel):
    """Weights + bias produced by training. Never mutated after publication."""
    model_config = ConfigDict(frozen=True)

    weights: List[float]
    bias: float
    accuracy: Optional[float] = Field(default=None, ge=0, le=100, description="Holdout accuracy (%)")
    feature_names: List[str] = Field(default_factory=list)

    @property
    def feature_count(self) -> int:
        return len(self.weights)


def sigmoid(x):
    """Logistic function; works on scalars and numpy arrays."""
    return 1.0 / (1.0 + np.exp(-x))


def probability_to_risk_level(probability: float) -> RiskLevel:
    """Map a model probability to a tier (<0.3 Low, <0.7 Medium, else High)."""
    if probability < PROBABILITY_LOW_MAX:
        return RiskLevel.LOW
    elif probability < PROBABILITY_MEDIUM_MAX:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.HIGH


def probability_to_percentage(probability: float) -> int:
    return int(round_half_up(probability * 100))


class LinearClassifier:
    """
    Logistic-regression primitive.

    Holds hyperparameters only; the learned state lives in TrainedModel.
    """

    def __init__(
        self,
        learning_rate: float = DEFAULT_LEARNING_RATE,
        iterations: int = DEFAULT_ITERATIONS
    ):
        self.learning_rate = learning_rate
        self.iterations = iterations

    def train(
        self,
        features: Sequence[Sequence[float]],
        labels: Sequence[float],
        learning_rate: Optional[float] = None,
        iterations: Optional[int] = None,
        feature_names: Optional[List[str]] = None,
    ) -> TrainedModel:
        """
        Fit weights and bias by batch gradient descent.

        For every iteration:
            e_i  = sigmoid(w·x_i + b) - y_i
            w_j -= lr * Σ(e_i * x_ij) / N
            b   -= lr * Σ(e_i) / N

        Args:
            features: N x F matrix of encoded vectors
            labels: N binary labels
            learning_rate: Overrides the instance default
            iterations: Overrides the instance default
            feature_names: Recorded on the model for auditing

        Returns:
            TrainedModel (accuracy unset)

        Raises:
            TrainingError: If there are no samples or shapes disagree
        """
        lr = self.learning_rate if learning_rate is None else learning_rate
        n_iter = self.iterations if iterations is None else iterations

        if len(features) == 0:
            raise TrainingError("Cannot train on an empty feature set")

        try:
            X = np.asarray(features, dtype=float)
        except ValueError as e:
            raise TrainingError(f"Ragged feature matrix: {e}") from e
        y = np.asarray(labels, dtype=float)

        if X.ndim != 2:
            raise TrainingError(f"Expected a 2-D feature matrix, got shape {X.shape}")
        if y.shape[0] != X.shape[0]:
            raise TrainingError(
                f"Label count {y.shape[0]} does not match sample count {X.shape[0]}"
            )

        n_samples, n_features = X.shape
        weights = np.zeros(n_features)
        bias = 0.0

        for _ in range(n_iter):
            predictions = sigmoid(X @ weights + bias)
            errors = predictions - y

            weights -= lr * (X.T @ errors) / n_samples
            bias -= lr * float(errors.sum()) / n_samples

        logger.info(
            f"[Classifier] Trained on {n_samples} samples x {n_features} features "
            f"({n_iter} iterations, lr={lr})"
        )

        return TrainedModel(
            weights=weights.tolist(),
            bias=bias,
            feature_names=list(feature_names or []),
        )

    @staticmethod
    def predict(features: Sequence[float], model: TrainedModel) -> float:
        """
        Probability for one encoded vector.

        Raises:
            ValueError: If the vector length differs from the model's
        """
        if len(features) != model.feature_count:
            raise ValueError(
                f"Expected {model.feature_count} features, got {len(features)}"
            )
        logit = float(np.dot(np.asarray(features, dtype=float), np.asarray(model.weights))) + model.bias
        return float(sigmoid(logit))

    def accuracy(
        self,
        features: Sequence[Sequence[float]],
        labels: Sequence[float],
        model: TrainedModel
    ) -> Optional[float]:
        """Percentage of samples classified correctly at DECISION_THRESHOLD."""
        if len(features) == 0:
            return None
        correct = 0
        for x, label in zip(features, labels):
            predicted = 1 if self.predict(x, model) > DECISION_THRESHOLD else 0
            if predicted == int(label):
                correct += 1
        return correct / len(features) * 100
