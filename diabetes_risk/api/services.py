"""
API Services — Startup Training & Orchestrator Wiring

Handles the one-shot training step and picks the trained-model scorer.
"""

import logging
from typing import Optional

from diabetes_risk.config import Settings
from diabetes_risk.orchestrator import LocalModelScorer, RemoteScorer, RiskOrchestrator


logger = logging.getLogger(__name__)


def train_serving_context(config: Settings):
    """
    Load the configured dataset and train the serving model.

    Training failure is not fatal: the service then answers rule-based only.

    Args:
        config: Application settings

    Returns:
        ServingContext, or None if the dataset is missing or unusable
    """
    from diabetes_risk.ml.classifier import TrainingError
    from diabetes_risk.ml.dataset import DatasetError, load_dataset
    from diabetes_risk.ml.training import build_serving_context

    try:
        rows = load_dataset(config.DATASET_PATH)
        return build_serving_context(
            rows,
            learning_rate=config.LEARNING_RATE,
            iterations=config.TRAINING_ITERATIONS,
            train_split=config.TRAIN_SPLIT,
        )
    except (DatasetError, TrainingError) as e:
        logger.error(f"Error training model: {e}")
        return None


def build_orchestrator(config: Settings, context) -> RiskOrchestrator:
    """
    Wire the orchestrator for this process.

    SCORING_SERVICE_URL set -> remote trained-model service;
    otherwise the in-process model (which may be None = not ready).
    """
    if config.SCORING_SERVICE_URL:
        logger.info(f"🔗 Trained-model service: {config.SCORING_SERVICE_URL}")
        scorer = RemoteScorer(config.SCORING_SERVICE_URL, timeout=config.REMOTE_TIMEOUT_SECONDS)
    else:
        scorer = LocalModelScorer(context)
    return RiskOrchestrator(scorer=scorer)


def describe_context(context) -> Optional[str]:
    if context is None:
        return None
    accuracy = "unknown" if context.accuracy is None else f"{context.accuracy:.2f}%"
    return f"{context.valid_rows}/{context.dataset_size} rows, accuracy {accuracy}"
