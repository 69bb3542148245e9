"""
ML Module — Trained Model Components

Public API:
- LinearClassifier, TrainedModel: Logistic regression by gradient descent
- DatasetProcessor, ProcessedDataset, load_dataset: Training data preparation
- ServingContext, build_serving_context: One-shot startup training

Submodules are lazy-loaded on first attribute access, so only the
submodules a caller actually uses get imported. The orchestrator and API
import the classifier directly, so numpy is loaded whenever they are.
"""


def __getattr__(name):
    """Lazy-load ML classes on first access to avoid heavy imports at startup."""
    _classifier_exports = {
        "LinearClassifier", "TrainedModel", "TrainingError", "sigmoid",
        "probability_to_risk_level", "probability_to_percentage",
    }
    _dataset_exports = {
        "DatasetProcessor", "ProcessedDataset", "DatasetError", "load_dataset",
        "is_valid_row",
    }
    _training_exports = {
        "ServingContext", "build_serving_context", "SERVING_ITERATIONS",
    }

    if name in _classifier_exports:
        from . import classifier
        return getattr(classifier, name)
    if name in _dataset_exports:
        from . import dataset
        return getattr(dataset, name)
    if name in _training_exports:
        from . import training
        return getattr(training, name)

    raise AttributeError(f"module 'diabetes_risk.ml' has no attribute {name!r}")


__all__ = [
    "LinearClassifier",
    "TrainedModel",
    "TrainingError",
    "sigmoid",
    "probability_to_risk_level",
    "probability_to_percentage",
    "DatasetProcessor",
    "ProcessedDataset",
    "DatasetError",
    "load_dataset",
    "is_valid_row",
    "ServingContext",
    "build_serving_context",
    "SERVING_ITERATIONS",
]
