"""
Orchestrator Module — Model Selection Protocol

Public API:
- RiskOrchestrator: evaluate(profile) -> RiskResult
- Scorer, RemoteScorer, LocalModelScorer: Trained-model variants
- ScoreOutcome: Explicit success/failure result
"""

from .orchestrator import (
    RiskOrchestrator,
    RULE_BASED_NOTICE,
    TRAINED_NOTICE,
    format_accuracy,
)
from .scorers import (
    Scorer,
    ScoreOutcome,
    RemoteScorer,
    LocalModelScorer,
    DEFAULT_REMOTE_TIMEOUT_SECONDS,
    MODEL_NOT_READY,
)

__all__ = [
    "RiskOrchestrator",
    "RULE_BASED_NOTICE",
    "TRAINED_NOTICE",
    "format_accuracy",
    "Scorer",
    "ScoreOutcome",
    "RemoteScorer",
    "LocalModelScorer",
    "DEFAULT_REMOTE_TIMEOUT_SECONDS",
    "MODEL_NOT_READY",
]
