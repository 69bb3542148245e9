"""
Rules Module — Rule-Based Risk Scoring

Public API:
- RuleEngine: Additive point scoring, factors and recommendations
- RuleScore: Complete rule-based assessment
- classify_score / score_to_percentage: Tier and percentage mapping
"""

from .engine import (
    RuleEngine,
    RuleScore,
    FactorOutcome,
    classify_score,
    score_to_percentage,
    MAX_SCORE,
    PERCENTAGE_CAP,
    TIER_LOW_MAX,
    TIER_MEDIUM_MAX,
    OPENING_RECOMMENDATION,
    CLOSING_RECOMMENDATION,
)

__all__ = [
    "RuleEngine",
    "RuleScore",
    "FactorOutcome",
    "classify_score",
    "score_to_percentage",
    "MAX_SCORE",
    "PERCENTAGE_CAP",
    "TIER_LOW_MAX",
    "TIER_MEDIUM_MAX",
    "OPENING_RECOMMENDATION",
    "CLOSING_RECOMMENDATION",
]
