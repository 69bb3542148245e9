"""
Risk Orchestrator — Per-Request Model Selection

ATTEMPT_TRAINED -> done                  (scorer succeeded)
ATTEMPT_TRAINED -> FALLBACK_RULE_BASED   (any scorer failure)

Guarantees:
- Exactly one branch decides riskLevel / riskPercentage
- Factors are ALWAYS rule-derived, whichever branch scored
- At most one trained-model attempt, no retries
- Recommendations open with a notice naming the model basis
"""

import logging
from typing import Optional

from diabetes_risk.orchestrator.scorers import Scorer, ScoreOutcome
from diabetes_risk.rules.engine import RuleEngine
from diabetes_risk.schemas import (
    HealthProfile,
    MissingBMIError,
    ModelUsed,
    RiskResult,
)


logger = logging.getLogger(__name__)


TRAINED_NOTICE = "Prediction made using trained ML model ({accuracy})"
RULE_BASED_NOTICE = "Prediction made using rule-based algorithm"


def format_accuracy(accuracy: Optional[float]) -> str:
    if accuracy is None:
        return "accuracy unknown"
    return f"{accuracy:.1f}% accuracy"


class RiskOrchestrator:
    """
    Sole entry point of the core: evaluate(profile) -> RiskResult.

    Holds no per-request state; safe to share across requests.
    """

    def __init__(
        self,
        scorer: Optional[Scorer] = None,
        rule_engine: Optional[RuleEngine] = None
    ):
        """
        Args:
            scorer: Trained-model scorer (remote or local). None = rule-based only.
            rule_engine: Rule engine for factors and fallback
        """
        self.scorer = scorer
        self.rule_engine = rule_engine or RuleEngine()

    def evaluate(self, profile: HealthProfile) -> RiskResult:
        """
        Assess a profile.

        Raises:
            MissingBMIError: If the profile has no height/weight
        """
        if profile.bmi is None:
            raise MissingBMIError("Cannot score without BMI")

        outcome = self._attempt_trained(profile)

        if outcome.ok:
            return self._trained_result(profile, outcome)

        logger.warning(f"[Orchestrator] Trained model unavailable ({outcome.reason}); using rule-based")
        return self._rule_based_result(profile)

    def _attempt_trained(self, profile: HealthProfile) -> ScoreOutcome:
        if self.scorer is None:
            return ScoreOutcome.failure("No trained-model scorer configured")
        return self.scorer.score(profile)

    def _trained_result(self, profile: HealthProfile, outcome: ScoreOutcome) -> RiskResult:
        recommendations = self.rule_engine.recommendations(profile, outcome.risk_level)
        return RiskResult(
            risk_level=outcome.risk_level,
            risk_percentage=outcome.risk_percentage,
            factors=self.rule_engine.factors(profile),
            recommendations=[
                TRAINED_NOTICE.format(accuracy=format_accuracy(outcome.accuracy)),
                *recommendations,
            ],
            model_used=ModelUsed.TRAINED,
        )

    def _rule_based_result(self, profile: HealthProfile) -> RiskResult:
        rule_score = self.rule_engine.score(profile)
        return RiskResult(
            risk_level=rule_score.risk_level,
            risk_percentage=rule_score.risk_percentage,
            factors=rule_score.factors,
            recommendations=[RULE_BASED_NOTICE, *rule_score.recommendations],
            model_used=ModelUsed.RULE_BASED,
        )
