"""
Rule Engine — Deterministic Additive Risk Scoring

This is where RULES live. Each factor is evaluated exactly once, adds a fixed
number of points and emits exactly one RiskFactor.

Constraints:
- Deterministic: same profile = byte-identical result
- Named threshold constants (no magic numbers)
- Percentage capped at 95 (never implies certainty)
- Recommendation order: tier opening, factor-triggered, tier closing
- No BMI = explicit MissingBMIError, never a silent score
"""

from dataclasses import dataclass, field
from typing import List

from diabetes_risk.schemas import (
    ActivityLevel,
    AlcoholIntake,
    DietType,
    FactorImpact,
    Gender,
    HealthProfile,
    MissingBMIError,
    RiskFactor,
    RiskLevel,
    SmokingStatus,
    StressLevel,
    YesNo,
    round_half_up,
)


# ============================================================================
# THRESHOLD CONSTANTS
# ============================================================================

AGE_HIGH_RISK = 45
AGE_MODERATE_RISK = 35

BMI_OBESE = 30.0
BMI_OVERWEIGHT = 25.0
BMI_HEALTHY = 18.5

# Percentage divisor; the full point table can exceed it, hence the cap
MAX_SCORE = 120
PERCENTAGE_CAP = 95

# Raw score tiers (inclusive upper bounds)
TIER_LOW_MAX = 30
TIER_MEDIUM_MAX = 60


# ============================================================================
# POINT TABLE
# ============================================================================

AGE_POINTS = {"high": 15, "moderate": 8, "low": 0}
BMI_POINTS = {"obese": 25, "overweight": 15, "healthy": 0, "underweight": 0}
FAMILY_HISTORY_POINTS = {YesNo.YES: 20, YesNo.NO: 0}
ACTIVITY_POINTS = {ActivityLevel.LOW: 15, ActivityLevel.MODERATE: 5, ActivityLevel.HIGH: 0}
DIET_POINTS = {DietType.UNHEALTHY: 15, DietType.BALANCED: 3, DietType.VERY_HEALTHY: 0}
SMOKING_POINTS = {
    SmokingStatus.SMOKER: 12,
    SmokingStatus.FORMER_SMOKER: 3,
    SmokingStatus.NON_SMOKER: 0,
}
ALCOHOL_POINTS = {AlcoholIntake.YES: 8, AlcoholIntake.OCCASIONAL: 2, AlcoholIntake.NO: 0}
STRESS_POINTS = {StressLevel.HIGH: 10, StressLevel.MEDIUM: 4, StressLevel.LOW: 0}
HYPERTENSION_POINTS = {YesNo.YES: 15, YesNo.NO: 0}
GENDER_POINTS = {Gender.MALE: 2, Gender.FEMALE: 0}


# ============================================================================
# TIER RECOMMENDATIONS
# ============================================================================

OPENING_RECOMMENDATION = {
    RiskLevel.LOW: "Maintain your current healthy lifestyle habits",
    RiskLevel.MEDIUM: "Schedule a consultation with your healthcare provider within 6 months",
    RiskLevel.HIGH: "Schedule an urgent consultation with your healthcare provider",
}

CLOSING_RECOMMENDATION = {
    RiskLevel.LOW: "Continue regular health check-ups every 2-3 years",
    RiskLevel.MEDIUM: "Consider annual diabetes screening",
    RiskLevel.HIGH: "Request comprehensive diabetes screening including HbA1c and fasting glucose tests",
}


@dataclass
class FactorOutcome:
    """Points, explanation and advice produced by one factor."""
    points: int
    factor: RiskFactor
    recommendations: List[str] = field(default_factory=list)


@dataclass
class RuleScore:
    """Complete rule-based assessment."""
    raw_score: int
    risk_level: RiskLevel
    risk_percentage: int
    factors: List[RiskFactor]
    recommendations: List[str]


def classify_score(raw_score: int) -> RiskLevel:
    """Map a raw point total to a tier."""
    if raw_score <= TIER_LOW_MAX:
        return RiskLevel.LOW
    elif raw_score <= TIER_MEDIUM_MAX:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.HIGH


def score_to_percentage(raw_score: int) -> int:
    """Scale to 0-100 and cap at PERCENTAGE_CAP."""
    return int(min(round_half_up(raw_score / MAX_SCORE * 100), PERCENTAGE_CAP))


def _format_number(value: float) -> str:
    return f"{value:g}"


def _factor(name: str, impact: FactorImpact, description: str) -> RiskFactor:
    return RiskFactor(name=name, impact=impact, description=description)


class RuleEngine:
    """
    Additive point-based diabetes risk scorer.

    Pure deterministic logic. Factors are independent and never interact.
    """

    def evaluate_factors(self, profile: HealthProfile) -> List[FactorOutcome]:
        """
        Evaluate every factor in fixed order.

        Raises:
            MissingBMIError: If the profile has no derivable BMI
        """
        if profile.bmi is None:
            raise MissingBMIError("Cannot score without BMI")

        return [
            self._age(profile.age),
            self._bmi(profile.bmi),
            self._family_history(profile.family_history),
            self._physical_activity(profile.physical_activity),
            self._diet(profile.diet_type),
            self._smoking(profile.smoking_status),
            self._alcohol(profile.alcohol_intake),
            self._stress(profile.stress_level),
            self._hypertension(profile.hypertension),
            self._gender(profile.gender),
        ]

    def score(self, profile: HealthProfile) -> RuleScore:
        """
        Full rule-based assessment.

        Args:
            profile: Validated health profile

        Returns:
            RuleScore with raw score, tier, capped percentage, factors and
            recommendations
        """
        outcomes = self.evaluate_factors(profile)

        raw_score = sum(o.points for o in outcomes)
        risk_level = classify_score(raw_score)

        return RuleScore(
            raw_score=raw_score,
            risk_level=risk_level,
            risk_percentage=score_to_percentage(raw_score),
            factors=[o.factor for o in outcomes],
            recommendations=self._assemble(outcomes, risk_level),
        )

    def factors(self, profile: HealthProfile) -> List[RiskFactor]:
        """Factors only; used when another model decided the tier."""
        return [o.factor for o in self.evaluate_factors(profile)]

    def recommendations(self, profile: HealthProfile, risk_level: RiskLevel) -> List[str]:
        """Recommendations framed by an externally decided tier."""
        return self._assemble(self.evaluate_factors(profile), risk_level)

    def _assemble(self, outcomes: List[FactorOutcome], risk_level: RiskLevel) -> List[str]:
        recommendations = [OPENING_RECOMMENDATION[risk_level]]
        for outcome in outcomes:
            recommendations.extend(outcome.recommendations)
        recommendations.append(CLOSING_RECOMMENDATION[risk_level])
        return recommendations

    # ------------------------------------------------------------------
    # Factors
    # ------------------------------------------------------------------

    def _age(self, age: int) -> FactorOutcome:
        if age >= AGE_HIGH_RISK:
            return FactorOutcome(AGE_POINTS["high"], _factor(
                "Age Factor", FactorImpact.NEGATIVE,
                f"Age {age} increases diabetes risk significantly after {AGE_HIGH_RISK}"
            ))
        elif age >= AGE_MODERATE_RISK:
            return FactorOutcome(AGE_POINTS["moderate"], _factor(
                "Age Factor", FactorImpact.NEGATIVE,
                f"Age {age} shows moderate increased risk"
            ))
        return FactorOutcome(AGE_POINTS["low"], _factor(
            "Age Factor", FactorImpact.POSITIVE,
            f"Age {age} is associated with lower diabetes risk"
        ))

    def _bmi(self, bmi: float) -> FactorOutcome:
        shown = _format_number(bmi)
        if bmi >= BMI_OBESE:
            return FactorOutcome(
                BMI_POINTS["obese"],
                _factor(
                    "BMI (Obesity)", FactorImpact.NEGATIVE,
                    f"BMI of {shown} indicates obesity, a major diabetes risk factor"
                ),
                [
                    "Work with a healthcare provider to develop a sustainable weight management plan",
                    "Consider consulting with a registered dietitian for personalized nutrition guidance",
                ],
            )
        elif bmi >= BMI_OVERWEIGHT:
            return FactorOutcome(
                BMI_POINTS["overweight"],
                _factor(
                    "BMI (Overweight)", FactorImpact.NEGATIVE,
                    f"BMI of {shown} indicates overweight status, increasing diabetes risk"
                ),
                ["Aim for gradual weight loss through balanced diet and regular exercise"],
            )
        elif bmi >= BMI_HEALTHY:
            return FactorOutcome(BMI_POINTS["healthy"], _factor(
                "BMI (Healthy)", FactorImpact.POSITIVE,
                f"BMI of {shown} is in the healthy range, reducing diabetes risk"
            ))
        return FactorOutcome(BMI_POINTS["underweight"], _factor(
            "BMI (Underweight)", FactorImpact.NEUTRAL,
            f"BMI of {shown} is below normal range"
        ))

    def _family_history(self, value: YesNo) -> FactorOutcome:
        if value == YesNo.YES:
            return FactorOutcome(
                FAMILY_HISTORY_POINTS[value],
                _factor(
                    "Family History", FactorImpact.NEGATIVE,
                    "Family history of diabetes significantly increases your risk"
                ),
                ["Schedule regular diabetes screenings with your healthcare provider"],
            )
        return FactorOutcome(FAMILY_HISTORY_POINTS[value], _factor(
            "Family History", FactorImpact.POSITIVE,
            "No family history of diabetes reduces your overall risk"
        ))

    def _physical_activity(self, value: ActivityLevel) -> FactorOutcome:
        points = ACTIVITY_POINTS[value]
        if value == ActivityLevel.LOW:
            return FactorOutcome(
                points,
                _factor(
                    "Physical Activity", FactorImpact.NEGATIVE,
                    "Low physical activity increases diabetes risk"
                ),
                [
                    "Aim for at least 150 minutes of moderate-intensity exercise per week",
                    "Start with short walks and gradually increase activity level",
                ],
            )
        elif value == ActivityLevel.MODERATE:
            return FactorOutcome(
                points,
                _factor(
                    "Physical Activity", FactorImpact.NEUTRAL,
                    "Moderate activity level provides some protection against diabetes"
                ),
                ["Consider increasing to high activity level for maximum health benefits"],
            )
        return FactorOutcome(points, _factor(
            "Physical Activity", FactorImpact.POSITIVE,
            "High physical activity significantly reduces diabetes risk"
        ))

    def _diet(self, value: DietType) -> FactorOutcome:
        points = DIET_POINTS[value]
        if value == DietType.UNHEALTHY:
            return FactorOutcome(
                points,
                _factor(
                    "Diet Quality", FactorImpact.NEGATIVE,
                    "Unhealthy diet with high sugar and processed foods increases risk"
                ),
                [
                    "Focus on whole foods: vegetables, lean proteins, whole grains, and healthy fats",
                    "Limit sugary drinks, processed foods, and refined carbohydrates",
                ],
            )
        elif value == DietType.BALANCED:
            return FactorOutcome(
                points,
                _factor(
                    "Diet Quality", FactorImpact.NEUTRAL,
                    "Balanced diet provides moderate protection against diabetes"
                ),
                ["Continue maintaining a balanced diet with plenty of vegetables and whole grains"],
            )
        return FactorOutcome(points, _factor(
            "Diet Quality", FactorImpact.POSITIVE,
            "Very healthy diet significantly reduces diabetes risk"
        ))

    def _smoking(self, value: SmokingStatus) -> FactorOutcome:
        points = SMOKING_POINTS[value]
        if value == SmokingStatus.SMOKER:
            return FactorOutcome(
                points,
                _factor(
                    "Smoking Status", FactorImpact.NEGATIVE,
                    "Current smoking increases diabetes risk and complications"
                ),
                ["Consider smoking cessation programs - quitting reduces diabetes risk within years"],
            )
        elif value == SmokingStatus.FORMER_SMOKER:
            return FactorOutcome(points, _factor(
                "Smoking Status", FactorImpact.NEUTRAL,
                "Former smoking status has reduced impact on current diabetes risk"
            ))
        return FactorOutcome(points, _factor(
            "Smoking Status", FactorImpact.POSITIVE,
            "Non-smoking status reduces diabetes and cardiovascular risks"
        ))

    def _alcohol(self, value: AlcoholIntake) -> FactorOutcome:
        points = ALCOHOL_POINTS[value]
        if value == AlcoholIntake.YES:
            return FactorOutcome(
                points,
                _factor(
                    "Alcohol Consumption", FactorImpact.NEGATIVE,
                    "Regular alcohol consumption can affect blood sugar control"
                ),
                ["Consider reducing alcohol intake to moderate levels or eliminating entirely"],
            )
        elif value == AlcoholIntake.OCCASIONAL:
            return FactorOutcome(points, _factor(
                "Alcohol Consumption", FactorImpact.NEUTRAL,
                "Occasional alcohol consumption has minimal impact on diabetes risk"
            ))
        return FactorOutcome(points, _factor(
            "Alcohol Consumption", FactorImpact.POSITIVE,
            "No alcohol consumption reduces diabetes risk factors"
        ))

    def _stress(self, value: StressLevel) -> FactorOutcome:
        points = STRESS_POINTS[value]
        if value == StressLevel.HIGH:
            return FactorOutcome(
                points,
                _factor(
                    "Stress Level", FactorImpact.NEGATIVE,
                    "High chronic stress can affect blood sugar regulation"
                ),
                [
                    "Practice stress management techniques like meditation, yoga, or deep breathing",
                    "Consider counseling or therapy if stress feels overwhelming",
                ],
            )
        elif value == StressLevel.MEDIUM:
            return FactorOutcome(
                points,
                _factor(
                    "Stress Level", FactorImpact.NEUTRAL,
                    "Medium stress levels have moderate impact on diabetes risk"
                ),
                ["Implement regular stress-reduction activities in your routine"],
            )
        return FactorOutcome(points, _factor(
            "Stress Level", FactorImpact.POSITIVE,
            "Low stress levels support healthy blood sugar regulation"
        ))

    def _hypertension(self, value: YesNo) -> FactorOutcome:
        if value == YesNo.YES:
            return FactorOutcome(
                HYPERTENSION_POINTS[value],
                _factor(
                    "Hypertension", FactorImpact.NEGATIVE,
                    "High blood pressure significantly increases diabetes risk"
                ),
                [
                    "Work closely with your healthcare provider to manage blood pressure",
                    "Follow a DASH diet (low sodium, high potassium) for blood pressure control",
                ],
            )
        return FactorOutcome(HYPERTENSION_POINTS[value], _factor(
            "Blood Pressure", FactorImpact.POSITIVE,
            "Normal blood pressure reduces diabetes and cardiovascular risks"
        ))

    def _gender(self, value: Gender) -> FactorOutcome:
        if value == Gender.MALE:
            return FactorOutcome(GENDER_POINTS[value], _factor(
                "Gender", FactorImpact.NEGATIVE,
                "Male sex is associated with a slightly higher diabetes risk"
            ))
        return FactorOutcome(GENDER_POINTS[value], _factor(
            "Gender", FactorImpact.NEUTRAL,
            "Female sex has no additional effect on this risk score"
        ))
