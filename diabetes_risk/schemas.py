"""
Core Schemas — Health Profile & Risk Result Contracts

The only types that cross the boundary between the risk-inference core and
its collaborators (form, results page, HTTP clients).

Constraints:
- bmi: REJECTED if provided by client (derived from height + weight)
- bmi is rounded half-up to 1 decimal place
- Profiles are immutable once submitted
- Wire names are camelCase (familyHistory, riskLevel, ...)
"""

import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel


class MissingBMIError(ValueError):
    """Raised when a profile reaches scoring without height and weight."""
    pass


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 going up, matching the browser's Math.round."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def compute_bmi(height_cm: float, weight_kg: float) -> float:
    """
    Compute Body Mass Index.

    Formula: BMI = weight / (height / 100)^2

    Args:
        height_cm: Height in centimetres
        weight_kg: Weight in kilograms

    Returns:
        BMI rounded to 1 decimal place
    """
    height_m = height_cm / 100.0
    return round_half_up(weight_kg / (height_m ** 2), 1)


# ============================================================================
# Form Vocabulary Enums
# ============================================================================

class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class YesNo(str, Enum):
    YES = "Yes"
    NO = "No"


class ActivityLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class DietType(str, Enum):
    VERY_HEALTHY = "Very Healthy"
    BALANCED = "Balanced"
    UNHEALTHY = "Unhealthy"


class SmokingStatus(str, Enum):
    SMOKER = "Smoker"
    NON_SMOKER = "Non-Smoker"
    FORMER_SMOKER = "Former Smoker"


class AlcoholIntake(str, Enum):
    YES = "Yes"
    NO = "No"
    OCCASIONAL = "Occasional"


class StressLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RiskLevel(str, Enum):
    """Risk tier shared by both models."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class FactorImpact(str, Enum):
    """Direction of a factor: positive = protective, negative = risk-increasing."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ModelUsed(str, Enum):
    TRAINED = "trained"
    RULE_BASED = "rule-based"


# ============================================================================
# Input
# ============================================================================

class HealthProfile(BaseModel):
    """
    Validated health profile submitted for assessment.

    Note: bmi is NOT accepted from clients - it's derived from height and weight.
    The clinical fields are optional and only feed the trained model.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    age: int = Field(..., ge=1, le=120, description="Age in years")
    gender: Gender
    height: Optional[float] = Field(default=None, ge=50, le=250, description="Height in cm")
    weight: Optional[float] = Field(default=None, ge=20, le=300, description="Weight in kg")

    family_history: YesNo
    physical_activity: ActivityLevel
    diet_type: DietType
    smoking_status: SmokingStatus
    alcohol_intake: AlcoholIntake
    stress_level: StressLevel
    hypertension: YesNo

    cholesterol_level: Optional[float] = Field(default=None, gt=0)
    fasting_blood_sugar: Optional[float] = Field(default=None, gt=0)
    hba1c: Optional[float] = Field(default=None, gt=0)
    heart_rate: Optional[float] = Field(default=None, gt=0)
    waist_hip_ratio: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode='before')
    @classmethod
    def reject_bmi(cls, data):
        """Reject payloads that carry their own bmi."""
        if isinstance(data, dict) and data.get("bmi") is not None:
            raise ValueError(
                "bmi must not be provided by client. "
                "Server derives it from weight / (height / 100)^2"
            )
        return data

    @computed_field
    @property
    def bmi(self) -> Optional[float]:
        if self.height is None or self.weight is None:
            return None
        return compute_bmi(self.height, self.weight)


# ============================================================================
# Output
# ============================================================================

class RiskFactor(BaseModel):
    """One human-readable contributing factor."""
    name: str
    impact: FactorImpact
    description: str


class RiskResult(BaseModel):
    """
    Unified assessment result, whichever model produced the score.

    Output guarantees:
    - factors are always derived from the rule table
    - riskPercentage is an integer in [0, 100]
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    risk_level: RiskLevel
    risk_percentage: int = Field(..., ge=0, le=100)
    factors: List[RiskFactor] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    model_used: ModelUsed


class PredictionResponse(BaseModel):
    """
    Trained-model service reply.

    The service answers with the tier and percentage it derived from the
    model probability; accuracy is optional metadata.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    risk_level: RiskLevel
    risk_percentage: int = Field(..., ge=0, le=100)
    risk_probability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    model_used: ModelUsed = ModelUsed.TRAINED
    accuracy: Optional[float] = Field(default=None, ge=0, le=100)
