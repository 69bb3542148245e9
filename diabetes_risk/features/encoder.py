"""
Feature Encoder — Profile to Fixed-Order Numeric Vector

Single source of truth for category -> code mappings. The dataset processor
and every inference path encode through the same `encode_record`, so the
training and serving vectors cannot drift apart.

Constraints:
- Fixed order: 10 features, or 15 with the clinical tail
- Form vocabulary is remapped to dataset vocabulary BEFORE code lookup
- Unknown category values encode to 0 (lossy, logged, never raised)
- Normalization substitutes std=1 when std=0
- Missing clinical values encode to 0 (the training mean)
"""

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field

from diabetes_risk.schemas import HealthProfile, MissingBMIError


logger = logging.getLogger(__name__)


# ============================================================================
# Feature Layout
# ============================================================================

CONTINUOUS_FIELDS = ["Age", "BMI"]

CLINICAL_FIELDS = [
    "Cholesterol_Level",
    "Fasting_Blood_Sugar",
    "HBA1C",
    "Heart_Rate",
    "Waist_Hip_Ratio",
]

CATEGORICAL_FIELDS = [
    "Gender",
    "Family_History",
    "Physical_Activity",
    "Diet_Type",
    "Smoking_Status",
    "Alcohol_Intake",
    "Stress_Level",
    "Hypertension",
]

FEATURE_NAMES = [
    "Age",
    "Gender",
    "BMI",
    "Family_History",
    "Physical_Activity",
    "Diet_Type",
    "Smoking_Status",
    "Alcohol_Intake",
    "Stress_Level",
    "Hypertension",
]

LABEL_FIELD = "Diabetes"


# ============================================================================
# Vocabulary & Code Tables
# ============================================================================

# Bump when any table below changes; a model trained under another version
# must not be served.
VOCABULARY_VERSION = "2"

_BINARY = {"No": 0, "Yes": 1}
_ORDINAL_LEVEL = {"Low": 0, "Medium": 1, "High": 2}

CODE_TABLES: Dict[str, Dict[str, float]] = {
    "Gender": {"Female": 0, "Male": 1, "Other": 0.5},
    "Family_History": _BINARY,
    "Physical_Activity": _ORDINAL_LEVEL,
    "Diet_Type": {"Non-Vegetarian": 0, "Vegetarian": 1, "Vegan": 2},
    "Smoking_Status": {"Never": 0, "Former": 1, "Current": 2},
    "Alcohol_Intake": {"None": 0, "Moderate": 1, "High": 2},
    "Stress_Level": _ORDINAL_LEVEL,
    "Hypertension": _BINARY,
    LABEL_FIELD: _BINARY,
}

# Form vocabulary -> dataset vocabulary. Fields not listed share one vocabulary.
FORM_TO_DATASET: Dict[str, Dict[str, str]] = {
    "Physical_Activity": {
        "Moderate": "Medium",
    },
    "Diet_Type": {
        "Very Healthy": "Vegan",
        "Balanced": "Vegetarian",
        "Unhealthy": "Non-Vegetarian",
    },
    "Smoking_Status": {
        "Smoker": "Current",
        "Former Smoker": "Former",
        "Non-Smoker": "Never",
    },
    "Alcohol_Intake": {
        "Yes": "High",
        "Occasional": "Moderate",
        "No": "None",
    },
}


def to_dataset_value(field: str, value: str) -> str:
    """Translate a form value into the dataset vocabulary (identity if unmapped)."""
    return FORM_TO_DATASET.get(field, {}).get(value, value)


def encode_category(field: str, value: Any) -> float:
    """Look up the code for a dataset-vocabulary value; unknown values give 0."""
    table = CODE_TABLES.get(field, {})
    code = table.get(value)
    if code is None:
        logger.debug(f"[Encoder] Unmapped {field} value {value!r} encoded as 0")
        return 0.0
    return float(code)


def reverse_lookup(field: str, code: float) -> Optional[str]:
    """Return the dataset-vocabulary value for a code, or None."""
    for value, mapped in CODE_TABLES.get(field, {}).items():
        if mapped == code:
            return value
    return None


def parse_float(value: Any) -> Optional[float]:
    """Parse a raw cell into a float; blanks and garbage give None."""
    if value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


# ============================================================================
# Normalization Statistics
# ============================================================================

class FieldStats(BaseModel):
    """Mean/std of one continuous field over the valid training rows."""
    mean: float = Field(default=0.0)
    std: float = Field(default=1.0, ge=0)
    sample_count: int = Field(default=0, ge=0)


class NormalizationStats(BaseModel):
    """Statistics for every continuous field seen during training."""
    fields: Dict[str, FieldStats] = Field(default_factory=dict)

    def get(self, field: str) -> Optional[FieldStats]:
        return self.fields.get(field)


def normalize(value: float, stats: Optional[FieldStats]) -> float:
    """Z-score a value; no stats means the value passes through."""
    if stats is None:
        return value
    std = stats.std if stats.std != 0 else 1.0
    return (value - stats.mean) / std


# ============================================================================
# Encoder
# ============================================================================

class FeatureEncoder:
    """
    Encodes profiles and dataset records into classifier input vectors.

    Stateless apart from the (read-only) statistics it was built with.
    """

    def __init__(
        self,
        stats: Optional[NormalizationStats] = None,
        include_clinical: bool = False
    ):
        """
        Args:
            stats: Normalization statistics; None leaves continuous fields raw
            include_clinical: Append the 5 clinical features (15-wide vector)
        """
        self.stats = stats
        self.include_clinical = include_clinical

    @property
    def feature_names(self) -> List[str]:
        if self.include_clinical:
            return FEATURE_NAMES + CLINICAL_FIELDS
        return list(FEATURE_NAMES)

    def _continuous(self, field: str, value: float) -> float:
        if self.stats is None:
            return value
        return normalize(value, self.stats.get(field))

    def encode_record(self, record: Mapping[str, Any]) -> List[float]:
        """
        Encode a record already in dataset vocabulary.

        Args:
            record: Mapping keyed by dataset column names (Age, BMI, ...)

        Returns:
            Feature vector in FEATURE_NAMES order (+ clinical tail)
        """
        age = parse_float(record.get("Age"))
        bmi = parse_float(record.get("BMI"))
        if bmi is None:
            raise MissingBMIError("Cannot score without BMI")
        if age is None:
            raise ValueError("Cannot encode a record without Age")

        vector = [
            self._continuous("Age", age),
            encode_category("Gender", record.get("Gender")),
            self._continuous("BMI", bmi),
            encode_category("Family_History", record.get("Family_History")),
            encode_category("Physical_Activity", record.get("Physical_Activity")),
            encode_category("Diet_Type", record.get("Diet_Type")),
            encode_category("Smoking_Status", record.get("Smoking_Status")),
            encode_category("Alcohol_Intake", record.get("Alcohol_Intake")),
            encode_category("Stress_Level", record.get("Stress_Level")),
            encode_category("Hypertension", record.get("Hypertension")),
        ]

        if self.include_clinical:
            for field in CLINICAL_FIELDS:
                value = parse_float(record.get(field))
                # Missing value -> training mean -> 0 after normalization
                vector.append(0.0 if value is None else self._continuous(field, value))

        return vector

    def encode(self, profile: HealthProfile) -> List[float]:
        """Encode a form profile (remapped to dataset vocabulary first)."""
        return self.encode_record(profile_to_record(profile))


def profile_to_record(profile: HealthProfile) -> Dict[str, Any]:
    """
    Convert a form profile into a dataset-vocabulary record.

    Raises:
        MissingBMIError: If height/weight were not supplied
    """
    if profile.bmi is None:
        raise MissingBMIError("Cannot score without BMI")

    record: Dict[str, Any] = {
        "Age": profile.age,
        "Gender": profile.gender.value,
        "BMI": profile.bmi,
        "Family_History": profile.family_history.value,
        "Physical_Activity": profile.physical_activity.value,
        "Diet_Type": profile.diet_type.value,
        "Smoking_Status": profile.smoking_status.value,
        "Alcohol_Intake": profile.alcohol_intake.value,
        "Stress_Level": profile.stress_level.value,
        "Hypertension": profile.hypertension.value,
        "Cholesterol_Level": profile.cholesterol_level,
        "Fasting_Blood_Sugar": profile.fasting_blood_sugar,
        "HBA1C": profile.hba1c,
        "Heart_Rate": profile.heart_rate,
        "Waist_Hip_Ratio": profile.waist_hip_ratio,
    }

    for field in CATEGORICAL_FIELDS:
        record[field] = to_dataset_value(field, record[field])

    return record
