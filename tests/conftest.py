"""Shared fixtures: a small separable dataset and a model trained on it."""

import pytest

from diabetes_risk.ml.training import build_serving_context


def create_dataset_rows(n: int = 60) -> list:
    """Alternating high-risk (diabetic) and low-risk rows; linearly separable."""
    rows = []
    for i in range(n):
        high_risk = i % 2 == 0
        rows.append({
            "Age": str(55 + i % 10 if high_risk else 25 + i % 10),
            "Gender": "Male" if i % 3 else "Female",
            "BMI": str(33.0 + i % 5 if high_risk else 21.0 + i % 4),
            "Family_History": "Yes" if high_risk else "No",
            "Physical_Activity": "Low" if high_risk else "High",
            "Diet_Type": "Non-Vegetarian" if high_risk else "Vegan",
            "Smoking_Status": "Current" if high_risk else "Never",
            "Alcohol_Intake": "High" if high_risk else "None",
            "Stress_Level": "High" if high_risk else "Low",
            "Hypertension": "Yes" if high_risk else "No",
            "Diabetes": "Yes" if high_risk else "No",
        })
    return rows


@pytest.fixture
def dataset_rows():
    return create_dataset_rows(60)


@pytest.fixture(scope="session")
def serving_context():
    return build_serving_context(create_dataset_rows(60))
