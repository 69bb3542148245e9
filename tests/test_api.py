"""
API Tests — Health, Prediction & Assessment Endpoints

Tests cover:
- Startup training from the configured CSV
- /api/health reports dataset + model status
- /api/predict: 200 with a trained model, 503 without
- /api/assess: trained when available, rule-based otherwise
- Validation failures (422): client bmi, missing height, out-of-range age
"""

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from diabetes_risk.api.main import app
from diabetes_risk.api.schemas import ErrorResponse
from diabetes_risk.config import settings
from diabetes_risk.orchestrator import MODEL_NOT_READY, RULE_BASED_NOTICE

from conftest import create_dataset_rows


def get_valid_payload() -> dict:
    """Generate a valid assessment payload (wire names)."""
    return {
        "age": 58,
        "gender": "Male",
        "height": 170.0,
        "weight": 92.0,
        "familyHistory": "Yes",
        "physicalActivity": "Low",
        "dietType": "Unhealthy",
        "smokingStatus": "Smoker",
        "alcoholIntake": "Occasional",
        "stressLevel": "High",
        "hypertension": "Yes",
    }


@pytest.fixture
def trained_client(tmp_path, monkeypatch):
    """Client whose lifespan trains on a small CSV."""
    path = tmp_path / "diabetes.csv"
    pd.DataFrame(create_dataset_rows(60)).to_csv(path, index=False)

    monkeypatch.setattr(settings, "DATASET_PATH", str(path))
    monkeypatch.setattr(settings, "TRAIN_ON_STARTUP", True)
    monkeypatch.setattr(settings, "SCORING_SERVICE_URL", None)

    with TestClient(app) as client:
        yield client


@pytest.fixture
def untrained_client(tmp_path, monkeypatch):
    """Client whose dataset is missing, so only the rule engine is available."""
    monkeypatch.setattr(settings, "DATASET_PATH", str(tmp_path / "missing.csv"))
    monkeypatch.setattr(settings, "TRAIN_ON_STARTUP", True)
    monkeypatch.setattr(settings, "SCORING_SERVICE_URL", None)

    with TestClient(app) as client:
        yield client


class TestHealth:
    """Test the status endpoints."""

    def test_trained(self, trained_client):
        response = trained_client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["datasetSize"] == 60
        assert data["modelTrained"] is True
        assert data["accuracy"] is not None

    def test_untrained(self, untrained_client):
        data = untrained_client.get("/api/health").json()

        assert data["modelTrained"] is False
        assert data["datasetSize"] == 0
        assert data["accuracy"] is None

    def test_ping(self, untrained_client):
        response = untrained_client.get("/ping")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestPredict:
    """Test the trained-model endpoint."""

    def test_returns_tier_and_percentage(self, trained_client):
        response = trained_client.post("/api/predict", json=get_valid_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["riskLevel"] in ("Low", "Medium", "High")
        assert 0 <= data["riskPercentage"] <= 100
        assert 0.0 <= data["riskProbability"] <= 1.0
        assert data["modelUsed"] == "trained"

    def test_high_risk_payload(self, trained_client):
        data = trained_client.post("/api/predict", json=get_valid_payload()).json()

        assert data["riskLevel"] != "Low"

    def test_not_trained_returns_503(self, untrained_client):
        response = untrained_client.post("/api/predict", json=get_valid_payload())

        assert response.status_code == 503
        assert response.json()["detail"] == MODEL_NOT_READY

    def test_missing_height_returns_422(self, trained_client):
        payload = get_valid_payload()
        del payload["height"]

        response = trained_client.post("/api/predict", json=payload)

        assert response.status_code == 422


class TestAssess:
    """Test the full assessment endpoint."""

    def test_trained_assessment(self, trained_client):
        response = trained_client.post("/api/assess", json=get_valid_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["modelUsed"] == "trained"
        assert data["recommendations"][0].startswith("Prediction made using trained ML model")
        assert len(data["factors"]) == 10
        assert {"name", "impact", "description"} <= set(data["factors"][0])

    def test_rule_based_assessment(self, untrained_client):
        response = untrained_client.post("/api/assess", json=get_valid_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["modelUsed"] == "rule-based"
        assert data["recommendations"][0] == RULE_BASED_NOTICE
        assert data["riskLevel"] == "High"
        assert data["riskPercentage"] == 95

    def test_snake_case_fields_accepted(self, untrained_client):
        payload = {
            "age": 30,
            "gender": "Female",
            "height": 165.0,
            "weight": 58.0,
            "family_history": "No",
            "physical_activity": "High",
            "diet_type": "Very Healthy",
            "smoking_status": "Non-Smoker",
            "alcohol_intake": "No",
            "stress_level": "Low",
            "hypertension": "No",
        }

        data = untrained_client.post("/api/assess", json=payload).json()

        assert data["riskLevel"] == "Low"
        assert data["riskPercentage"] == 0


class TestValidation:
    """Schema validation failures return 422."""

    def test_client_bmi_rejected(self, untrained_client):
        payload = get_valid_payload()
        payload["bmi"] = 22.0

        response = untrained_client.post("/api/assess", json=payload)

        assert response.status_code == 422
        assert "bmi must not be provided" in response.text

    def test_missing_height_rejected(self, untrained_client):
        payload = get_valid_payload()
        del payload["height"]

        response = untrained_client.post("/api/assess", json=payload)

        assert response.status_code == 422
        assert "BMI" in response.json()["detail"]

    def test_age_out_of_range(self, untrained_client):
        payload = get_valid_payload()
        payload["age"] = 0

        assert untrained_client.post("/api/assess", json=payload).status_code == 422

    def test_unknown_category(self, untrained_client):
        payload = get_valid_payload()
        payload["dietType"] = "Keto"

        assert untrained_client.post("/api/assess", json=payload).status_code == 422

    def test_missing_required_field(self, untrained_client):
        payload = get_valid_payload()
        del payload["gender"]

        assert untrained_client.post("/api/assess", json=payload).status_code == 422


class TestOpenAPI:
    """Documented error bodies."""

    def test_predict_503_uses_error_model(self):
        responses = app.openapi()["paths"]["/api/predict"]["post"]["responses"]

        schema = responses["503"]["content"]["application/json"]["schema"]
        assert schema["$ref"].endswith("/ErrorResponse")

    def test_503_body_matches_error_model(self, untrained_client):
        response = untrained_client.post("/api/predict", json=get_valid_payload())

        assert ErrorResponse.model_validate(response.json()).detail == MODEL_NOT_READY
