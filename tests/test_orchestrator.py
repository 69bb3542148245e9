"""
Orchestrator Tests — Trained Model With Rule-Based Fallback

Tests verify:
- Remote failures (timeout, connection, HTTP error, malformed body) fall back
- Fallback result is the full rule-based assessment
- Successful trained result keeps rule-derived factors
- Exactly one remote attempt per request, bounded timeout
- Hard deadline on the whole remote exchange (slow-sending service)
- Fresh session per remote call
- Missing BMI fails before any scoring attempt
"""

import dataclasses
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock

import pytest
import requests

from diabetes_risk.orchestrator import (
    DEFAULT_REMOTE_TIMEOUT_SECONDS,
    MODEL_NOT_READY,
    RULE_BASED_NOTICE,
    LocalModelScorer,
    RemoteScorer,
    RiskOrchestrator,
    Scorer,
    ScoreOutcome,
    format_accuracy,
)
from diabetes_risk.rules.engine import RuleEngine
from diabetes_risk.schemas import HealthProfile, MissingBMIError, ModelUsed, RiskLevel


SERVICE_URL = "http://scoring.local/api/predict"


def make_profile(**overrides) -> HealthProfile:
    data = {
        "age": 52,
        "gender": "Male",
        "height": 175.0,
        "weight": 95.0,
        "family_history": "Yes",
        "physical_activity": "Moderate",
        "diet_type": "Balanced",
        "smoking_status": "Former Smoker",
        "alcohol_intake": "Occasional",
        "stress_level": "Medium",
        "hypertension": "No",
    }
    data.update(overrides)
    return HealthProfile(**data)


def make_response(status_code=200, body=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = "" if body is None else str(body)
    if json_error:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = body
    return response


def make_session(response=None, error=None):
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return session


class DripHandler(BaseHTTPRequestHandler):
    """Answers every POST with the server's body, one byte per `delay` seconds."""

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        body = self.server.body
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        try:
            for i in range(len(body)):
                self.wfile.write(body[i:i + 1])
                self.wfile.flush()
                time.sleep(self.server.delay)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def scoring_server():
    """Factory for a local scoring service; returns its predict URL."""
    servers = []

    def start(body: dict, delay: float = 0.0) -> str:
        server = ThreadingHTTPServer(("127.0.0.1", 0), DripHandler)
        server.daemon_threads = True
        server.body = json.dumps(body).encode()
        server.delay = delay
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_port}/api/predict"

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


def local_session() -> requests.Session:
    session = requests.Session()
    session.trust_env = False  # never route 127.0.0.1 through an env proxy
    return session


def remote_orchestrator(session) -> RiskOrchestrator:
    return RiskOrchestrator(scorer=RemoteScorer(SERVICE_URL, session_factory=lambda: session))


def assert_rule_based(result, profile):
    engine = RuleEngine()
    rule_score = engine.score(profile)

    assert result.model_used == ModelUsed.RULE_BASED
    assert result.risk_level == rule_score.risk_level
    assert result.risk_percentage == rule_score.risk_percentage
    assert result.factors == engine.factors(profile)
    assert result.recommendations == [RULE_BASED_NOTICE, *rule_score.recommendations]


class TestRemoteFallback:
    """Every remote failure mode degrades to the rule engine."""

    def test_timeout(self):
        session = make_session(error=requests.Timeout("read timed out"))
        profile = make_profile()

        result = remote_orchestrator(session).evaluate(profile)

        assert_rule_based(result, profile)
        assert session.post.call_count == 1

    def test_connection_error(self):
        session = make_session(error=requests.ConnectionError("refused"))
        profile = make_profile()

        assert_rule_based(remote_orchestrator(session).evaluate(profile), profile)

    def test_server_error(self):
        session = make_session(make_response(500, {"detail": "boom"}))
        profile = make_profile()

        assert_rule_based(remote_orchestrator(session).evaluate(profile), profile)

    def test_model_not_ready(self):
        session = make_session(make_response(503, {"detail": MODEL_NOT_READY}))
        profile = make_profile()

        assert_rule_based(remote_orchestrator(session).evaluate(profile), profile)

    def test_non_json_body(self):
        session = make_session(make_response(200, json_error=True))
        profile = make_profile()

        assert_rule_based(remote_orchestrator(session).evaluate(profile), profile)

    def test_body_missing_fields(self):
        session = make_session(make_response(200, {"riskLevel": "High"}))
        profile = make_profile()

        assert_rule_based(remote_orchestrator(session).evaluate(profile), profile)

    def test_unknown_tier(self):
        session = make_session(make_response(200, {"riskLevel": "Severe", "riskPercentage": 90}))
        profile = make_profile()

        assert_rule_based(remote_orchestrator(session).evaluate(profile), profile)


class TestRemoteSuccess:
    """A successful remote reply decides tier and percentage only."""

    def test_trained_result(self):
        session = make_session(make_response(200, {
            "riskLevel": "High",
            "riskPercentage": 82,
            "accuracy": 87.5,
        }))
        profile = make_profile()

        result = remote_orchestrator(session).evaluate(profile)

        assert result.model_used == ModelUsed.TRAINED
        assert result.risk_level == RiskLevel.HIGH
        assert result.risk_percentage == 82
        assert result.factors == RuleEngine().factors(profile)
        assert result.recommendations[0] == "Prediction made using trained ML model (87.5% accuracy)"

    def test_recommendations_framed_by_model_tier(self):
        session = make_session(make_response(200, {"riskLevel": "Low", "riskPercentage": 12}))
        profile = make_profile()

        result = remote_orchestrator(session).evaluate(profile)

        assert result.recommendations[0] == "Prediction made using trained ML model (accuracy unknown)"
        assert result.recommendations[1:] == RuleEngine().recommendations(profile, RiskLevel.LOW)

    def test_request_shape(self):
        session = make_session(make_response(200, {"riskLevel": "Medium", "riskPercentage": 40}))

        remote_orchestrator(session).evaluate(make_profile())

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        assert args[0] == SERVICE_URL
        assert kwargs["timeout"] == (DEFAULT_REMOTE_TIMEOUT_SECONDS, DEFAULT_REMOTE_TIMEOUT_SECONDS)

        payload = kwargs["json"]
        assert "bmi" not in payload
        assert payload["familyHistory"] == "Yes"
        assert payload["physicalActivity"] == "Moderate"
        assert payload["smokingStatus"] == "Former Smoker"
        assert "cholesterolLevel" not in payload

    def test_custom_timeout(self):
        session = make_session(error=requests.Timeout())
        scorer = RemoteScorer(SERVICE_URL, timeout=1.5, session_factory=lambda: session)

        outcome = scorer.score(make_profile())

        assert not outcome.ok
        assert "1.5s" in outcome.reason
        assert session.post.call_args.kwargs["timeout"] == (1.5, 1.5)

    def test_rule_based_reply_is_not_trained(self):
        session = make_session(make_response(200, {
            "riskLevel": "High",
            "riskPercentage": 82,
            "modelUsed": "rule-based",
        }))
        profile = make_profile()

        assert_rule_based(remote_orchestrator(session).evaluate(profile), profile)


class TestRemoteSessions:
    """Each remote call gets its own session."""

    def test_fresh_session_per_call(self):
        sessions = [
            make_session(make_response(200, {"riskLevel": "Low", "riskPercentage": 10}))
            for _ in range(2)
        ]
        factory = MagicMock(side_effect=sessions)
        scorer = RemoteScorer(SERVICE_URL, session_factory=factory)

        scorer.score(make_profile())
        scorer.score(make_profile())

        assert factory.call_count == 2
        for session in sessions:
            session.post.assert_called_once()
            session.close.assert_called_once()

    def test_session_closed_after_failure(self):
        session = make_session(error=requests.ConnectionError("refused"))

        RemoteScorer(SERVICE_URL, session_factory=lambda: session).score(make_profile())

        session.close.assert_called_once()


class TestRemoteDeadline:
    """The remote bound covers the whole exchange, not each socket read."""

    def test_fast_service_succeeds(self, scoring_server):
        url = scoring_server({"riskLevel": "High", "riskPercentage": 82, "accuracy": 90.0})
        scorer = RemoteScorer(url, timeout=2.0, session_factory=local_session)

        outcome = scorer.score(make_profile())

        assert outcome.ok
        assert outcome.risk_level == RiskLevel.HIGH
        assert outcome.risk_percentage == 82

    def test_slow_sending_service_is_abandoned(self, scoring_server):
        # About 40 bytes at 50 ms each: every read is quick, the whole body takes ~2 s
        url = scoring_server({"riskLevel": "High", "riskPercentage": 82}, delay=0.05)
        scorer = RemoteScorer(url, timeout=0.5, session_factory=local_session)

        started = time.monotonic()
        outcome = scorer.score(make_profile())
        elapsed = time.monotonic() - started

        assert not outcome.ok
        assert "Timed out after 0.5s" in outcome.reason
        assert elapsed < 1.2

    def test_slow_service_falls_back_to_rules(self, scoring_server):
        url = scoring_server({"riskLevel": "High", "riskPercentage": 82}, delay=0.05)
        orchestrator = RiskOrchestrator(
            scorer=RemoteScorer(url, timeout=0.5, session_factory=local_session)
        )
        profile = make_profile()

        started = time.monotonic()
        result = orchestrator.evaluate(profile)

        assert time.monotonic() - started < 1.2
        assert_rule_based(result, profile)


class TestLocalModel:
    """In-process scoring against the serving context."""

    def test_untrained_context_falls_back(self):
        profile = make_profile()
        orchestrator = RiskOrchestrator(scorer=LocalModelScorer(None))

        assert_rule_based(orchestrator.evaluate(profile), profile)

    def test_untrained_outcome_reason(self):
        outcome = LocalModelScorer(None).score(make_profile())

        assert not outcome.ok
        assert outcome.reason == MODEL_NOT_READY

    def test_vocabulary_mismatch_is_not_served(self, serving_context):
        stale = dataclasses.replace(serving_context, vocabulary_version="1")
        profile = make_profile()

        outcome = LocalModelScorer(stale).score(profile)

        assert not outcome.ok
        assert "vocabulary" in outcome.reason
        assert_rule_based(RiskOrchestrator(scorer=LocalModelScorer(stale)).evaluate(profile), profile)

    def test_trained_context(self, serving_context):
        context = serving_context
        profile = make_profile()

        result = RiskOrchestrator(scorer=LocalModelScorer(context)).evaluate(profile)

        assert result.model_used == ModelUsed.TRAINED
        assert 0 <= result.risk_percentage <= 100
        assert result.factors == RuleEngine().factors(profile)
        assert result.recommendations[0] == (
            f"Prediction made using trained ML model ({format_accuracy(context.accuracy)})"
        )

    def test_outcome_serializes_to_prediction(self, serving_context):
        context = serving_context

        response = LocalModelScorer(context).score(make_profile()).to_response()

        assert response.model_used == ModelUsed.TRAINED
        assert response.risk_probability is not None
        assert response.accuracy == context.accuracy


class TestOrchestrator:

    def test_no_scorer_is_rule_based(self):
        profile = make_profile()

        assert_rule_based(RiskOrchestrator().evaluate(profile), profile)

    def test_missing_bmi_raises_before_scoring(self):
        scorer = MagicMock(spec=Scorer)
        profile = make_profile(height=None)

        with pytest.raises(MissingBMIError):
            RiskOrchestrator(scorer=scorer).evaluate(profile)

        scorer.score.assert_not_called()

    def test_single_attempt_per_request(self):
        scorer = MagicMock(spec=Scorer)
        scorer.score.return_value = ScoreOutcome.failure("down")

        RiskOrchestrator(scorer=scorer).evaluate(make_profile())

        assert scorer.score.call_count == 1

    def test_failed_outcome_cannot_serialize(self):
        with pytest.raises(ValueError):
            ScoreOutcome.failure("down").to_response()

    def test_format_accuracy(self):
        assert format_accuracy(None) == "accuracy unknown"
        assert format_accuracy(87.456) == "87.5% accuracy"
