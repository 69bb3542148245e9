"""
Scorers — Trained-Model Inference Variants

Every scorer returns an explicit ScoreOutcome (success/failure). Failures
are values, not exceptions: the orchestrator branches on them.

Variants:
- RemoteScorer: POSTs the profile to the trained-model service (hard deadline)
- LocalModelScorer: Runs the in-process ServingContext

The rule-based variant is the RuleEngine itself, the unconditional fallback.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Optional

import requests
from pydantic import ValidationError

from diabetes_risk.features.encoder import VOCABULARY_VERSION
from diabetes_risk.ml.classifier import (
    LinearClassifier,
    probability_to_percentage,
    probability_to_risk_level,
)
from diabetes_risk.ml.training import ServingContext
from diabetes_risk.schemas import HealthProfile, ModelUsed, PredictionResponse, RiskLevel


logger = logging.getLogger(__name__)


DEFAULT_REMOTE_TIMEOUT_SECONDS = 5.0
DEFAULT_REMOTE_WORKERS = 8
MODEL_NOT_READY = "Model not trained yet"


@dataclass(frozen=True)
class ScoreOutcome:
    """Result of one trained-model attempt."""
    ok: bool
    risk_level: Optional[RiskLevel] = None
    risk_percentage: Optional[int] = None
    probability: Optional[float] = None
    accuracy: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def success(
        cls,
        risk_level: RiskLevel,
        risk_percentage: int,
        probability: Optional[float] = None,
        accuracy: Optional[float] = None,
    ) -> "ScoreOutcome":
        return cls(
            ok=True,
            risk_level=risk_level,
            risk_percentage=risk_percentage,
            probability=probability,
            accuracy=accuracy,
        )

    @classmethod
    def failure(cls, reason: str) -> "ScoreOutcome":
        return cls(ok=False, reason=reason)

    def to_response(self) -> PredictionResponse:
        """Wire form of a successful outcome."""
        if not self.ok:
            raise ValueError(f"Cannot serialize a failed outcome: {self.reason}")
        return PredictionResponse(
            risk_level=self.risk_level,
            risk_percentage=self.risk_percentage,
            risk_probability=self.probability,
            accuracy=self.accuracy,
        )


class Scorer(ABC):
    """A source of trained-model tier + percentage for a profile."""

    @abstractmethod
    def score(self, profile: HealthProfile) -> ScoreOutcome:
        ...


class LocalModelScorer(Scorer):
    """
    Scores against the in-process model.

    Encodes with the same statistics and layout the model was trained with;
    clinical fields the profile lacks encode to the training mean.
    """

    def __init__(self, context: Optional[ServingContext]):
        self.context = context

    def score(self, profile: HealthProfile) -> ScoreOutcome:
        if self.context is None:
            return ScoreOutcome.failure(MODEL_NOT_READY)
        if self.context.vocabulary_version != VOCABULARY_VERSION:
            return ScoreOutcome.failure(
                f"Model trained under vocabulary v{self.context.vocabulary_version}, "
                f"encoder is v{VOCABULARY_VERSION}"
            )

        vector = self.context.encoder().encode(profile)
        probability = LinearClassifier.predict(vector, self.context.model)

        return ScoreOutcome.success(
            risk_level=probability_to_risk_level(probability),
            risk_percentage=probability_to_percentage(probability),
            probability=probability,
            accuracy=self.context.accuracy,
        )


class RemoteScorer(Scorer):
    """
    Scores through the trained-model HTTP service.

    One attempt, no retries. Any failure is returned, never raised.

    The whole exchange (connect, send, read the body) runs on a worker
    thread and the caller waits at most `timeout` seconds for it. A service
    that trickles its reply is abandoned at the deadline even though no
    single socket read exceeds the requests timeout.
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_REMOTE_TIMEOUT_SECONDS,
        session_factory: Callable[[], requests.Session] = requests.Session,
        max_workers: int = DEFAULT_REMOTE_WORKERS,
    ):
        """
        Args:
            url: Full URL of the predict endpoint
            timeout: Hard deadline in seconds for the whole call
            session_factory: Builds a fresh requests session for each call
            max_workers: Concurrent remote calls in flight
        """
        self.url = url
        self.timeout = timeout
        self._session_factory = session_factory
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="remote-scorer",
        )

    def _payload(self, profile: HealthProfile) -> dict:
        # bmi is derived server-side from height + weight
        return profile.model_dump(mode="json", by_alias=True, exclude={"bmi"}, exclude_none=True)

    def _post(self, payload: dict) -> requests.Response:
        # Session per call: no cookies or connections shared across requests
        session = self._session_factory()
        try:
            response = session.post(
                self.url,
                json=payload,
                timeout=(self.timeout, self.timeout),
            )
            # Read the body here so the deadline covers it
            response.content
            return response
        finally:
            session.close()

    def score(self, profile: HealthProfile) -> ScoreOutcome:
        future = self._executor.submit(self._post, self._payload(profile))
        try:
            response = future.result(timeout=self.timeout)
        except requests.Timeout:
            return ScoreOutcome.failure(f"Timed out after {self.timeout:g}s")
        except FutureTimeoutError:
            future.cancel()
            logger.warning(f"[RemoteScorer] No complete reply within {self.timeout:g}s; abandoning call")
            return ScoreOutcome.failure(f"Timed out after {self.timeout:g}s")
        except requests.RequestException as e:
            return ScoreOutcome.failure(f"Request failed: {e}")

        if not response.ok:
            return ScoreOutcome.failure(f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            body = PredictionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            return ScoreOutcome.failure(f"Malformed response: {e}")

        if body.model_used != ModelUsed.TRAINED:
            return ScoreOutcome.failure(f"Service answered with the {body.model_used.value} model")

        return ScoreOutcome.success(
            risk_level=body.risk_level,
            risk_percentage=body.risk_percentage,
            probability=body.risk_probability,
            accuracy=body.accuracy,
        )
