"""
API Routes — Endpoint Definitions

- GET  /api/health  — dataset + model status
- POST /api/predict — trained-model service (503 until a model is trained)
- POST /api/assess  — full assessment through the orchestrator

Note: /assess is a plain `def` so it runs in the threadpool; a remote
scorer blocks for up to REMOTE_TIMEOUT_SECONDS.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from diabetes_risk.config import settings
from diabetes_risk.orchestrator import LocalModelScorer, MODEL_NOT_READY, RiskOrchestrator
from diabetes_risk.schemas import HealthProfile, MissingBMIError, PredictionResponse, RiskResult

from .schemas import ErrorResponse, HealthResponse
from .services import build_orchestrator


router = APIRouter(prefix=settings.API_PREFIX)


def get_serving_context(request: Request):
    """Read-only model state published by the lifespan handler (or None)."""
    return getattr(request.app.state, "serving_context", None)


def get_orchestrator(request: Request) -> RiskOrchestrator:
    orchestrator: Optional[RiskOrchestrator] = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = build_orchestrator(settings, get_serving_context(request))
    return orchestrator


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Dataset and model status",
)
async def health(context=Depends(get_serving_context)) -> HealthResponse:
    return HealthResponse(
        status="OK",
        dataset_size=context.dataset_size if context else 0,
        model_trained=context is not None,
        accuracy=context.accuracy if context else None,
    )


@router.post(
    "/predict",
    response_model=PredictionResponse,
    responses={
        422: {"description": "Validation error (invalid profile or missing height/weight)"},
        503: {"model": ErrorResponse, "description": "Model not trained yet"},
    },
    tags=["Prediction"],
    summary="Score a profile with the trained model",
)
async def predict(
    profile: HealthProfile,
    context=Depends(get_serving_context)
) -> PredictionResponse:
    """
    Trained-model inference.

    - Remaps form vocabulary to dataset vocabulary
    - Normalizes age/BMI with the training statistics
    - Returns tier + percentage derived from the model probability
    """
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=MODEL_NOT_READY,
        )

    try:
        outcome = LocalModelScorer(context).score(profile)
    except MissingBMIError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    return outcome.to_response()


@router.post(
    "/assess",
    response_model=RiskResult,
    responses={422: {"description": "Validation error (invalid profile or missing height/weight)"}},
    tags=["Assessment"],
    summary="Assess diabetes risk",
    description="Trained model when available, rule-based otherwise; factors are always rule-derived.",
)
def assess(
    profile: HealthProfile,
    orchestrator: RiskOrchestrator = Depends(get_orchestrator)
) -> RiskResult:
    try:
        return orchestrator.evaluate(profile)
    except MissingBMIError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
