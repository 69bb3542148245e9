"""
FastAPI Application — Diabetes Risk Assessment API

Trains the model once at startup, then serves assessments.

CORS: Configured via environment variables.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from diabetes_risk.config import settings
from .routes import router
from .services import build_orchestrator, describe_context, train_serving_context


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME}")
    logger.info(f"📍 Running in {settings.ENVIRONMENT} mode")

    context = None
    if settings.TRAIN_ON_STARTUP:
        logger.info(f"📊 Training on {settings.DATASET_PATH}")
        context = train_serving_context(settings)

    if context is None:
        logger.warning("⚠️  No trained model — assessments will be rule-based")
    else:
        logger.info(f"✅ Model ready ({describe_context(context)})")

    # Published only once training has fully completed
    app.state.serving_context = context
    app.state.orchestrator = build_orchestrator(settings, context)
    yield
    # Shutdown
    logger.info(f"👋 Shutting down {settings.PROJECT_NAME}")


# Application metadata
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Diabetes risk assessment: trained logistic model with rule-based fallback",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


app.include_router(router)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint — points at docs."""
    return {
        "message": "Diabetes Risk Assessment API",
        "docs": "/docs",
        "health": f"{settings.API_PREFIX}/health"
    }


@app.get("/ping", tags=["Health"])
async def ping():
    """Lightweight heartbeat — no model access."""
    return {"status": "ok"}
