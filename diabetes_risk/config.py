"""
Application Configuration — Pydantic Settings

Centralized configuration management using environment variables.
Loads from .env file automatically with sensible defaults.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Priority: Environment variables > .env file > defaults
    """

    # === API Configuration ===
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Diabetes Risk Assessment"

    # === CORS Configuration ===
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:8080",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8080",
    ]

    # === Training Configuration ===
    DATASET_PATH: str = "synthetic_diabetes_dataset.csv"
    TRAIN_ON_STARTUP: bool = True
    LEARNING_RATE: float = 0.01
    TRAINING_ITERATIONS: int = 2000
    TRAIN_SPLIT: float = 0.8

    # === Trained-Model Service ===
    # Unset = score with the in-process model
    SCORING_SERVICE_URL: Optional[str] = None
    REMOTE_TIMEOUT_SECONDS: float = 5.0

    # === Environment ===
    ENVIRONMENT: str = "local"  # local, development, staging, production

    # === Settings Configuration ===
    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Singleton instance
settings = Settings()
