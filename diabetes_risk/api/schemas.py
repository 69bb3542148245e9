"""
Pydantic Schemas — API Response Models

Request bodies are the core HealthProfile; responses not covered by the
core contracts live here.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class HealthResponse(BaseModel):
    """Service health: dataset and model status."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str
    dataset_size: int
    model_trained: bool
    accuracy: Optional[float] = None


class ErrorResponse(BaseModel):
    """Error body returned with 4xx/5xx responses."""
    detail: str
