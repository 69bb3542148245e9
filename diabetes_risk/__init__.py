"""
Diabetes Risk — Risk Inference Core

Public API:
- HealthProfile, RiskResult: Input/output contracts
- RiskOrchestrator: evaluate(profile) -> RiskResult
"""

from .schemas import (
    HealthProfile,
    RiskFactor,
    RiskResult,
    RiskLevel,
    ModelUsed,
    MissingBMIError,
)

__all__ = [
    "HealthProfile",
    "RiskFactor",
    "RiskResult",
    "RiskLevel",
    "ModelUsed",
    "MissingBMIError",
]
