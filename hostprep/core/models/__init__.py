"""
Domain models — pydantic types for environment orchestration.

All models are re-exported here for convenient access:

    from hostprep.core.models import ComponentResult, EnvironmentResult, ExecutionContext
"""

from hostprep.core.models.component import (
    ComponentResult,
    EnvironmentComponent,
    FailureCode,
    InstallStatus,
    component_display_name,
)
from hostprep.core.models.environment import (
    EnvironmentResult,
    ExecutionContext,
    Verdict,
)

__all__ = [
    "ComponentResult",
    "EnvironmentComponent",
    "EnvironmentResult",
    "ExecutionContext",
    "FailureCode",
    "InstallStatus",
    "Verdict",
    "component_display_name",
]
