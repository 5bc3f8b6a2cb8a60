"""Domain models for cmdgate.

Process results produced by the runner and the JSON bodies the HTTP
endpoints return. All models use Pydantic v2.
"""

from cmdgate.domain.models import (
    CommandFailure,
    CommandOutput,
    ErrorResponse,
    HealthResponse,
    ProcessResult,
)

__all__ = [
    "CommandFailure",
    "CommandOutput",
    "ErrorResponse",
    "HealthResponse",
    "ProcessResult",
]
