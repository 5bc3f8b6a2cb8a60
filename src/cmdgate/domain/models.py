"""Core domain models for cmdgate.

``ProcessResult`` is what the process runner hands back for a single
command execution. The remaining models are the response bodies of the
HTTP endpoints; their field names are part of the public contract.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Process execution
# ---------------------------------------------------------------------------


class ProcessResult(BaseModel):
    """Outcome of running one shell command.

    ``error`` is set whenever the command did not complete successfully:
    it could not be started, exited non-zero, was killed by a signal,
    ran past the timeout, or produced more output than allowed.
    """

    model_config = ConfigDict(frozen=True)

    exit_code: int | None = Field(default=None, description="Exit status, None if killed by a signal")
    signal: str | None = Field(default=None, description="Terminating signal name, e.g. 'SIGTERM'")
    stdout: str = Field(default="")
    stderr: str = Field(default="")
    error: str | None = Field(default=None, description="Failure description, None on success")

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# HTTP response bodies
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: str = Field(description="ISO-8601 UTC time of the probe")
    uptime_seconds: float = Field(ge=0)


class ErrorResponse(BaseModel):
    error: str


class CommandOutput(BaseModel):
    """Body returned when a permitted command ran successfully."""

    command: str = Field(description="Public command name from the registry")
    allowed: bool = True
    stdout: str = ""
    stderr: str = ""


class CommandFailure(BaseModel):
    """Body returned when a permitted command ran but failed.

    Still served with status 200: the request itself was valid. Both
    ``exitCode`` and ``signal`` are always present, null when unknown.
    """

    model_config = ConfigDict(populate_by_name=True)

    command: str
    allowed: bool = True
    error: str
    exit_code: int | None = Field(default=None, alias="exitCode")
    signal: str | None = None
    stdout: str = ""
    stderr: str = ""
