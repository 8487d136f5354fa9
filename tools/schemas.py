"""Tool declaration and result models."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return UTC datetime for default timestamps."""
    return datetime.now(UTC)


class FailureKind(StrEnum):
    """Why a tool call failed."""

    MISSING_PARAMETER = "missing_parameter"
    INVALID_PARAMETER = "invalid_parameter"
    PATH_TRAVERSAL = "path_traversal"
    WORKSPACE_VIOLATION = "workspace_violation"
    SAFETY_BLOCKED = "safety_blocked"
    TIMEOUT = "timeout"
    NON_ZERO_EXIT = "non_zero_exit"
    SPAWN_FAILURE = "spawn_failure"


class ToolParameter(BaseModel):
    """One entry of a tool's parameter schema."""

    name: str
    type: str
    description: str
    required: bool = False
    default: Any = None


class ExecutionRequest(BaseModel):
    """Validated input of the execute_command tool."""

    model_config = ConfigDict(populate_by_name=True)

    command: str = Field(min_length=1)
    working_directory: str | None = Field(default=None, alias="workingDirectory")
    timeout: int | None = Field(default=None, gt=0)


class ExecutionMetadata(BaseModel):
    """Diagnostics attached to every tool result."""

    model_config = ConfigDict(populate_by_name=True)

    tool_name: str = Field(alias="toolName")
    execution_time: float = Field(alias="executionTime", ge=0)
    exit_code: int | None = Field(default=None, alias="exitCode")
    stderr: str | None = None
    signal: str | None = None
    timed_out: bool = Field(default=False, alias="timedOut")
    failure_kind: FailureKind | None = Field(default=None, alias="failureKind")
    parameters: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)


class ToolResult(BaseModel):
    """Outcome of one tool call."""

    success: bool
    output: str | None = None
    error: str | None = None
    metadata: ExecutionMetadata

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
