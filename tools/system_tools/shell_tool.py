"""Shell execution tool guarded by the command policy."""

from __future__ import annotations

import logging
import math
import time
from pathlib import Path
from typing import Any

from executor.command_executor import ProcessOutcome, elapsed_ms, run_command
from governance.audit_logger import AuditLogger
from governance.permission_engine import PermissionEngine
from tools.base_tool import BaseTool
from tools.schemas import (
    ExecutionMetadata,
    ExecutionRequest,
    FailureKind,
    ToolParameter,
    ToolResult,
)

logger = logging.getLogger("cg.tools.shell")

DEFAULT_TIMEOUT_MS = 30000
MAX_TIMEOUT_MS = 600000


class ExecuteCommandTool(BaseTool):
    """Runs shell commands inside the workspace after safety validation."""

    name = "execute_command"
    description = "Execute a shell command with safety validations"
    parameters = [
        ToolParameter(
            name="command",
            type="string",
            description="The command to execute",
            required=True,
        ),
        ToolParameter(
            name="workingDirectory",
            type="string",
            description="Working directory for command execution (optional)",
        ),
        ToolParameter(
            name="timeout",
            type="number",
            description=f"Timeout in milliseconds (default: {DEFAULT_TIMEOUT_MS})",
            default=DEFAULT_TIMEOUT_MS,
        ),
    ]

    def __init__(
        self,
        workspace_dir: Path | None = None,
        permission_engine: PermissionEngine | None = None,
        audit_logger: AuditLogger | None = None,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_timeout_ms: int = MAX_TIMEOUT_MS,
        enabled: bool = True,
        settings: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(enabled=enabled, settings=settings)
        self.workspace_dir = (workspace_dir or Path.cwd()).resolve()
        self.permission_engine = permission_engine or PermissionEngine()
        self.audit_logger = audit_logger
        self.default_timeout_ms = int(self.settings.get("default_timeout_ms", default_timeout_ms))
        self.max_timeout_ms = int(self.settings.get("max_timeout_ms", max_timeout_ms))

    async def execute(self, payload: dict[str, Any]) -> ToolResult:
        started = time.perf_counter()

        problem = self.validate_parameters(payload)
        if problem is not None:
            kind = (
                FailureKind.MISSING_PARAMETER
                if problem.startswith("Required")
                else FailureKind.INVALID_PARAMETER
            )
            return self._blocked(payload, problem, kind, started)

        request = ExecutionRequest(
            command=payload["command"],
            working_directory=payload.get("workingDirectory"),
            timeout=self._timeout(payload.get("timeout")),
        )
        if request.timeout is None:
            return self._blocked(
                payload,
                "Parameter 'timeout' must be a positive number of milliseconds",
                FailureKind.INVALID_PARAMETER,
                started,
            )

        decision = self.permission_engine.check(
            command=request.command,
            workspace_dir=self.workspace_dir,
            working_directory=request.working_directory,
        )
        if not decision.allowed:
            return self._blocked(payload, decision.reason, FailureKind(decision.kind), started)

        cwd = decision.working_dir or self.workspace_dir
        logger.info("Executing in %s: %s", cwd, request.command)
        try:
            outcome = await run_command(request.command, cwd, request.timeout)
        except (OSError, ValueError) as exc:
            error = f"Failed to start command: {exc}"
            if not cwd.is_dir():
                error = f"Failed to start command: working directory not found: {cwd}"
            logger.warning("%s", error)
            self._audit(payload, "failed", True, error)
            return self._failure(payload, error, FailureKind.SPAWN_FAILURE, started)

        return self._from_outcome(payload, request, outcome, started)

    def _timeout(self, value: Any) -> int | None:
        if value is None:
            return self.default_timeout_ms
        timeout = math.ceil(min(value, self.max_timeout_ms))
        return timeout if timeout > 0 else None

    def _from_outcome(
        self,
        payload: dict[str, Any],
        request: ExecutionRequest,
        outcome: ProcessOutcome,
        started: float,
    ) -> ToolResult:
        if outcome.timed_out:
            error = f"Command timed out after {request.timeout}ms"
            self._audit(payload, "failed", True, error, duration_ms=outcome.duration_ms)
            return self._failure(payload, error, FailureKind.TIMEOUT, started, timed_out=True)

        code = outcome.exit_code
        stderr = outcome.stderr or None
        if code != 0:
            if outcome.signal_name:
                error = f"Command terminated by signal {outcome.signal_name} (exit code {code})"
            else:
                detail = outcome.stderr.strip() or "no error output"
                error = f"Command failed with exit code {code}: {detail}"
            self._audit(payload, "failed", True, error, code, outcome.duration_ms)
            return ToolResult(
                success=False,
                output=outcome.stdout or None,
                error=error,
                metadata=self._metadata(
                    payload,
                    started,
                    exit_code=code,
                    stderr=stderr,
                    signal=outcome.signal_name,
                    failure_kind=FailureKind.NON_ZERO_EXIT,
                ),
            )

        self._audit(payload, "success", True, exit_code=0, duration_ms=outcome.duration_ms)
        return ToolResult(
            success=True,
            output=outcome.stdout,
            metadata=self._metadata(payload, started, exit_code=0, stderr=stderr),
        )

    def _blocked(
        self, payload: dict[str, Any], error: str, kind: FailureKind, started: float
    ) -> ToolResult:
        self._audit(payload, "blocked", False, error)
        return self._failure(payload, error, kind, started)

    def _failure(
        self,
        payload: dict[str, Any],
        error: str,
        kind: FailureKind,
        started: float,
        **extra: Any,
    ) -> ToolResult:
        return ToolResult(
            success=False,
            error=error,
            metadata=self._metadata(payload, started, failure_kind=kind, **extra),
        )

    def _metadata(self, payload: dict[str, Any], started: float, **fields: Any) -> ExecutionMetadata:
        return ExecutionMetadata(
            tool_name=self.name,
            execution_time=elapsed_ms(started),
            parameters=dict(payload),
            **fields,
        )

    def _audit(
        self,
        payload: dict[str, Any],
        outcome: str,
        allowed: bool,
        reason: str = "",
        exit_code: int | None = None,
        duration_ms: float | None = None,
    ) -> None:
        if self.audit_logger is None:
            return
        self.audit_logger.log(
            tool=self.name,
            inputs=payload,
            outcome=outcome,
            allowed=allowed,
            reason=reason,
            exit_code=exit_code,
            duration_ms=duration_ms,
        )
