"""Permission policy enforcement for shell commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from governance.action_sandbox import (
    is_traversal_path,
    is_within_workspace,
    resolve_working_directory,
)
from governance.command_rules import find_violation, normalize_command, split_subcommands

logger = logging.getLogger("cg.governance")

TRAVERSAL_ERROR = "Directory traversal not allowed in working directory"
INVALID_DIRECTORY_ERROR = "Invalid working directory"
OUTSIDE_WORKSPACE_ERROR = "Access denied: Cannot execute commands outside workspace"
SAFETY_PREFIX = "Command blocked for safety"
NOT_ALLOWED_REASON = (
    "Command not in allowed list. Only safe development commands are permitted."
)

DEFAULT_ALLOWED_COMMANDS = [
    "ls", "dir", "pwd", "cd", "cat", "type", "echo", "grep", "find", "which", "where",
    "git", "npm", "yarn", "node", "python", "pip", "mvn", "gradle", "make",
    "docker ps", "docker images", "docker logs", "kubectl get", "kubectl describe",
    "ps", "top", "htop", "df", "du", "free", "uptime", "whoami", "id",
    "curl -s", "wget -q", "ping", "nslookup", "dig", "netstat", "ss",
    "test", "jest", "mocha", "vitest", "pytest", "junit",
    "tsc", "eslint", "prettier", "black", "flake8", "mypy",
]


@dataclass
class PermissionDecision:
    """Represents allow/block decision.

    ``kind`` is one of ``invalid_parameter``, ``path_traversal``,
    ``workspace_violation`` or ``safety_blocked`` when blocked.
    ``working_dir`` is the resolved directory the command may run in when
    allowed.
    """

    allowed: bool
    reason: str
    kind: str | None = None
    working_dir: Path | None = None


class PermissionEngine:
    """Policy engine deciding whether a command may run."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        cfg = config or {}
        self.extra_dangerous_patterns = [
            str(p).lower() for p in cfg.get("extra_dangerous_patterns", []) if str(p).strip()
        ]
        self.allowlist_enabled = bool(cfg.get("allowlist_enabled", False))
        self.allowed_commands = [
            str(c).lower() for c in cfg.get("allowed_commands", DEFAULT_ALLOWED_COMMANDS)
        ]

    @classmethod
    def from_yaml(cls, path: Path) -> PermissionEngine:
        """Build engine from YAML file path."""
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError("policy file must be a mapping.")
        return cls(config=data)

    def check(
        self,
        *,
        command: str,
        workspace_dir: Path,
        working_directory: str | None = None,
    ) -> PermissionDecision:
        """Evaluate policy for a requested command."""
        if working_directory:
            if is_traversal_path(working_directory):
                return PermissionDecision(False, TRAVERSAL_ERROR, "path_traversal")
            try:
                target = resolve_working_directory(working_directory, workspace_dir)
            except (OSError, ValueError) as exc:
                return PermissionDecision(
                    False, f"{INVALID_DIRECTORY_ERROR}: {exc}", "invalid_parameter"
                )
            if not is_within_workspace(target, workspace_dir):
                return PermissionDecision(False, OUTSIDE_WORKSPACE_ERROR, "workspace_violation")
        else:
            target = resolve_working_directory(None, workspace_dir)

        reason = self.command_violation(command)
        if reason is not None:
            logger.info("Blocked command %r: %s", command, reason)
            return PermissionDecision(False, f"{SAFETY_PREFIX}: {reason}", "safety_blocked")

        return PermissionDecision(True, "Allowed by policy.", working_dir=target)

    def command_violation(self, command: str) -> str | None:
        """Return the reason a command is unsafe, or None if it passes."""
        violation = find_violation(command)
        if violation is not None:
            return violation.reason

        text = normalize_command(command)
        for pattern in self.extra_dangerous_patterns:
            if pattern in text:
                return f"Contains dangerous pattern: {pattern}"

        if self.allowlist_enabled:
            for part in split_subcommands(text):
                if not self.is_command_allowed(part):
                    return NOT_ALLOWED_REASON
        return None

    def is_command_allowed(self, command: str) -> bool:
        """Check a single command against the allowed prefixes."""
        text = normalize_command(command)
        for allowed in self.allowed_commands:
            if text == allowed or text.startswith(allowed + " "):
                return True
        return False
