"""Tool registry and default tool wiring."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from governance.audit_logger import AuditLogger
from governance.permission_engine import PermissionEngine
from tools.base_tool import BaseTool
from tools.system_tools.shell_tool import (
    DEFAULT_TIMEOUT_MS,
    MAX_TIMEOUT_MS,
    ExecuteCommandTool,
)


@dataclass
class RegisteredTool:
    """Metadata for tool listing output."""

    name: str
    description: str
    enabled: bool


class ToolRegistry:
    """Simple in-memory tool registry."""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> BaseTool | None:
        tool = self._tools.get(name)
        if tool and tool.enabled:
            return tool
        return None

    def list_tools(self) -> list[RegisteredTool]:
        return [
            RegisteredTool(name=name, description=tool.description, enabled=tool.enabled)
            for name, tool in sorted(self._tools.items())
        ]

    def definitions(self) -> list[dict[str, Any]]:
        """Declarations of every enabled tool."""
        return [tool.definition() for _, tool in sorted(self._tools.items()) if tool.enabled]


def _tool_enabled(config: dict[str, Any], tool_name: str, default: bool) -> bool:
    tool_cfg = config.get("tools", {}).get(tool_name, {})
    if not isinstance(tool_cfg, dict):
        return default
    return bool(tool_cfg.get("enabled", default))


def _tool_settings(config: dict[str, Any], tool_name: str) -> dict[str, Any]:
    tool_cfg = config.get("tools", {}).get(tool_name, {})
    if not isinstance(tool_cfg, dict):
        return {}
    return dict(tool_cfg)


def build_default_registry(
    *,
    workspace_dir: Path,
    config: dict[str, Any],
    permissions: PermissionEngine | None = None,
    audit_logger: AuditLogger | None = None,
) -> ToolRegistry:
    """Build default tool registry from config."""
    execution_cfg = config.get("execution", {})
    registry = ToolRegistry()
    registry.register(
        ExecuteCommandTool(
            workspace_dir=workspace_dir,
            permission_engine=permissions or PermissionEngine(config.get("policy", {})),
            audit_logger=audit_logger,
            default_timeout_ms=int(execution_cfg.get("default_timeout_ms", DEFAULT_TIMEOUT_MS)),
            max_timeout_ms=int(execution_cfg.get("max_timeout_ms", MAX_TIMEOUT_MS)),
            enabled=_tool_enabled(config, ExecuteCommandTool.name, True),
            settings=_tool_settings(config, ExecuteCommandTool.name),
        )
    )
    return registry
