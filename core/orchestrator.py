"""Top-level application orchestrator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.policy_runtime import ensure_runtime_dirs, load_effective_config
from governance.audit_logger import AuditLogger
from governance.permission_engine import PermissionEngine
from tools.tool_registry import ToolRegistry, build_default_registry

logger = logging.getLogger("cg.orchestrator")


@dataclass
class RuntimeBundle:
    """Holds initialized runtime components."""

    config: dict[str, Any]
    workspace_dir: Path
    permissions: PermissionEngine
    audit_logger: AuditLogger
    tool_registry: ToolRegistry


class Orchestrator:
    """Creates and wires runtime components for CLI use."""

    def __init__(self, root: Path | None = None, config_path: Path | None = None) -> None:
        default_root = Path(__file__).resolve().parents[1]
        self.root = (root or default_root).resolve()
        self.config_path = config_path

    def build(self) -> RuntimeBundle:
        config = load_effective_config(self.root, self.config_path)
        paths = ensure_runtime_dirs(self.root, config)

        permissions = PermissionEngine(config=dict(config.get("policy", {})))
        audit_logger = AuditLogger(paths["audit_log_path"])
        tool_registry = build_default_registry(
            workspace_dir=paths["workspace_dir"],
            config=config,
            permissions=permissions,
            audit_logger=audit_logger,
        )
        logger.debug("Runtime built for workspace %s", paths["workspace_dir"])

        return RuntimeBundle(
            config=config,
            workspace_dir=paths["workspace_dir"],
            permissions=permissions,
            audit_logger=audit_logger,
            tool_registry=tool_registry,
        )
