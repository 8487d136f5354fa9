"""Configuration and runtime policy bootstrapping."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from governance.permission_engine import DEFAULT_ALLOWED_COMMANDS

DEFAULT_CONFIG: dict[str, Any] = {
    "paths": {
        "workspace_dir": ".",
        "audit_log_path": "logs/audit.jsonl",
    },
    "execution": {
        "default_timeout_ms": 30000,
        "max_timeout_ms": 600000,
    },
    "policy": {
        "extra_dangerous_patterns": [],
        "allowlist_enabled": False,
        "allowed_commands": list(DEFAULT_ALLOWED_COMMANDS),
    },
    "tools": {
        "execute_command": {"enabled": True},
    },
}


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML from file, returning empty mapping when missing."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")
    return data


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge dictionaries."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def ensure_runtime_dirs(root: Path, config: dict[str, Any]) -> dict[str, Path]:
    """Ensure workspace and log directories exist and return resolved paths."""
    paths_cfg = config.get("paths", {})
    workspace_dir = (root / paths_cfg.get("workspace_dir", ".")).resolve()
    audit_log_path = (root / paths_cfg.get("audit_log_path", "logs/audit.jsonl")).resolve()

    workspace_dir.mkdir(parents=True, exist_ok=True)
    audit_log_path.parent.mkdir(parents=True, exist_ok=True)

    return {
        "workspace_dir": workspace_dir,
        "audit_log_path": audit_log_path,
    }


def load_effective_config(root: Path, config_path: Path | None = None) -> dict[str, Any]:
    """Merge built-in defaults, ``config/default.yaml`` and an optional user file."""
    merged = merge_dicts(copy.deepcopy(DEFAULT_CONFIG), load_yaml(root / "config" / "default.yaml"))
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        merged = merge_dicts(merged, load_yaml(config_path))
    return merged
