"""Structured JSONL audit trail for command executions."""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


class AuditLogger:
    """Appends one JSON line per tool call."""

    def __init__(self, log_path: Path) -> None:
        self.log_path = log_path
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.logger = logging.getLogger("cg.audit")

    @staticmethod
    def hash_inputs(inputs: dict[str, Any]) -> str:
        payload = json.dumps(inputs, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(payload).hexdigest()

    def log(
        self,
        tool: str,
        inputs: dict[str, Any],
        outcome: str,
        allowed: bool,
        reason: str = "",
        exit_code: int | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """Append one audit event.

        ``outcome`` is ``blocked``, ``success`` or ``failed``.
        """
        event = {
            "timestamp": datetime.now(UTC).isoformat(),
            "action": "execute",
            "tool": tool,
            "inputs_hash": self.hash_inputs(inputs),
            "outcome": outcome,
            "allowed": allowed,
            "reason": reason,
            "exit_code": exit_code,
            "duration_ms": None if duration_ms is None else round(duration_ms, 3),
        }
        line = json.dumps(event, ensure_ascii=True)
        with self.log_path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
        self.logger.info(line)

    def read_events(self) -> list[dict[str, Any]]:
        """Load all recorded events, oldest first."""
        if not self.log_path.exists():
            return []
        with self.log_path.open("r", encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]
