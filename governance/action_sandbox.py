"""Workspace sandbox guards."""

from __future__ import annotations

from pathlib import Path, PurePosixPath


def is_within_workspace(path: Path, workspace_dir: Path) -> bool:
    """Return True if path is inside workspace directory."""
    try:
        path.resolve().relative_to(workspace_dir.resolve())
        return True
    except ValueError:
        return False


def is_traversal_path(path: str) -> bool:
    """Check if path contains directory traversal segments."""
    parts = PurePosixPath(path.replace("\\", "/")).parts
    return ".." in parts


def resolve_working_directory(path: str | None, workspace_dir: Path) -> Path:
    """Resolve a requested working directory against the workspace root.

    Relative paths are taken relative to the workspace, absolute paths are
    used as given. Existence is not checked here. Raises ValueError for a
    path the OS cannot represent.
    """
    if not path:
        return workspace_dir.resolve()
    if "\x00" in path:
        raise ValueError("embedded null byte")
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = workspace_dir / candidate
    return candidate.resolve()
