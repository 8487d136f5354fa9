"""Typer command handlers."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer

from core.orchestrator import Orchestrator, RuntimeBundle
from tools.system_tools.shell_tool import ExecuteCommandTool

_state: dict[str, Path | None] = {"root": None, "config": None}


def configure(root: Path | None, config: Path | None) -> None:
    """Remember global options for later runtime construction."""
    _state["root"] = root
    _state["config"] = config


def _runtime() -> RuntimeBundle:
    return Orchestrator(root=_state["root"], config_path=_state["config"]).build()


def _shell_tool(bundle: RuntimeBundle) -> ExecuteCommandTool:
    tool = bundle.tool_registry.get(ExecuteCommandTool.name)
    if not isinstance(tool, ExecuteCommandTool):
        typer.echo(f"Tool '{ExecuteCommandTool.name}' is disabled.", err=True)
        raise typer.Exit(code=1)
    return tool


def run(command: str, cwd: str | None, timeout: int | None, as_json: bool) -> None:
    """Execute a command through the guarded tool."""
    bundle = _runtime()
    payload: dict[str, object] = {"command": command}
    if cwd is not None:
        payload["workingDirectory"] = cwd
    if timeout is not None:
        payload["timeout"] = timeout
    result = asyncio.run(_shell_tool(bundle).execute(payload))

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        if result.output:
            typer.echo(result.output, nl=not result.output.endswith("\n"))
        if result.metadata.stderr:
            typer.echo(result.metadata.stderr, err=True, nl=not result.metadata.stderr.endswith("\n"))
        if not result.success:
            typer.echo(f"error: {result.error}", err=True)

    if not result.success:
        exit_code = result.metadata.exit_code
        raise typer.Exit(code=exit_code if exit_code and exit_code > 0 else 1)


def check(command: str, cwd: str | None) -> None:
    """Validate a command without running it."""
    bundle = _runtime()
    decision = bundle.permissions.check(
        command=command,
        workspace_dir=bundle.workspace_dir,
        working_directory=cwd,
    )
    if decision.allowed:
        typer.echo("allowed")
        return
    typer.echo(decision.reason)
    raise typer.Exit(code=1)


def tools_list() -> None:
    """List registered tools."""
    bundle = _runtime()
    for tool in bundle.tool_registry.list_tools():
        status = "enabled" if tool.enabled else "disabled"
        typer.echo(f"{tool.name}: {status} - {tool.description}")


def config_show() -> None:
    """Show effective runtime config."""
    bundle = _runtime()
    typer.echo(json.dumps(bundle.config, indent=2, default=str))
