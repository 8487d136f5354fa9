"""CLI entrypoint for command-guard."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from ui.cli import commands

app = typer.Typer(help="Guarded shell command executor")
config_app = typer.Typer(help="Configuration commands")
tools_app = typer.Typer(help="Tool commands")


@app.callback()
def main_callback(
    root: Path | None = typer.Option(None, "--root", help="Project root holding config/ and the workspace"),
    config: Path | None = typer.Option(None, "--config", help="Extra YAML config file"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    """Global options."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    commands.configure(root=root, config=config)


@app.command("run")
def run_cmd(
    command: str = typer.Argument(..., help="Shell command to execute"),
    cwd: str | None = typer.Option(None, "--cwd", help="Working directory inside the workspace"),
    timeout: int | None = typer.Option(None, "--timeout", min=1, help="Timeout in milliseconds"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
) -> None:
    """Run a command after safety validation."""
    commands.run(command=command, cwd=cwd, timeout=timeout, as_json=as_json)


@app.command("check")
def check_cmd(
    command: str = typer.Argument(..., help="Shell command to validate"),
    cwd: str | None = typer.Option(None, "--cwd", help="Working directory inside the workspace"),
) -> None:
    """Validate a command without running it."""
    commands.check(command=command, cwd=cwd)


@config_app.command("show")
def config_show_cmd() -> None:
    """Show effective configuration."""
    commands.config_show()


@tools_app.command("list")
def tools_list_cmd() -> None:
    """List tool status."""
    commands.tools_list()


app.add_typer(config_app, name="config")
app.add_typer(tools_app, name="tools")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
