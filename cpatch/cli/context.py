from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from cpatch.core.config import CONFIG_FILENAME, ProjectConfig, load_config
from cpatch.core.environment import RuntimeEnvironment, load_environment
from cpatch.core.errors import ErrorCode
from cpatch.core.result import Err
from cpatch.output.console import ConsoleProtocol, RichConsole

TOOLCHAIN_ROOT_ENV = "CPATCH_TOOLCHAIN_ROOT"


@dataclass(frozen=True, slots=True)
class CLIContext:
    project_root: Path
    config: ProjectConfig
    environment: RuntimeEnvironment
    console: ConsoleProtocol


def build_context(
    *,
    project: Path | None = None,
    toolchain_root: Path | None = None,
    verbose: bool = False,
) -> CLIContext:
    root = (project or Path.cwd()).expanduser().resolve()

    config_result = load_config(root / CONFIG_FILENAME)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        typer.echo("hint: run from a project containing cpatch.toml, or pass --project", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))
    config = config_result.value

    if toolchain_root is None and os.environ.get(TOOLCHAIN_ROOT_ENV):
        toolchain_root = Path(os.environ[TOOLCHAIN_ROOT_ENV])

    env_result = load_environment(
        os.environ, toolchain_root=toolchain_root, base_url=config.base_url
    )
    if isinstance(env_result, Err):
        typer.echo(f"error: {env_result.error.message}", err=True)
        if env_result.error.hint:
            typer.echo(f"hint: {env_result.error.hint}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        project_root=root,
        config=config,
        environment=env_result.value,
        console=RichConsole(verbose=verbose),
    )
