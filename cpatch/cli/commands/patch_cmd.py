from __future__ import annotations

import os
from pathlib import Path
from typing import NoReturn

import typer

from cpatch.build.bindiff import ExternalDiffTool
from cpatch.build.invoker import FlutterBuildInvoker
from cpatch.cli.context import build_context
from cpatch.core.errors import ErrorCode
from cpatch.core.model import ReleasePlatform
from cpatch.output.console import Style
from cpatch.output.errors import outcome_exit_code, print_outcome
from cpatch.patch.coordinator import PatchDeps, PatchRequest, PublishCoordinator, PublishOptions
from cpatch.store.client import DEFAULT_BASE_URL, CodePushArtifactStore
from cpatch.store.http import RealHttpClient

TOKEN_ENV = "CPATCH_TOKEN"
DIFF_TOOL_ENV = "CPATCH_DIFF_TOOL"

patch_app = typer.Typer(add_completion=False, no_args_is_help=True)


def _exit(err: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    raise typer.Exit(code=int(code))


def _confirm(message: str) -> bool:
    return typer.confirm(message, default=False)


def run_patch(
    platform: ReleasePlatform,
    *,
    project: Path | None,
    flavor: str | None,
    target: str | None,
    track: str,
    release_version: str | None,
    force: bool,
    dry_run: bool,
    toolchain_root: Path | None,
    diff_tool: str | None,
    verbose: bool,
) -> None:
    if force and dry_run:
        _exit("Cannot use both --force and --dry-run.", code=ErrorCode.USER_ERROR)

    ctx = build_context(project=project, toolchain_root=toolchain_root, verbose=verbose)

    app_id = ctx.config.app_id_for(flavor)
    if app_id is None:
        ctx.console.error(f"Unknown flavor: {flavor}")
        if ctx.config.flavors:
            ctx.console.print(f"Available: {', '.join(sorted(ctx.config.flavors))}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    tool = diff_tool or os.environ.get(DIFF_TOOL_ENV) or "cpatch-diff"
    http = RealHttpClient(token=os.environ.get(TOKEN_ENV))
    coordinator = PublishCoordinator(
        PatchDeps(
            store=CodePushArtifactStore(http, ctx.environment.hosted_url or DEFAULT_BASE_URL),
            build_invoker=FlutterBuildInvoker(ctx.project_root),
            binary_differ=ExternalDiffTool(tool),
            console=ctx.console,
            confirm=_confirm,
        )
    )

    outcome = coordinator.publish_patch(
        PatchRequest(
            app_id=app_id,
            platform=platform,
            flutter_revision=ctx.environment.flutter_revision,
            track=track,
            flavor=flavor,
            target=target,
            release_version=release_version,
            options=PublishOptions(force=force, dry_run=dry_run, is_ci=ctx.environment.is_ci),
        )
    )

    print_outcome(outcome, ctx.console)
    code = outcome_exit_code(outcome)
    if code != int(ErrorCode.OK):
        raise typer.Exit(code=code)


_PROJECT = typer.Option(None, "--project", help="Project root (defaults to cwd)")
_FLAVOR = typer.Option(None, "--flavor", help="The product flavor to build")
_TARGET = typer.Option(None, "--target", "-t", help="Main entrypoint of the application")
_TRACK = typer.Option("stable", "--track", help="Track to publish the patch to")
_RELEASE_VERSION = typer.Option(
    None, "--release-version", help="Release to patch (defaults to pubspec version)"
)
_FORCE = typer.Option(False, "--force", "-f", help="Patch without confirmation")
_DRY_RUN = typer.Option(False, "--dry-run", "-n", help="Validate but do not upload the patch")
_TOOLCHAIN_ROOT = typer.Option(None, "--toolchain-root", help="Flutter toolchain install root")
_DIFF_TOOL = typer.Option(None, "--diff-tool", help="Binary diff executable")
_VERBOSE = typer.Option(False, "--verbose", "-v", help="Show detailed output")


@patch_app.command("android")
def android(
    project: Path | None = _PROJECT,
    flavor: str | None = _FLAVOR,
    target: str | None = _TARGET,
    track: str = _TRACK,
    release_version: str | None = _RELEASE_VERSION,
    force: bool = _FORCE,
    dry_run: bool = _DRY_RUN,
    toolchain_root: Path | None = _TOOLCHAIN_ROOT,
    diff_tool: str | None = _DIFF_TOOL,
    verbose: bool = _VERBOSE,
) -> None:
    """Publish a patch for an Android release."""
    run_patch(
        ReleasePlatform.ANDROID,
        project=project,
        flavor=flavor,
        target=target,
        track=track,
        release_version=release_version,
        force=force,
        dry_run=dry_run,
        toolchain_root=toolchain_root,
        diff_tool=diff_tool,
        verbose=verbose,
    )


@patch_app.command("ios")
def ios(
    project: Path | None = _PROJECT,
    flavor: str | None = _FLAVOR,
    target: str | None = _TARGET,
    track: str = _TRACK,
    release_version: str | None = _RELEASE_VERSION,
    force: bool = _FORCE,
    dry_run: bool = _DRY_RUN,
    toolchain_root: Path | None = _TOOLCHAIN_ROOT,
    diff_tool: str | None = _DIFF_TOOL,
    verbose: bool = _VERBOSE,
) -> None:
    """Publish a patch for an iOS release."""
    run_patch(
        ReleasePlatform.IOS,
        project=project,
        flavor=flavor,
        target=target,
        track=track,
        release_version=release_version,
        force=force,
        dry_run=dry_run,
        toolchain_root=toolchain_root,
        diff_tool=diff_tool,
        verbose=verbose,
    )
