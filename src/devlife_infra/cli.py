"""Typer CLI entrypoint."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from .config import BootstrapConfig, load_bootstrap_config, resolve_config_path
from .exceptions import ConfigError, LaunchError, PreflightError, TeardownError
from .logging_utils import configure_logging
from .paths import WorkspacePaths
from .pipeline import BootstrapPipeline, run_verification, teardown as teardown_services
from .reporting import Reporter

app = typer.Typer(help="DevLife Portal infrastructure bootstrap", no_args_is_help=False)


def _load(ctx: typer.Context) -> tuple[BootstrapConfig, WorkspacePaths, Reporter]:
    state = ctx.obj
    reporter = Reporter()
    try:
        config = load_bootstrap_config(state["config_path"])
    except ConfigError as exc:
        reporter.error(str(exc))
        raise typer.Exit(code=1) from exc
    return config, state["paths"], reporter


def _run_setup(ctx: typer.Context, run_id: Optional[str], strict: Optional[bool]) -> None:
    config, paths, reporter = _load(ctx)
    reporter.echo(f"{config.project_name} Development Setup")
    reporter.echo("=" * 40)
    pipeline = BootstrapPipeline(config, paths, reporter=reporter)
    try:
        report = pipeline.run(run_id=run_id)
    except (PreflightError, LaunchError) as exc:
        reporter.error(f"Setup aborted: {exc}")
        raise typer.Exit(code=1) from exc
    except KeyboardInterrupt:
        reporter.echo()
        reporter.warning("Setup interrupted. Run 'devlife-infra' again to continue.")
        raise typer.Exit(code=1)

    exit_code = report.exit_code(strict=config.strict if strict is None else strict)
    if exit_code:
        raise typer.Exit(code=exit_code)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    root: Path = typer.Option(Path("."), "--root", help="Infrastructure checkout; sibling repositories live next to it"),
    config: Optional[Path] = typer.Option(
        None, "--config", envvar="DEVLIFE_CONFIG", help="Bootstrap config YAML (default: config/bootstrap.yaml)"
    ),
    log_format: str = typer.Option("text", "--log-format", envvar="DEVLIFE_LOG_FORMAT", help="text or json"),
    verbose: bool = typer.Option(False, "--verbose", envvar="DEVLIFE_VERBOSE", help="Debug logging on stderr"),
) -> None:
    if log_format not in {"text", "json"}:
        raise typer.BadParameter("log format must be 'text' or 'json'", param_hint="--log-format")
    paths = WorkspacePaths(root.resolve())
    configure_logging(paths.log_file, log_format, verbose)
    ctx.obj = {"paths": paths, "config_path": resolve_config_path(paths.root, config)}
    if ctx.invoked_subcommand is None:
        _run_setup(ctx, run_id=None, strict=None)


@app.command("setup")
def setup(
    ctx: typer.Context,
    run_id: Optional[str] = typer.Option(None, help="Run identifier for logs/<run_id>"),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict", help="Exit 1 when any stage degraded"),
) -> None:
    """Run every bootstrap stage (the default when no command is given)."""
    _run_setup(ctx, run_id=run_id, strict=strict)


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Re-probe the services and report table/collection counts."""
    config, paths, reporter = _load(ctx)
    results = run_verification(config, paths, reporter=reporter)
    if not all(result.healthy for result in results):
        raise typer.Exit(code=1)


@app.command("teardown")
def teardown(
    ctx: typer.Context,
    volumes: bool = typer.Option(False, "--volumes", "-v", help="Also remove named volumes (resets all data)"),
) -> None:
    """Stop and remove the compose services."""
    config, paths, reporter = _load(ctx)
    try:
        teardown_services(config, paths, volumes=volumes)
    except TeardownError as exc:
        reporter.error(str(exc))
        raise typer.Exit(code=1) from exc
    reporter.success("Services stopped" + (" and volumes removed" if volumes else ""))


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
