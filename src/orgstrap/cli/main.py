#!/usr/bin/env python3
"""
orgstrap CLI - Main entry point.

Usage:
    orgstrap [OPTIONS] COMMAND [ARGS]...

Bootstraps a Google Cloud organization (projects, billing, CI service
accounts, workload identity federation, registry, IAM) so GitHub Actions
can deploy infrastructure into it.
"""

import json
import logging
import os
import shlex
from typing import Optional

import typer
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from ..bootstrap import BootstrapService, list_steps, plan as plan_bootstrap
from ..bootstrap.report import render_text, to_dict
from ..config import DEFAULT_CONFIG_PATH, load_config
from ..gcloud_client import get_client
from ..operations import OperationReporter
from .async_typer import AsyncTyper
from .decorators import handle_errors, require_gcloud
from .output import out


# Create the main Typer app
app = AsyncTyper(
    name="orgstrap",
    help="Bootstrap a Google Cloud organization for CI deployments",
    add_completion=True,
    no_args_is_help=True,
)

ConfigOption = typer.Option(
    DEFAULT_CONFIG_PATH,
    "--config",
    "-c",
    envvar="ORGSTRAP_CONFIG",
    help="Path to the bootstrap YAML configuration",
)
JsonOption = typer.Option(
    False,
    "--json",
    help="Print the CI report as JSON instead of text",
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        out.info(f"orgstrap version {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=out.err_console, show_path=False)],
        force=True,
    )


def _print_report(report, as_json: bool) -> None:
    if as_json:
        out.plain(json.dumps(to_dict(report), indent=2) + "\n")
    else:
        out.plain(render_text(report))


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every gcloud invocation.",
    ),
) -> None:
    """
    orgstrap - one-time Google Cloud organization bootstrap.

    Creates shared/dev/prod projects, a state bucket, CI identities with
    workload identity federation for GitHub Actions, a container
    registry and the IAM grants CI needs, then prints the variables to
    copy into GitHub.
    """
    _configure_logging(verbose)


@app.command()
@require_gcloud
async def run(
    config: str = ConfigOption,
    as_json: bool = JsonOption,
) -> None:
    """Run the bootstrap against the organization.

    Every step checks for existing resources first, so after a failure
    it is safe to fix the cause and run again.
    """
    cfg = load_config(config)
    progress = OperationReporter(out.err_console)
    service = BootstrapService(cfg, get_client(), progress=progress)
    ctx = await service.run()

    if ctx.report is not None:
        out.err_console.print()
        _print_report(ctx.report, as_json)


@app.command()
@handle_errors
async def plan(
    config: str = ConfigOption,
) -> None:
    """Show every gcloud command a bootstrap would run, without running any.

    Values only known after creation (such as the project number in the
    workload identity pool name) are shown as placeholders.
    """
    cfg = load_config(config)
    result = await plan_bootstrap(cfg)

    for argv in result.commands:
        out.plain(shlex.join(argv) + "\n")
    out.plain("\n")
    _print_report(result.report, as_json=False)


@app.command()
@require_gcloud
async def report(
    config: str = ConfigOption,
    as_json: bool = JsonOption,
) -> None:
    """Print the CI variables and secrets of an existing bootstrap."""
    cfg = load_config(config)
    service = BootstrapService(cfg, get_client())
    _print_report(await service.current_report(), as_json)


@app.command()
@handle_errors
async def check(
    config: str = ConfigOption,
) -> None:
    """Validate the configuration and show the resolved values."""
    cfg = load_config(config)

    table = Table(title="Bootstrap configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    for key, value in cfg.model_dump(exclude={"wait"}).items():
        table.add_row(key, "" if value is None else str(value))
    table.add_row("parent", cfg.parent)
    for env in cfg.environments():
        table.add_row(f"{env.name} identity", env.service_account)
    table.add_row(
        "wait",
        f"initial {cfg.wait.initial_delay:g}s, max {cfg.wait.max_delay:g}s, "
        f"timeout {cfg.wait.timeout:g}s",
    )
    out.console.print(table)
    out.success("Configuration is valid.")


@app.command()
def steps() -> None:
    """List the bootstrap steps in execution order."""
    table = Table(title="Bootstrap steps")
    table.add_column("Order", justify="right", style="dim")
    table.add_column("Step", style="cyan", no_wrap=True)
    table.add_column("Description")
    for step in list_steps():
        table.add_row(str(step.order), step.name, step.description)
    out.console.print(table)


def cli() -> None:
    """CLI entry point for the console script."""
    prog_name = os.environ.get("ORGSTRAP_PROG_NAME", "orgstrap")
    app(prog_name=prog_name)


if __name__ == "__main__":
    cli()
