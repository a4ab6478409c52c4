"""Click-based command line interface.

Purpose
-------
Expose package metadata and the demonstration run from a shell:
``lib_log_dispatch info`` and ``lib_log_dispatch logdemo``.

Contents
--------
* :func:`cli` - command group holding the global options.
* :func:`cli_info` / :func:`cli_logdemo` - subcommands.
* :func:`main` - entry point delegating to :func:`lib_cli_exit_tools.run_cli`.

System Role
-----------
Presentation layer only; it builds runtimes through
:mod:`lib_log_dispatch.runtime` and never touches inner layers directly.
"""

from __future__ import annotations

import os
from typing import Any, Sequence

import click
import lib_cli_exit_tools

from . import __init__conf__
from . import config as dotenv_config
from .demo import logdemo as _logdemo
from .domain import DROP_REASONS, EncodingFormat, LogLevel

CLICK_CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

_LEVEL_CHOICES = [level.name for level in LogLevel] + ["WARN"]


def summary_info() -> str:
    """Return the metadata banner printed by ``info``."""
    lines: list[str] = []
    __init__conf__.print_info(writer=lines.append)
    return "".join(lines)


@click.group(help=__init__conf__.title, context_settings=CLICK_CONTEXT_SETTINGS, invoke_without_command=True)
@click.version_option(
    version=__init__conf__.version,
    prog_name=__init__conf__.shell_command,
    message=f"{__init__conf__.shell_command} version {__init__conf__.version}",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=None,
    help=f"Load LOG_* variables from the nearest .env (default: follow {dotenv_config.DOTENV_ENV_VAR}).",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, use_dotenv: bool | None) -> None:
    """Root command storing global flags."""
    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    if dotenv_config.should_use_dotenv(explicit=use_dotenv, env_value=os.getenv(dotenv_config.DOTENV_ENV_VAR)):
        dotenv_config.enable_dotenv()
    if ctx.invoked_subcommand is None:
        click.echo(summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print resolved metadata so users can inspect installation details."""
    click.echo(summary_info(), nl=False)


@cli.command("logdemo", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option(
    "--user-input",
    default=None,
    help="Value logged as 'User input: {}' (default: $LOG_DEMO_USER_INPUT or 'Hello, world!').",
)
@click.option(
    "--min-level",
    type=click.Choice(_LEVEL_CHOICES, case_sensitive=False),
    default="DEBUG",
    show_default=True,
    help="Severity threshold of the demo runtime.",
)
@click.option(
    "--format",
    "encoding",
    type=click.Choice([fmt.value for fmt in EncodingFormat], case_sensitive=False),
    default=EncodingFormat.TEXT.value,
    show_default=True,
    help="Output format of the console sink.",
)
@click.option("--force-color", is_flag=True, default=False, help="Force ANSI colour on the console sink.")
@click.option("--no-color", is_flag=True, default=False, help="Disable colour on the console sink.")
def cli_logdemo(user_input: str | None, min_level: str, encoding: str, force_color: bool, no_color: bool) -> None:
    """Log one user-supplied value plus one record per level, then report delivery."""
    result = _logdemo(
        user_input=user_input,
        min_level=min_level,
        encoding=encoding,
        force_color=force_color,
        no_color=no_color,
        writer=click.echo,
    )
    click.echo(_format_summary(result))


def _format_summary(result: dict[str, Any]) -> str:
    snapshot = result["snapshot"]
    report = result["shutdown"]
    dropped = ", ".join(f"{reason}={snapshot.dropped.get(reason, 0)}" for reason in DROP_REASONS)
    return "\n".join(
        [
            f"accepted: {snapshot.total_accepted}  delivered: {snapshot.delivered}",
            f"dropped: {dropped}",
            f"shutdown: drained={report.drained} dropped={report.dropped} timed_out={report.timed_out}",
        ]
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI through ``lib_cli_exit_tools`` and restore traceback settings.

    Returns the exit code so the console script and ``python -m`` share one path.
    """
    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        lib_cli_exit_tools.config.traceback = previous_traceback
        lib_cli_exit_tools.config.traceback_force_color = previous_force_color


__all__ = ["cli", "main", "summary_info"]
