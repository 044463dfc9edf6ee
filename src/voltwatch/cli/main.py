"""CLI entry-point: Click command group and dispatch."""

from __future__ import annotations

import dataclasses
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from voltwatch.api.errors import AuthError, ConfigError, RemoteRejectedError
from voltwatch.output.formatter import OutputFormatter

# Third-party loggers that are noisy at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn", "uvicorn.error", "uvicorn.access")


# ---------------------------------------------------------------------------
# Application context (stored in ctx.obj)
# ---------------------------------------------------------------------------


@dataclasses.dataclass
class AppContext:
    """Shared state passed to every Click command via ``@click.pass_obj``."""

    output_format: str | None
    verbose: bool
    _formatter: OutputFormatter | None = dataclasses.field(default=None, repr=False)

    @property
    def formatter(self) -> OutputFormatter:
        if self._formatter is None:
            self._formatter = OutputFormatter(force_format=self.output_format)
        return self._formatter


def configure_logging(verbose: bool) -> None:
    """Route logging through Rich on stderr; DEBUG when *verbose*."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=verbose)],
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)


# ---------------------------------------------------------------------------
# Root Click group
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["rich", "json", "quiet"]),
    default=None,
    help="Output format (default: auto-detect)",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, output_format: str | None, verbose: bool) -> None:
    """Monitor Tesla vehicles and automate ChargePoint charging."""
    configure_logging(verbose)
    ctx.obj = AppContext(output_format=output_format, verbose=verbose)


def _register_commands() -> None:
    """Import and attach all subcommands to the root CLI."""
    from voltwatch.cli.chargers import chargers_cmd
    from voltwatch.cli.serve import serve_cmd
    from voltwatch.cli.vehicle import snapshot_cmd, vehicles_cmd

    cli.add_command(chargers_cmd)
    cli.add_command(serve_cmd)
    cli.add_command(snapshot_cmd)
    cli.add_command(vehicles_cmd)


_register_commands()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the appropriate command handler."""
    try:
        cli(args=argv, standalone_mode=False)
    except click.exceptions.Exit as exc:
        raise SystemExit(exc.exit_code) from None
    except click.exceptions.Abort:
        raise SystemExit(1) from None
    except click.ClickException as exc:
        exc.show()
        raise SystemExit(exc.exit_code) from None
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except SystemExit:
        raise
    except Exception as exc:
        app_ctx = _extract_app_ctx()
        formatter = app_ctx.formatter if app_ctx else OutputFormatter()
        cmd_name = _get_command_name()
        code, message = _describe_error(exc)
        formatter.output_error(code=code, message=message, command=cmd_name)
        raise SystemExit(1) from exc


# ---------------------------------------------------------------------------
# Helpers for error handling
# ---------------------------------------------------------------------------


def _extract_app_ctx() -> AppContext | None:
    """Try to extract AppContext from the current Click context."""
    ctx = click.get_current_context(silent=True)
    while ctx is not None:
        if isinstance(ctx.obj, AppContext):
            return ctx.obj
        ctx = ctx.parent
    return None


def _get_command_name() -> str:
    """Reconstruct a dotted command name from the Click context chain."""
    ctx = click.get_current_context(silent=True)
    parts: list[str] = []
    while ctx is not None:
        if ctx.info_name and ctx.info_name != "cli":
            parts.append(ctx.info_name)
        ctx = ctx.parent
    return ".".join(reversed(parts)) or "unknown"


def _describe_error(exc: Exception) -> tuple[str, str]:
    """Map well-known errors to a stable code and a friendly message."""
    if isinstance(exc, ConfigError):
        return "config_error", str(exc)
    if isinstance(exc, AuthError):
        message = str(exc) or "Authentication failed. Your access token may be expired."
        return "auth_failed", f"{message} Refresh VOLTWATCH_TESLA_ACCESS_TOKEN and retry."
    if isinstance(exc, RemoteRejectedError):
        return "rejected", str(exc)
    if isinstance(exc, OSError):
        return "os_error", str(exc)
    return type(exc).__name__, str(exc)
