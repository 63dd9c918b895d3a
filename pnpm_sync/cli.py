"""CLI entry point: pnpm-sync.

Subcommands:
    pnpm-sync prepare -l pnpm-lock.yaml -s node_modules/.pnpm   # write .pnpm-sync.json files
    pnpm-sync copy                                              # run node_modules/.pnpm-sync.json
    pnpm-sync copy -p path/to/.pnpm-sync.json                   # run a specific plan
"""

from __future__ import annotations

import asyncio
import sys
from typing import NoReturn

import click

from pnpm_sync import __version__
from pnpm_sync.copy.executor import execute_sync_plan
from pnpm_sync.core.config import DEFAULT_SYNC_PLAN_PATH
from pnpm_sync.core.logging import LOG_FORMATS, setup_logging
from pnpm_sync.events import LogMessage, LogMessageKind, structlog_callback
from pnpm_sync.exceptions import PnpmSyncError
from pnpm_sync.prepare import prepare


class EventReporter:
    """Log sink for the CLI: hides verbose events unless asked, remembers failures.

    Error and warning events do not raise; the CLI still exits non-zero
    after any of them.
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self.failed = False

    def __call__(self, message: LogMessage) -> None:
        if message.kind in (LogMessageKind.ERROR, LogMessageKind.WARNING):
            self.failed = True
        if message.kind is LogMessageKind.VERBOSE and not self.verbose:
            return
        structlog_callback(message)


def _fail(error: Exception) -> NoReturn:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="pnpm-sync")
@click.option("-v", "--verbose", is_flag=True, help="Show verbose log messages")
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS),
    default=None,
    help="Log output format (default: $PNPM_SYNC_LOG_FORMAT or console)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, log_format: str | None) -> None:
    """pnpm-sync: keep injected workspace dependencies in sync with their build output."""
    setup_logging(verbose, log_format)
    ctx.obj = EventReporter(verbose=verbose)


@main.command("prepare")
@click.option(
    "-l", "--lockfile", required=True, type=click.Path(), help="The pnpm-lock.yaml file path"
)
@click.option("-s", "--store", required=True, type=click.Path(), help="The .pnpm folder path")
@click.option(
    "--lockfile-id",
    default=None,
    help="Tag written target folders; a rerun with the same id replaces only those entries",
)
@click.pass_obj
def prepare_command(
    reporter: EventReporter,
    lockfile: str,
    store: str,
    lockfile_id: str | None,
) -> None:
    """Generate .pnpm-sync.json files from pnpm-lock.yaml and the .pnpm folder."""
    try:
        result = prepare(
            lockfile,
            store,
            version=__version__,
            lockfile_id=lockfile_id,
            log_callback=reporter,
        )
    except (PnpmSyncError, OSError) as e:
        _fail(e)

    if reporter.failed:
        sys.exit(1)
    click.echo(f"Wrote {len(result.plan_paths)} .pnpm-sync.json file(s)")


@main.command("copy")
@click.option(
    "-p",
    "--pnpm-sync-json-path",
    "plan_path",
    default=DEFAULT_SYNC_PLAN_PATH,
    show_default=True,
    type=click.Path(),
    help="The .pnpm-sync.json file to execute",
)
@click.pass_obj
def copy_command(reporter: EventReporter, plan_path: str) -> None:
    """Copy build output into injected dependency folders per .pnpm-sync.json."""
    try:
        result = asyncio.run(
            execute_sync_plan(plan_path, version=__version__, log_callback=reporter)
        )
    except (PnpmSyncError, OSError) as e:
        _fail(e)

    if reporter.failed:
        sys.exit(1)
    click.echo(f"Synced {result.file_count} file(s) in {result.elapsed_time:.3f}s")


if __name__ == "__main__":
    main()
