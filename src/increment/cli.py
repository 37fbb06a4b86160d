"""CLI entry point for increment."""

from pathlib import Path

import click

from . import __version__
from .commands import profile, session, status, sync, workouts
from .config import load_settings
from .utils.logging_utils import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="increment")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Override INCREMENT_DATA_DIR.",
)
@click.option("--offline", is_flag=True, help="Do not contact the remote store.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity.")
@click.pass_context
def main(ctx: click.Context, data_dir: Path | None, offline: bool, verbose: int):
    """increment: offline-first workout log.

    Workouts and profile are stored locally and, when a Supabase project is
    configured and credentials are set, reconciled with it.

    Example usage:

        increment status
        increment sync --force
        increment workouts log-weight 182.5
        increment session show
    """
    settings = load_settings()
    if data_dir is not None:
        settings.data_dir = data_dir

    level = settings.log_level
    if verbose == 1:
        level = "INFO"
    elif verbose > 1:
        level = "DEBUG"
    setup_logging(level)

    ctx.obj = {"settings": settings, "offline": offline}


# Register commands
main.add_command(status)
main.add_command(sync)
main.add_command(workouts)
main.add_command(profile)
main.add_command(session)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
