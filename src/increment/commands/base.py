"""Shared CLI utilities."""

import asyncio
from contextlib import asynccontextmanager
from functools import wraps

import click

from ..app import AppServices, create_services


def async_command(f):
    """Decorator to run async Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


@asynccontextmanager
async def open_services(ctx: click.Context, sync: bool = True):
    """Start the app services for one command and shut them down after."""
    obj = ctx.find_root().obj
    services: AppServices = create_services(obj["settings"])
    await services.start(sync=sync and not obj["offline"])
    try:
        yield services
    finally:
        await services.shutdown()


def echo_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("[OK] ", fg="green") + message)


def echo_error(message: str) -> None:
    """Print an error message."""
    click.echo(click.style("[ERROR] ", fg="red") + message)


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(click.style("[INFO] ", fg="blue") + message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.echo(click.style("[WARN] ", fg="yellow") + message)


def echo_last_errors(services: AppServices) -> None:
    """Print any remote failures the repositories recorded."""
    for label, error in (
        ("workouts", services.workouts.last_error),
        ("profile", services.profile.last_error),
    ):
        if error:
            echo_warning(f"{label}: {error}")


def format_table(headers: list[str], rows: list[list[str]], padding: int = 2) -> str:
    """Format data as a simple table."""
    if not rows:
        return ""

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    lines = ["".join(h.ljust(widths[i] + padding) for i, h in enumerate(headers))]
    lines.append("".join("-" * w + " " * padding for w in widths))
    for row in rows:
        lines.append(
            "".join(str(cell).ljust(widths[i] + padding) for i, cell in enumerate(row))
        )

    return "\n".join(line.rstrip() for line in lines)
