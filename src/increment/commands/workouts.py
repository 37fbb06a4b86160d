"""Workout history commands."""

from datetime import datetime
from pathlib import Path

import click

from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_last_errors,
    echo_success,
    format_table,
    open_services,
)


@click.group()
def workouts():
    """Browse and edit workout history."""
    pass


@workouts.command("list")
@click.option(
    "--date",
    "day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Only show workouts on this day (YYYY-MM-DD).",
)
@click.pass_context
@async_command
async def list_workouts(ctx: click.Context, day: datetime | None):
    """List logged workouts, newest first."""
    async with open_services(ctx, sync=False) as services:
        repo = services.workouts
        items = repo.workouts_for_date(day.date()) if day else list(repo.workouts)

        if not items:
            echo_info("No workouts found.")
            return

        items.sort(key=lambda w: w.date.timestamp(), reverse=True)
        rows = []
        for w in items:
            detail = f"{sum(len(e.sets) for e in w.exercises)} sets"
            if w.body_weight is not None:
                detail = f"{w.body_weight:g} lbs"
            elif w.progress_photo_url:
                detail = "photo"
            rows.append([w.date.strftime("%Y-%m-%d"), w.name, detail, w.id])

        click.echo(format_table(["Date", "Name", "Detail", "ID"], rows))


@workouts.command("delete")
@click.argument("workout_id")
@click.pass_context
@async_command
async def delete(ctx: click.Context, workout_id: str):
    """Delete a workout by ID."""
    async with open_services(ctx) as services:
        if not await services.workouts.delete_workout(workout_id):
            echo_error(f"Workout {workout_id} not found.")
            ctx.exit(1)
        echo_last_errors(services)
        echo_success(f"Deleted workout {workout_id}")


@workouts.command("log-weight")
@click.argument("weight", type=click.FloatRange(min=0, min_open=True))
@click.pass_context
@async_command
async def log_weight(ctx: click.Context, weight: float):
    """Log today's body weight."""
    async with open_services(ctx) as services:
        await services.log_body_weight(weight)
        echo_last_errors(services)
        echo_success(f"Logged body weight {weight:g}")


@workouts.command("photo")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
@async_command
async def photo(ctx: click.Context, path: Path):
    """Attach a progress photo to today."""
    async with open_services(ctx) as services:
        url = await services.workouts.log_progress_photo(path.read_bytes())
        if url is None:
            echo_last_errors(services)
            ctx.exit(1)
        echo_success(f"Progress photo saved: {url}")
