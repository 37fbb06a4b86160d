"""Active session commands."""

import click

from .base import async_command, echo_info, echo_success, open_services


@click.group()
def session():
    """Inspect or clear the resumable workout session."""
    pass


@session.command("show")
@click.pass_context
@async_command
async def show(ctx: click.Context):
    """Show the workout that would be resumed."""
    async with open_services(ctx, sync=False) as services:
        state = services.workouts.session
        if state.selected_workout_day_name:
            click.echo(f"Selected day: {state.selected_workout_day_name}")

        workout = state.workout
        if workout is None:
            echo_info("No active workout.")
            return

        click.echo(click.style(f"{workout.name} ({workout.date:%Y-%m-%d %H:%M})", bold=True))
        for exercise in workout.exercises:
            sets = ", ".join(f"{s.weight:g}x{s.reps}" for s in exercise.sets) or "no sets"
            click.echo(f"  {exercise.name}: {sets}")


@session.command("clear")
@click.pass_context
@async_command
async def clear(ctx: click.Context):
    """Forget the resumable session."""
    async with open_services(ctx, sync=False) as services:
        await services.session.clear()
        services.workouts.session.clear()
        echo_success("Session cleared")
