"""Profile commands."""

import click

from .base import async_command, echo_info, open_services


@click.group()
def profile():
    """Show the user profile."""
    pass


@profile.command("show")
@click.pass_context
@async_command
async def show(ctx: click.Context):
    """Show the profile, split and goals."""
    async with open_services(ctx, sync=False) as services:
        current = services.profile.profile
        if current is None:
            echo_info("No profile stored.")
            return

        click.echo(click.style(current.name, bold=True) + f" <{current.email}>")
        if current.bio:
            click.echo(current.bio)

        if current.workout_split:
            click.echo()
            click.echo(click.style("Split:", bold=True))
            for day in current.workout_split:
                names = ", ".join(t.name for t in day.exercises) or "no exercises"
                click.echo(f"  {day.name}: {names}")

        if current.goals:
            click.echo()
            click.echo(click.style("Goals:", bold=True))
            for goal in current.goals:
                click.echo(
                    f"  {goal.exercise_name}: {goal.current_weight:g}/{goal.target_weight:g}"
                    f" ({goal.progress_percentage:.0f}%)"
                )

        bw = current.body_weight_goal
        if bw:
            click.echo()
            direction = "loss" if bw.is_weight_loss else "gain"
            click.echo(
                f"Body weight ({direction}): {bw.current_weight:g} -> {bw.target_weight:g}"
                f" ({bw.progress_percentage:.0f}%)"
            )
