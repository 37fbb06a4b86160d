"""Sync and status commands."""

import click

from .base import async_command, echo_info, echo_last_errors, echo_success, open_services


@click.command()
@click.option("--force", is_flag=True, help="Ignore the reconciliation cool-down.")
@click.pass_context
@async_command
async def sync(ctx: click.Context, force: bool):
    """Reconcile local workouts and profile with the remote store."""
    async with open_services(ctx) as services:
        if not services.gateway.is_authenticated():
            echo_info("Not signed in; local data only.")
            return

        if force:
            await services.workouts.reconcile_with_remote(force_reload=True)
        await services.workouts.wait_for_background()

        echo_last_errors(services)
        echo_success(f"{len(services.workouts.workouts)} workouts in sync")


@click.command()
@click.pass_context
@async_command
async def status(ctx: click.Context):
    """Show sign-in state, stored data and the active workout."""
    async with open_services(ctx, sync=False) as services:
        signed_in = services.gateway.is_authenticated()
        click.echo(f"Data directory: {services.store.data_dir}")
        click.echo(f"Remote: {'configured' if services.settings.remote_enabled else 'not configured'}")
        click.echo(f"Signed in: {'yes' if signed_in else 'no'}")
        click.echo(f"Workouts: {len(services.workouts.workouts)}")

        profile = services.profile.profile
        click.echo(f"Profile: {profile.name if profile else 'none'}")

        active = services.workouts.active_workout
        if active:
            sets = sum(len(e.sets) for e in active.exercises)
            click.echo(f"Active workout: {active.name} ({len(active.exercises)} exercises, {sets} sets)")
        else:
            click.echo("Active workout: none")
