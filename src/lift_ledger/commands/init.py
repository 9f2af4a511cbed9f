"""Initialize project command."""

import click

from ..db import get_db_path, init_db, seed_exercises
from ..models.schedule import DEFAULT_DAY_NAMES
from ..services.schedule import ScheduleService
from .base import async_command, echo_info, echo_success, get_data_dir


@click.command()
@async_command
async def init():
    """Initialize the lift-ledger database.

    Creates the data directory and schema, seeds the global exercise catalog
    and sets up any missing days of the weekly schedule. Safe to re-run.
    """
    data_dir = get_data_dir()
    db_path = get_db_path(data_dir)

    echo_info(f"Initializing lift-ledger in {data_dir}")

    await init_db(db_path)
    echo_success("Database initialized")

    count = await seed_exercises(db_path)
    echo_success(f"Exercise catalog populated ({count} new exercises)")

    created = await ScheduleService(db_path).initialize()
    if created:
        echo_success(f"Weekly schedule initialized ({len(created)} days created)")
        for day in created:
            click.echo(f"  {day}: {DEFAULT_DAY_NAMES[day]}")
    else:
        echo_info("Weekly schedule already complete")

    click.echo()
    click.echo("lift-ledger is ready to use!")
    click.echo()
    click.echo("Next steps:")
    click.echo("  lift-ledger serve                    # Start the API server")
    click.echo("  lift-ledger users make-admin <id>    # Grant admin rights")
