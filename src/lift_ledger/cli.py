"""CLI entry point for lift-ledger."""

import click

from .config import APP_VERSION, configure_logging
from .commands import init, migrate, serve, users


@click.group()
@click.version_option(version=APP_VERSION, prog_name="lift-ledger")
@click.option("--log-level", default=None, help="Override LIFT_LEDGER_LOG_LEVEL")
def main(log_level: str | None):
    """lift-ledger: workout tracking with a shared weekly schedule.

    Example usage:

        # Create the database, seed exercises and the weekly schedule
        lift-ledger init

        # Run the API
        lift-ledger serve --port 8000

        # Backfill snapshots on old workouts
        lift-ledger migrate --fix
    """
    configure_logging(log_level.upper() if log_level else None)


# Register commands
main.add_command(init)
main.add_command(serve)
main.add_command(migrate)
main.add_command(users)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
