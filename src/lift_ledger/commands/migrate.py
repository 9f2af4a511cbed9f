"""Snapshot backfill command."""

import click

from ..db import get_db_path
from ..services.migration import SnapshotMigration
from .base import async_command, echo_info, echo_success, echo_warning, ensure_initialized


@click.command()
@click.option("--fix", is_flag=True, help="Also repair rows with a snapshot but no exercise reference")
@click.option("--validate-only", is_flag=True, help="Only check whether every row has a snapshot")
@click.option("--report", "show_report", is_flag=True, help="Print migration totals")
@click.option("--rollback", is_flag=True, help="Clear every snapshot (testing only)")
@click.option("--batch-size", default=100, type=int, help="Rows per transaction (default: 100)")
@click.pass_context
@async_command
async def migrate(
    ctx, fix: bool, validate_only: bool, show_report: bool, rollback: bool, batch_size: int
):
    """Backfill exercise snapshots onto historical workouts.

    Rows logged before snapshots existed get a snapshot of their replacement
    exercise (when replaced) or original exercise.

    Examples:

        lift-ledger migrate
        lift-ledger migrate --fix
        lift-ledger migrate --validate-only
    """
    ensure_initialized(ctx)
    migration = SnapshotMigration(get_db_path(), batch_size=batch_size)

    if rollback:
        if not click.confirm("Clear all exercise snapshots?"):
            echo_info("Rollback cancelled")
            return
        cleared = await migration.rollback()
        echo_warning(f"Cleared {cleared} snapshot(s)")
        return

    if show_report:
        report = await migration.report()
        click.echo()
        click.echo("Snapshot migration report")
        click.echo("-" * 40)
        click.echo(f"Workouts:                {report['total_workouts']}")
        click.echo(f"Workout exercises:       {report['total_workout_exercises']}")
        click.echo(f"With snapshots:          {report['with_snapshots']}")
        click.echo(f"Without snapshots:       {report['without_snapshots']}")
        click.echo(f"Replaced exercises:      {report['replaced_exercises']}")
        click.echo(f"Custom exercises:        {report['custom_exercises']}")
        click.echo(f"Distinct exercises:      {report['unique_exercises']}")
        click.echo(f"Complete:                {'yes' if report['migration_complete'] else 'no'}")
        return

    if not validate_only:
        result = await migration.migrate()
        echo_success(f"Migrated {result.migrated} workout exercise(s)")
        if result.skipped:
            echo_warning(f"Skipped {result.skipped} row(s) whose exercise no longer exists")

        if fix:
            fixed = await migration.fix_inconsistent()
            echo_success(f"Fixed {fixed['fixed']} of {fixed['found']} inconsistent row(s)")

    status = await migration.validate()
    if status["is_complete"]:
        echo_success(f"All {status['total']} workout exercises have snapshots")
    else:
        echo_warning(
            f"{status['without_snapshots']} of {status['total']} workout exercises lack snapshots"
        )
        ctx.exit(1)
