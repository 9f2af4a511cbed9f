"""User administration commands."""

import click

from ..db import UserRepository, get_db_path
from ..models.user import Role
from .base import async_command, echo_error, echo_info, echo_success, ensure_initialized, format_table


@click.group()
@click.pass_context
def users(ctx):
    """Manage users and roles.

    Users are created on their first API request; these commands change
    their roles.
    """
    ensure_initialized(ctx)


@users.command(name="list")
@async_command
async def list_users():
    """List all known users."""
    all_users = await UserRepository(get_db_path()).list_all()

    if not all_users:
        echo_info("No users yet. Users appear after their first API request.")
        return

    rows = [
        [
            user.id,
            user.name or "",
            user.email or "",
            user.role.value,
            user.created_at.strftime("%Y-%m-%d") if user.created_at else "N/A",
        ]
        for user in all_users
    ]

    click.echo()
    click.echo(format_table(["ID", "Name", "Email", "Role", "Created"], rows))
    click.echo()
    click.echo(f"Total: {len(all_users)} user(s)")


async def _set_role(ctx: click.Context, id_or_email: str, role: Role) -> None:
    repo = UserRepository(get_db_path())
    user = await repo.find(id_or_email)
    if user is None:
        echo_error(f"User {id_or_email} not found")
        ctx.exit(1)

    await repo.set_role(user.id, role)
    echo_success(f"{user.display_name} is now {role.value}")


@users.command(name="make-admin")
@click.argument("id_or_email")
@click.pass_context
@async_command
async def make_admin(ctx, id_or_email: str):
    """Grant admin rights to a user (by ID or email)."""
    await _set_role(ctx, id_or_email, Role.ADMIN)


@users.command(name="revoke-admin")
@click.argument("id_or_email")
@click.pass_context
@async_command
async def revoke_admin(ctx, id_or_email: str):
    """Demote an admin back to a regular user."""
    await _set_role(ctx, id_or_email, Role.USER)
