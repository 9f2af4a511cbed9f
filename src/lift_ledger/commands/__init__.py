"""CLI commands for lift-ledger."""

from .init import init
from .migrate import migrate
from .serve import serve
from .users import users

__all__ = [
    "init",
    "migrate",
    "serve",
    "users",
]
