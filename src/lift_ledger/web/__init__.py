"""Web interface for lift-ledger."""

from .app import create_app

__all__ = ["create_app"]
