"""HTTP surface for the entry ledger."""

from awaylog.api.app import create_app

__all__ = ["create_app"]
