"""Coworking space booking service."""

from __future__ import annotations

from typing import Any

from .catalog import DEFAULT_CATALOG, SpaceCatalog
from .config import Settings, load_settings
from .database import Database
from .identity import IdentityManager
from .ledger import BookingLedger


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "BookingLedger",
    "DEFAULT_CATALOG",
    "Database",
    "IdentityManager",
    "Settings",
    "SpaceCatalog",
    "create_app",
    "load_settings",
]
