from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from coworking.api import build_services
from coworking.config import Settings
from coworking.database import Database
from coworking.identity import IdentityManager
from coworking.ledger import BookingLedger


TOKEN_SECRET = "tests-secret-key"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_path=tmp_path / "coworking.sqlite3",
        token_secret=TOKEN_SECRET,
        bcrypt_rounds=10,
    )


@pytest.fixture()
def database(settings: Settings) -> Iterator[Database]:
    db = Database(settings.database_path)
    db.initialize()
    yield db
    db.close()


@pytest.fixture()
def identity(database: Database, settings: Settings) -> IdentityManager:
    manager, _ = build_services(database, settings)
    return manager


@pytest.fixture()
def ledger(database: Database, settings: Settings) -> BookingLedger:
    _, booking_ledger = build_services(database, settings)
    return booking_ledger
