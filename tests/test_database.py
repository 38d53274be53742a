from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from coworking.database import Database
from coworking.errors import DuplicateEmail, StoreError
from coworking.models import Booking


CREATED = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


def _insert_user(database: Database, user_id: str = "u1", email: str = "owner@example.com"):
    return database.insert_user(
        user_id=user_id,
        email=email,
        password_hash="$2b$10$notarealhash",
        name="Owner",
        created_at=CREATED,
    )


def test_initialize_creates_parent_directory(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "dir" / "coworking.sqlite3"
    database = Database(db_path)
    database.initialize()

    assert db_path.exists()
    assert database.is_open
    database.close()
    assert not database.is_open


def test_operations_require_open_store(tmp_path: Path) -> None:
    database = Database(tmp_path / "coworking.sqlite3")

    with pytest.raises(StoreError):
        database.get_user("u1")

    database.initialize()
    assert database.get_user("u1") is None

    database.close()
    with pytest.raises(StoreError):
        _insert_user(database)


def test_context_manager_opens_and_closes(tmp_path: Path) -> None:
    with Database(tmp_path / "coworking.sqlite3") as database:
        user = _insert_user(database)
        assert database.get_user(user.id) == user
    assert not database.is_open


def test_records_survive_reopening(tmp_path: Path) -> None:
    db_path = tmp_path / "coworking.sqlite3"
    with Database(db_path) as database:
        _insert_user(database)

    with Database(db_path) as reopened:
        record = reopened.get_credentials("owner@example.com")

    assert record is not None
    user, password_hash = record
    assert user.id == "u1"
    assert user.created_at == CREATED
    assert password_hash == "$2b$10$notarealhash"


def test_duplicate_email_is_enforced_by_store(database: Database) -> None:
    _insert_user(database)

    with pytest.raises(DuplicateEmail):
        _insert_user(database, user_id="u2")
    assert database.get_user("u2") is None


def test_duplicate_booking_id_is_a_store_error(database: Database) -> None:
    booking = Booking(
        id="b1",
        user_id="u1",
        space_type="conference",
        sub_type="Hourly",
        start_date=datetime(2026, 2, 2, 10, 0, tzinfo=timezone.utc),
        end_date=datetime(2026, 2, 2, 11, 0, tzinfo=timezone.utc),
        total_amount=2000,
        created_at=CREATED,
    )
    database.insert_booking(booking)

    with pytest.raises(StoreError):
        database.insert_booking(booking)
    assert list(database.iter_bookings_for_user("u1")) == [booking]
