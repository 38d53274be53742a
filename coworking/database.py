"""SQLite-backed persistence for users and bookings."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Tuple

from .errors import DuplicateEmail, StoreError
from .models import Booking, User

logger = logging.getLogger("coworking.database")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


class Database:
    """Store for user and booking records.

    The store must be opened with :meth:`initialize` before use and released
    with :meth:`close`. Every operation runs on its own connection inside a
    single transaction, so uniqueness and atomic inserts are enforced by
    SQLite rather than by callers.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._open = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._open

    def initialize(self) -> None:
        """Create the required tables if needed and open the store."""

        try:
            _ensure_directory(self._path)
        except OSError as exc:
            raise StoreError(f"Cannot create database directory for {self._path}") from exc

        self._open = True
        try:
            self._create_schema()
        except StoreError:
            self._open = False
            raise
        logger.debug("Database opened at %s", self._path)

    def _create_schema(self) -> None:
        with self._transaction() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    name TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS bookings (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    space_type TEXT NOT NULL,
                    sub_type TEXT NOT NULL,
                    start_date TEXT NOT NULL,
                    end_date TEXT NOT NULL,
                    total_amount INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_bookings_user_id ON bookings(user_id);
                """
            )

    def close(self) -> None:
        self._open = False

    def __enter__(self) -> "Database":
        self.initialize()
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def _connect(self) -> sqlite3.Connection:
        if not self._open:
            raise StoreError("Database is not open")
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            with conn:
                yield conn
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as exc:
            logger.exception("Database operation failed")
            raise StoreError("Database operation failed") from exc
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def insert_user(
        self,
        *,
        user_id: str,
        email: str,
        password_hash: str,
        name: Optional[str],
        created_at: datetime,
    ) -> User:
        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO users (id, email, password_hash, name, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user_id, email, password_hash, name, _serialize_datetime(created_at)),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateEmail("A user with that email already exists") from exc
        return User(id=user_id, email=email, name=name, created_at=created_at)

    def get_user(self, user_id: str) -> Optional[User]:
        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_credentials(self, email: str) -> Optional[Tuple[User, str]]:
        """Return the user with ``email`` together with its password hash."""

        with self._transaction() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        if row is None:
            return None
        return self._row_to_user(row), str(row["password_hash"])

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------
    def insert_booking(self, booking: Booking) -> Booking:
        try:
            with self._transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO bookings (
                        id, user_id, space_type, sub_type, start_date, end_date, total_amount, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        booking.id,
                        booking.user_id,
                        booking.space_type,
                        booking.sub_type,
                        _serialize_datetime(booking.start_date),
                        _serialize_datetime(booking.end_date),
                        booking.total_amount,
                        _serialize_datetime(booking.created_at),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise StoreError(f"Booking {booking.id} could not be stored") from exc
        return booking

    def iter_bookings_for_user(self, user_id: str) -> Iterator[Booking]:
        """Yield the bookings of ``user_id`` straight from the cursor."""

        with self._transaction() as conn:
            cursor = conn.execute(
                "SELECT * FROM bookings WHERE user_id = ? ORDER BY start_date, id",
                (user_id,),
            )
            for row in cursor:
                yield self._row_to_booking(row)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=str(row["id"]),
            email=str(row["email"]),
            name=row["name"],
            created_at=_parse_datetime(str(row["created_at"])),
        )

    def _row_to_booking(self, row: sqlite3.Row) -> Booking:
        return Booking(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            space_type=str(row["space_type"]),
            sub_type=str(row["sub_type"]),
            start_date=_parse_datetime(str(row["start_date"])),
            end_date=_parse_datetime(str(row["end_date"])),
            total_amount=int(row["total_amount"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["Database"]
