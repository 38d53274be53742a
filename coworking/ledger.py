"""Recording and retrieval of space reservations."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterator, Optional

from .catalog import DEFAULT_CATALOG, SpaceCatalog
from .database import Database
from .errors import InvalidDateRange, InvalidInput
from .models import Booking

logger = logging.getLogger("coworking.ledger")

# Largest value an SQLite INTEGER column holds.
MAX_TOTAL_AMOUNT = 2**63 - 1


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class BookingLedger:
    """Append-only collection of bookings keyed by user id.

    The ledger trusts ``user_id``: callers must resolve it from a verified
    token before calling :meth:`create`.
    """

    def __init__(self, database: Database, catalog: SpaceCatalog = DEFAULT_CATALOG) -> None:
        self._database = database
        self._catalog = catalog

    @property
    def catalog(self) -> SpaceCatalog:
        return self._catalog

    def create(
        self,
        user_id: str,
        space_type: str,
        sub_type: str,
        start_date: datetime,
        end_date: datetime,
        total_amount: Optional[int] = None,
    ) -> Booking:
        if not user_id:
            raise InvalidInput("userId must not be empty")

        self._catalog.get(space_type, sub_type)

        start = as_utc(start_date)
        end = as_utc(end_date)
        if start >= end:
            raise InvalidDateRange("startDate must be before endDate")

        if total_amount is None:
            amount = self._catalog.quote(space_type, sub_type, start, end)
        elif total_amount < 0:
            raise InvalidInput("totalAmount must not be negative")
        elif total_amount > MAX_TOTAL_AMOUNT:
            raise InvalidInput(f"totalAmount must not exceed {MAX_TOTAL_AMOUNT}")
        else:
            amount = int(total_amount)

        booking = self._database.insert_booking(
            Booking(
                id=uuid.uuid4().hex,
                user_id=user_id,
                space_type=space_type,
                sub_type=sub_type,
                start_date=start,
                end_date=end,
                total_amount=amount,
                created_at=datetime.now(timezone.utc),
            )
        )
        logger.info(
            "Booking %s created for user %s (%s/%s, amount=%s)",
            booking.id,
            user_id,
            space_type,
            sub_type,
            amount,
        )
        return booking

    def list_by_user(self, user_id: str) -> Iterator[Booking]:
        """Lazily iterate the user's bookings; each call queries the store again."""

        return self._database.iter_bookings_for_user(user_id)


__all__ = ["BookingLedger", "MAX_TOTAL_AMOUNT", "as_utc"]
