from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from coworking.database import Database
from coworking.errors import InvalidDateRange, InvalidInput, InvalidSpace, StoreError
from coworking.ledger import BookingLedger


START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _book(ledger: BookingLedger, user_id: str, offset_days: int = 0, **overrides):
    params = dict(
        space_type="open-desk",
        sub_type="Day Pass",
        start_date=START + timedelta(days=offset_days),
        end_date=START + timedelta(days=offset_days, hours=8),
        total_amount=350,
    )
    params.update(overrides)
    return ledger.create(user_id, **params)


def test_create_returns_persisted_booking(ledger: BookingLedger) -> None:
    booking = _book(ledger, "U1")

    assert booking.user_id == "U1"
    assert booking.space_type == "open-desk"
    assert booking.sub_type == "Day Pass"
    assert booking.total_amount == 350
    assert list(ledger.list_by_user("U1")) == [booking]


def test_unknown_sub_type_is_rejected(ledger: BookingLedger) -> None:
    with pytest.raises(InvalidSpace):
        _book(ledger, "U1", space_type="private-cabin", sub_type="Type 4")
    assert list(ledger.list_by_user("U1")) == []


def test_unknown_space_type_is_rejected(ledger: BookingLedger) -> None:
    with pytest.raises(InvalidSpace):
        _book(ledger, "U1", space_type="rooftop", sub_type="Day Pass")


def test_sub_type_must_belong_to_space_type(ledger: BookingLedger) -> None:
    with pytest.raises(InvalidSpace):
        _book(ledger, "U1", space_type="conference", sub_type="Day Pass")


def test_start_after_end_is_rejected(ledger: BookingLedger) -> None:
    with pytest.raises(InvalidDateRange):
        _book(ledger, "U1", start_date=START + timedelta(days=1), end_date=START)


def test_start_equal_to_end_is_rejected(ledger: BookingLedger) -> None:
    with pytest.raises(InvalidDateRange):
        _book(ledger, "U1", start_date=START, end_date=START)


def test_negative_total_amount_is_rejected(ledger: BookingLedger) -> None:
    with pytest.raises(InvalidInput):
        _book(ledger, "U1", total_amount=-1)


def test_total_amount_beyond_integer_column_is_rejected(ledger: BookingLedger) -> None:
    with pytest.raises(InvalidInput):
        _book(ledger, "U1", total_amount=10**20)

    assert list(ledger.list_by_user("U1")) == []


def test_empty_user_id_is_rejected(ledger: BookingLedger) -> None:
    with pytest.raises(InvalidInput):
        _book(ledger, "")


def test_list_by_user_returns_only_that_users_bookings(ledger: BookingLedger) -> None:
    created_u1 = {_book(ledger, "U1", offset_days=day).id for day in (3, 1, 2)}
    created_u2 = _book(ledger, "U2")

    listed_u1 = {booking.id for booking in ledger.list_by_user("U1")}
    listed_u2 = list(ledger.list_by_user("U2"))

    assert listed_u1 == created_u1
    assert [booking.id for booking in listed_u2] == [created_u2.id]


def test_list_by_user_without_bookings_is_empty(ledger: BookingLedger) -> None:
    assert list(ledger.list_by_user("nobody")) == []


def test_list_by_user_requeries_on_each_call(ledger: BookingLedger) -> None:
    _book(ledger, "U1")
    first = ledger.list_by_user("U1")
    _book(ledger, "U1", offset_days=1)
    second = ledger.list_by_user("U1")

    assert len(list(first)) == 2
    assert len(list(second)) == 2
    assert len(list(ledger.list_by_user("U1"))) == 2


def test_total_amount_is_quoted_when_omitted(ledger: BookingLedger) -> None:
    booking = _book(
        ledger,
        "U1",
        space_type="conference",
        sub_type="Hourly",
        end_date=START + timedelta(hours=2, minutes=30),
        total_amount=None,
    )

    assert booking.total_amount == 3 * 2000


def test_supplied_total_amount_is_kept(ledger: BookingLedger) -> None:
    booking = _book(ledger, "U1", space_type="private-cabin", sub_type="Type 1", total_amount=30000)

    assert booking.total_amount == 30000


def test_naive_dates_are_stored_as_utc(ledger: BookingLedger) -> None:
    booking = _book(
        ledger,
        "U1",
        start_date=datetime(2026, 3, 2, 9, 0),
        end_date=datetime(2026, 3, 2, 17, 0),
    )

    stored = next(iter(ledger.list_by_user("U1")))
    assert stored.start_date == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    assert stored.start_date.tzinfo is not None
    assert stored == booking


def test_ledger_does_not_check_user_existence(ledger: BookingLedger) -> None:
    booking = _book(ledger, "user-that-was-never-registered")

    assert booking.user_id == "user-that-was-never-registered"


def test_closed_store_reports_store_error(database: Database, ledger: BookingLedger) -> None:
    database.close()

    with pytest.raises(StoreError):
        _book(ledger, "U1")
    with pytest.raises(StoreError):
        list(ledger.list_by_user("U1"))
