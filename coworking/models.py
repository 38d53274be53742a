"""Domain records persisted by the booking service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    """A registered account. The password hash never leaves the store."""

    id: str
    email: str
    name: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Booking:
    """An immutable reservation of one catalog offering for a date range."""

    id: str
    user_id: str
    space_type: str
    sub_type: str
    start_date: datetime
    end_date: datetime
    total_amount: int
    created_at: datetime


__all__ = ["Booking", "User"]
