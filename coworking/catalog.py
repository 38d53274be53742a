"""Static catalog of bookable coworking offerings."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Tuple

from .errors import InvalidDateRange, InvalidSpace

BILLING_UNITS: Dict[str, timedelta] = {
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "month": timedelta(days=30),
}


@dataclass(frozen=True)
class SpaceOption:
    """A priced sub-type of a space, e.g. a day pass at the open desks."""

    space_type: str
    sub_type: str
    price: int
    unit: str


@dataclass(frozen=True)
class SpaceType:
    """A kind of space together with the options that can be booked."""

    type: str
    label: str
    options: Tuple[SpaceOption, ...]


def _space(space_type: str, label: str, *options: Tuple[str, int, str]) -> SpaceType:
    return SpaceType(
        type=space_type,
        label=label,
        options=tuple(
            SpaceOption(space_type=space_type, sub_type=name, price=price, unit=unit)
            for name, price, unit in options
        ),
    )


SPACES: Tuple[SpaceType, ...] = (
    _space(
        "private-cabin",
        "Private Cabins",
        ("Type 1", 35000, "month"),
        ("Type 2", 25000, "month"),
        ("Type 3", 20000, "month"),
    ),
    _space(
        "open-desk",
        "Open Desk Area",
        ("Monthly", 5000, "month"),
        ("Day Pass", 350, "day"),
    ),
    _space("conference", "Conference Room", ("Hourly", 2000, "hour")),
    _space("private-chamber", "Private Chamber", ("Day Pass", 2000, "day")),
)


class SpaceCatalog:
    """Read-only lookup over the configured space offerings."""

    def __init__(self, spaces: Iterable[SpaceType] = SPACES) -> None:
        self._spaces: List[SpaceType] = list(spaces)
        self._options: Dict[Tuple[str, str], SpaceOption] = {}
        for space in self._spaces:
            for option in space.options:
                if option.unit not in BILLING_UNITS:
                    raise ValueError(f"Unknown billing unit '{option.unit}' for {space.type}/{option.sub_type}")
                self._options[(option.space_type, option.sub_type)] = option
        if not self._options:
            raise ValueError("Space catalog must contain at least one option")

    def get(self, space_type: str, sub_type: str) -> SpaceOption:
        try:
            return self._options[(space_type, sub_type)]
        except KeyError as exc:
            raise InvalidSpace(f"Unknown space '{space_type}' / '{sub_type}'") from exc

    def list(self) -> Iterable[SpaceType]:
        return tuple(self._spaces)

    def quote(self, space_type: str, sub_type: str, start_date: datetime, end_date: datetime) -> int:
        """Price a booking as the number of started billing units times the unit price."""

        option = self.get(space_type, sub_type)
        duration = end_date - start_date
        if duration <= timedelta(0):
            raise InvalidDateRange("Booking must end after it starts")
        units = math.ceil(duration / BILLING_UNITS[option.unit])
        return max(units, 1) * option.price


DEFAULT_CATALOG = SpaceCatalog()


__all__ = [
    "BILLING_UNITS",
    "DEFAULT_CATALOG",
    "SPACES",
    "SpaceCatalog",
    "SpaceOption",
    "SpaceType",
]
