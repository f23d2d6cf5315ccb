from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional

from pharmacy_rostering.roles import Role


class EmploymentType(str, Enum):
    FULL_TIME = "Heltid"
    PART_TIME = "Deltid"
    HOURLY = "Timanställd"

    @classmethod
    def parse(cls, value: object) -> "EmploymentType":
        if isinstance(value, EmploymentType):
            return value
        for kind in cls:
            if kind.value == value:
                return kind
        known = ", ".join(k.value for k in cls)
        raise ValueError(
            f"Unknown employment type {value!r} (expected one of: {known})"
        )


class StaffOrigin(str, Enum):
    """Which source table a staff member came from; only persistence cares."""

    EMPLOYED = "employed"
    MANUAL = "manual"


def _normalize_date_set(values: Iterable[Any]) -> set[date]:
    out: set[date] = set()
    for val in values:
        if isinstance(val, datetime):
            out.add(val.date())
        elif isinstance(val, date):
            out.add(val)
        elif isinstance(val, str):
            try:
                out.add(date.fromisoformat(val[:10]))
            except ValueError as exc:
                raise TypeError(f"Unavailable date {val!r} is not ISO formatted.") from exc
        else:
            raise TypeError(
                "Unavailable dates must be datetime.date, datetime.datetime or ISO strings."
            )
    return out


@dataclass(slots=True)
class StaffMember:
    """
    A member of the roster, supplied fresh with every generation request.
    """

    id: str
    name: str
    role: Role
    minsta_antal_timmar: float = 0.0
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    max_consecutive_days: Optional[int] = None
    unavailable_dates: set[date] = field(default_factory=set)
    origin: StaffOrigin = StaffOrigin.EMPLOYED

    def __repr__(self) -> str:
        cap = (
            f"cap={self.max_consecutive_days}"
            if self.max_consecutive_days is not None
            else "cap=∞"
        )
        return (
            f"StaffMember(id={self.id!r}, name='{self.name}', role={self.role.value}, "
            f"target={self.minsta_antal_timmar}h/week, {self.employment_type.value}, {cap}, "
            f"off={[d.isoformat() for d in sorted(self.unavailable_dates)]})"
        )

    def __post_init__(self) -> None:
        self.id = str(self.id)
        self.role = Role.parse(self.role)
        self.employment_type = EmploymentType.parse(self.employment_type)
        self.unavailable_dates = _normalize_date_set(self.unavailable_dates)
        self.minsta_antal_timmar = float(self.minsta_antal_timmar or 0.0)
        if self.minsta_antal_timmar < 0:
            raise ValueError(f"Target hours for {self.name!r} must be non-negative.")
        if self.max_consecutive_days is not None:
            self.max_consecutive_days = int(self.max_consecutive_days)
            if self.max_consecutive_days <= 0:
                # A non-positive cap is treated as "not set", as the roster UI does.
                self.max_consecutive_days = None

    @property
    def expects_under_target(self) -> bool:
        """Hourly staff routinely work below their target; that is not a fairness issue."""
        return self.employment_type is EmploymentType.HOURLY

    def is_available(self, day: date) -> bool:
        return day not in self.unavailable_dates

    def target_hours(self, period_days: int) -> float:
        """Weekly minimum hours scaled to the period (never below one week)."""
        weeks = max(1.0, period_days / 7.0)
        return round(self.minsta_antal_timmar * weeks, 2)
