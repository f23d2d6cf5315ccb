# src/pharmacy_rostering/expand.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Optional

from pharmacy_rostering.config import Config, cfg
from pharmacy_rostering.input_data import (
    MINUTES_PER_DAY,
    FillType,
    GenerationRequest,
    format_clock,
)
from pharmacy_rostering.roles import ALL_ROLES, Role


class SlotSource(str, Enum):
    REQUIREMENT = "requirement"
    MIN_STAFFING = "min_staffing"


_ROLE_ORDER = {role: i for i, role in enumerate(ALL_ROLES)}
_SOURCE_ORDER = {SlotSource.REQUIREMENT: 0, SlotSource.MIN_STAFFING: 1}


@dataclass(frozen=True)
class Slot:
    """A dated, timed staffing need for one role (count == 1 after fan-out)."""

    date: date
    day_index: int  # offset from the period start
    start_minute: int
    end_minute: int
    role: Role
    count: int = 1
    include_lunch: bool = False
    lunch_minutes: Optional[int] = None
    source: SlotSource = SlotSource.REQUIREMENT
    fill_type: Optional[FillType] = None
    position: int = 0

    def __post_init__(self) -> None:
        if not (0 <= self.start_minute < self.end_minute <= MINUTES_PER_DAY):
            raise ValueError(
                f"Slot window {self.start_minute}-{self.end_minute} is not a valid same-day window"
            )
        if self.count < 1:
            raise ValueError("Slot count must be >= 1")

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def paid_minutes(self) -> int:
        return self.duration_minutes - (self.lunch_minutes or 0)

    @property
    def abs_start(self) -> int:
        """Minutes since the start of the period."""
        return self.day_index * MINUTES_PER_DAY + self.start_minute

    @property
    def window(self) -> tuple[int, int]:
        return (self.start_minute, self.end_minute)

    def overlaps(self, other: "Slot") -> bool:
        return (
            self.date == other.date
            and self.start_minute < other.end_minute
            and other.start_minute < self.end_minute
        )

    def label(self) -> str:
        return (
            f"{self.role.value} {self.date.isoformat()} "
            f"{format_clock(self.start_minute)}-{format_clock(self.end_minute)}"
        )

    def sort_key(self) -> tuple:
        return (
            self.date,
            self.start_minute,
            self.end_minute,
            _ROLE_ORDER[self.role],
            _SOURCE_ORDER[self.source],
            self.position,
        )


@dataclass
class Expansion:
    """Expanded slots (not yet fanned out) plus notices worth surfacing as warnings."""

    slots: list[Slot] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)

    def unit_slots(self) -> list[Slot]:
        return fan_out(self.slots)


def _lunch_minutes(
    include_lunch: bool, start: int, end: int, lunch: int, config: Config
) -> Optional[int]:
    if not include_lunch or lunch <= 0:
        return None
    if (end - start) < config.LUNCH_MIN_SHIFT_HOURS * 60:
        return None
    if lunch >= end - start:
        return None
    return lunch


def _floors_by_role(request: GenerationRequest) -> dict[Role, int]:
    floors: dict[Role, int] = {}
    for rule in request.rules.min_staffing:
        floors[rule.role] = max(floors.get(rule.role, 0), int(rule.count))
    return {role: floors[role] for role in ALL_ROLES if floors.get(role, 0) > 0}


def _counts_toward_floor(slot: Slot, floor_window: tuple[int, int]) -> bool:
    """Requirement slots count toward the floor only if they span open->close."""
    open_m, close_m = floor_window
    return slot.start_minute <= open_m and slot.end_minute >= close_m


def expand_requirements(
    request: GenerationRequest, config: Config | None = None
) -> Expansion:
    """
    Turn recurring requirements and min-staffing floors into dated slots.

    Pure function of the request: expanding the same request twice yields
    the same slots in the same order.
    """
    config = config or cfg
    lunch = int(request.rules.default_lunch_minutes)
    floors = _floors_by_role(request)
    out = Expansion()

    for day_index, day in enumerate(request.dates()):
        hours = request.hours_for(day)
        if hours is None:
            continue
        open_m, close_m = int(hours.open_minute), int(hours.close_minute)  # type: ignore[arg-type]
        opening = f"{format_clock(open_m)}-{format_clock(close_m)}"

        day_slots: list[Slot] = []
        for req in request.requirements:
            if not req.applies_to(day):
                continue

            if req.fill_type is FillType.FULL_DAY and req.include_lunch:
                start, end = open_m, close_m
            else:
                start = max(req.start_minute, open_m)
                end = min(req.end_minute, close_m)
                if start >= end:
                    out.notices.append(
                        f"Requirement for {req.label()} on {day.isoformat()} lies outside "
                        f"opening hours ({opening}); dropped."
                    )
                    continue
                if (start, end) != (req.start_minute, req.end_minute):
                    out.notices.append(
                        f"Requirement for {req.label()} on {day.isoformat()} clipped to "
                        f"opening hours ({format_clock(start)}-{format_clock(end)})."
                    )

            day_slots.append(
                Slot(
                    date=day,
                    day_index=day_index,
                    start_minute=start,
                    end_minute=end,
                    role=req.role,
                    count=req.count,
                    include_lunch=req.include_lunch,
                    lunch_minutes=_lunch_minutes(
                        req.include_lunch, start, end, lunch, config
                    ),
                    source=SlotSource.REQUIREMENT,
                    fill_type=req.fill_type,
                )
            )

        floor_window = (open_m, close_m)
        for role, floor in floors.items():
            covered = max(
                (
                    s.count
                    for s in day_slots
                    if s.role is role and _counts_toward_floor(s, floor_window)
                ),
                default=0,
            )
            residual = floor - covered
            if residual <= 0:
                continue
            day_slots.append(
                Slot(
                    date=day,
                    day_index=day_index,
                    start_minute=open_m,
                    end_minute=close_m,
                    role=role,
                    count=residual,
                    include_lunch=True,
                    lunch_minutes=_lunch_minutes(True, open_m, close_m, lunch, config),
                    source=SlotSource.MIN_STAFFING,
                )
            )

        out.slots.extend(sorted(day_slots, key=Slot.sort_key))

    return out


def fan_out(slots: list[Slot]) -> list[Slot]:
    """Split each slot into unit-headcount slots, one per required position."""
    units = [
        replace(slot, count=1, position=pos)
        for slot in slots
        for pos in range(slot.count)
    ]
    return sorted(units, key=Slot.sort_key)
