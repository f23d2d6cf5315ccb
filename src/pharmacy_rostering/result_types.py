# src/pharmacy_rostering/result_types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

import pandas as pd

from pharmacy_rostering.expand import Slot, SlotSource
from pharmacy_rostering.input_data import format_clock
from pharmacy_rostering.roles import Role


@dataclass(frozen=True)
class Shift:
    """One unit slot, optionally bound to a single staff member."""

    date: date
    start_minute: int
    end_minute: int
    role: Role
    assigned_employee_id: Optional[str] = None
    lunch_minutes: Optional[int] = None
    notes: str = ""
    published_shift_need_id: Optional[str] = None
    source: SlotSource = SlotSource.REQUIREMENT

    @property
    def is_unfilled(self) -> bool:
        return self.assigned_employee_id is None

    @property
    def paid_minutes(self) -> int:
        return self.end_minute - self.start_minute - (self.lunch_minutes or 0)

    @property
    def paid_hours(self) -> float:
        return self.paid_minutes / 60.0

    @classmethod
    def from_slot(
        cls, slot: Slot, employee_id: Optional[str], notes: str = ""
    ) -> "Shift":
        return cls(
            date=slot.date,
            start_minute=slot.start_minute,
            end_minute=slot.end_minute,
            role=slot.role,
            assigned_employee_id=employee_id,
            lunch_minutes=slot.lunch_minutes,
            notes=notes,
            source=slot.source,
        )

    def to_payload(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "date": self.date.isoformat(),
            "start_time": format_clock(self.start_minute),
            "end_time": format_clock(self.end_minute),
            "required_role": self.role.value,
            "assigned_employee_id": self.assigned_employee_id,
            "is_unfilled": self.is_unfilled,
            "lunch_duration_minutes": self.lunch_minutes,
            "notes": self.notes,
        }
        if self.published_shift_need_id is not None:
            out["published_shift_need_id"] = self.published_shift_need_id
        return out


@dataclass(frozen=True)
class EmployeeUtilization:
    employee_id: str
    assigned_hours: float
    target_hours: float
    shifts_count: int

    @property
    def delta_hours(self) -> float:
        return round(self.assigned_hours - self.target_hours, 2)

    def to_payload(self) -> dict[str, Any]:
        return {
            "assignedHours": self.assigned_hours,
            "targetHours": self.target_hours,
            "shiftsCount": self.shifts_count,
        }


@dataclass(frozen=True)
class ScheduleStats:
    total_shifts: int
    unfilled_shifts: int
    employee_utilization: dict[str, EmployeeUtilization] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "totalShifts": self.total_shifts,
            "unfilledShifts": self.unfilled_shifts,
            "employeeUtilization": {
                name: util.to_payload()
                for name, util in self.employee_utilization.items()
            },
        }


@dataclass
class GenerationResult:
    """Structured output of a generation run."""

    shifts: list[Shift]
    warnings: list[str]
    fairness_warnings: list[str]
    stats: ScheduleStats
    status_name: str = "GREEDY"
    objective_value: Optional[float] = None
    progress_history: list[tuple[float, float, float]] | None = None
    # Headcount advisories computed before assignment; not part of the payload
    precheck_warnings: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "schedule": [s.to_payload() for s in self.shifts],
            "warnings": list(self.warnings),
            "fairnessWarnings": list(self.fairness_warnings),
            "stats": self.stats.to_payload(),
        }

    def to_frame(self) -> pd.DataFrame:
        """One row per shift; handy for reporting and ad-hoc analysis."""
        columns = [
            "date",
            "start_time",
            "end_time",
            "role",
            "employee_id",
            "is_unfilled",
            "paid_hours",
            "source",
        ]
        rows = [
            {
                "date": s.date.isoformat(),
                "start_time": format_clock(s.start_minute),
                "end_time": format_clock(s.end_minute),
                "role": s.role.value,
                "employee_id": s.assigned_employee_id,
                "is_unfilled": s.is_unfilled,
                "paid_hours": s.paid_hours,
                "source": s.source.value,
            }
            for s in self.shifts
        ]
        if not rows:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(rows, columns=columns)


def error_payload(message: str) -> dict[str, Any]:
    return {"error": message or "Schedule generation failed."}
