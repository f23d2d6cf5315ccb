from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Sequence

import pandas as pd

from pharmacy_rostering.expand import Slot
from pharmacy_rostering.input_data import format_clock
from pharmacy_rostering.result_types import EmployeeUtilization, ScheduleStats, Shift
from pharmacy_rostering.roles import ALL_ROLES, Role
from pharmacy_rostering.staff import StaffMember


def utilization_labels(staff: Sequence[StaffMember]) -> list[str]:
    """Display name per staff member; repeated names become 'Name (2)', 'Name (3)'."""
    seen: dict[str, int] = defaultdict(int)
    labels: list[str] = []
    for member in staff:
        base = member.name or member.id
        seen[base] += 1
        labels.append(base if seen[base] == 1 else f"{base} ({seen[base]})")
    return labels


def compute_stats(
    shifts: Sequence[Shift], staff: Sequence[StaffMember], period_days: int
) -> ScheduleStats:
    """Totals plus per-person paid hours against their target for the period."""
    df = pd.DataFrame(
        {
            "employee_id": [s.assigned_employee_id for s in shifts],
            "paid_minutes": [s.paid_minutes for s in shifts],
        },
        columns=["employee_id", "paid_minutes"],
    )
    assigned = df.dropna(subset=["employee_id"])
    per_emp = assigned.groupby("employee_id")["paid_minutes"].agg(["sum", "count"])

    utilization: dict[str, EmployeeUtilization] = {}
    for label, member in zip(utilization_labels(staff), staff):
        if member.id in per_emp.index:
            minutes = int(per_emp.at[member.id, "sum"])
            count = int(per_emp.at[member.id, "count"])
        else:
            minutes, count = 0, 0
        utilization[label] = EmployeeUtilization(
            employee_id=member.id,
            assigned_hours=round(minutes / 60.0, 2),
            target_hours=member.target_hours(period_days),
            shifts_count=count,
        )

    return ScheduleStats(
        total_shifts=len(shifts),
        unfilled_shifts=int(len(df) - len(assigned)),
        employee_utilization=utilization,
    )


def fairness_warnings(
    stats: ScheduleStats, staff: Sequence[StaffMember], tolerance: float
) -> list[str]:
    """
    One line per person whose assigned hours miss their target by more than
    `tolerance` hours, e.g. 'Anna: 28.00h assigned vs 40.00h target (-12.00h)'.
    Hourly staff are not flagged for being under target.
    """
    by_id = {m.id: m for m in staff}
    out: list[str] = []
    for label, util in stats.employee_utilization.items():
        delta = util.delta_hours
        if abs(delta) <= tolerance:
            continue
        member = by_id.get(util.employee_id)
        if delta < 0 and member is not None and member.expects_under_target:
            continue
        out.append(
            f"{label}: {util.assigned_hours:.2f}h assigned vs "
            f"{util.target_hours:.2f}h target ({delta:+.2f}h)"
        )
    return out


def coverage_warnings(shifts: Sequence[Shift]) -> list[str]:
    """One line per (date, role) that has unfilled shifts, in date then role order."""
    grouped: dict[tuple[date, Role], list[Shift]] = defaultdict(list)
    for shift in shifts:
        if shift.is_unfilled:
            grouped[(shift.date, shift.role)].append(shift)

    out: list[str] = []
    for (day, role), missing in sorted(
        grouped.items(), key=lambda item: (item[0][0], ALL_ROLES.index(item[0][1]))
    ):
        windows = sorted({(s.start_minute, s.end_minute) for s in missing})
        spans = ", ".join(f"{format_clock(a)}-{format_clock(b)}" for a, b in windows)
        out.append(
            f"{len(missing)} shift(s) for role {role.value} on {day.isoformat()} "
            f"could not be filled ({spans})."
        )
    return out


def explain_unfilled(slot: Slot, staff: Sequence[StaffMember]) -> str:
    """Short reason a slot stayed empty, written into the shift's notes."""
    with_role = [m for m in staff if m.role is slot.role]
    if not with_role:
        return f"Unfilled: no staff with role {slot.role.value}"
    if not any(m.is_available(slot.date) for m in with_role):
        return "Unfilled: all eligible staff unavailable"
    return "Unfilled: eligible staff already booked or at consecutive-day limit"
