# src/pharmacy_rostering/precheck.py
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Dict, Iterable, Literal, Sequence

import numpy as np

from pharmacy_rostering.expand import Slot
from pharmacy_rostering.input_data import CoverageRequirement, MinStaffingRule
from pharmacy_rostering.roles import ALL_ROLES, Role
from pharmacy_rostering.staff import StaffMember

CoverageStatus = Literal["ok", "understaffed", "overstaffed"]


@dataclass(frozen=True)
class RoleCoverage:
    required: int
    available: int
    status: CoverageStatus


@dataclass
class CoverageCheck:
    roles: Dict[Role, RoleCoverage] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def understaffed(self) -> list[Role]:
        return [r for r, c in self.roles.items() if c.status == "understaffed"]


def _staff_counts(staff: Iterable[StaffMember]) -> Dict[Role, int]:
    counts = {role: 0 for role in ALL_ROLES}
    for member in staff:
        counts[member.role] += 1
    return counts


def precheck_coverage(
    requirements: Sequence[CoverageRequirement],
    min_staffing: Sequence[MinStaffingRule],
    staff: Sequence[StaffMember],
    *,
    overstaff_margin: int = 1,
) -> CoverageCheck:
    """
    Headcount-only check of the roster against requirements, no date expansion.

    required = max(count over requirements for the role, count over min-staffing
    rules for the role, 0); available = roster members with the role. Roles with
    nothing required are left out. Purely advisory: never blocks generation.
    """
    check = CoverageCheck()
    if not requirements and not min_staffing:
        return check

    available_by_role = _staff_counts(staff)
    for role in ALL_ROLES:
        required = max(
            [r.count for r in requirements if r.role is role]
            + [m.count for m in min_staffing if m.role is role]
            + [0]
        )
        available = available_by_role[role]
        name = role.display_name

        if required > available:
            check.warnings.append(
                f"⚠️ You need {required} {name}(s) but only have {available} available."
            )
            check.roles[role] = RoleCoverage(required, available, "understaffed")
        elif required > 0 and available > required + overstaff_margin:
            check.warnings.append(
                f"ℹ️ You have {available} {name}(s) available but only need {required}. "
                "This may lead to unassigned staff."
            )
            check.roles[role] = RoleCoverage(required, available, "overstaffed")
        elif required > 0:
            check.roles[role] = RoleCoverage(required, available, "ok")
    return check


def precheck_capacity(
    slots: Sequence[Slot], staff: Sequence[StaffMember]
) -> Dict[Role, Dict[str, float]]:
    """
    Loose per-role comparison of demanded vs. suppliable staff-hours.

      demand[role]   = Σ paid hours of unit slots for the role
      capacity[role] = Σ_e Σ_days-with-demand (longest same-day paid hours)
                       over staff with the role who are available that day

    Capacity ignores consecutive-day caps and overlaps between parallel slots,
    so it is an upper bound: capacity < demand proves unfilled shifts.
    """
    stats: Dict[Role, Dict[str, float]] = {}
    roles = sorted({s.role for s in slots}, key=ALL_ROLES.index)
    for role in roles:
        role_slots = [s for s in slots if s.role is role]
        demand = np.array([s.paid_minutes for s in role_slots], dtype=float) / 60.0

        longest_by_day: Dict = {}
        for s in role_slots:
            longest_by_day[s.date] = max(longest_by_day.get(s.date, 0), s.paid_minutes)

        eligible = [m for m in staff if m.role is role]
        capacity = 0.0
        for member in eligible:
            capacity += sum(
                minutes / 60.0
                for day, minutes in longest_by_day.items()
                if member.is_available(day)
            )

        demand_hours = float(demand.sum()) if demand.size else 0.0
        stats[role] = {
            "demand_hours": round(demand_hours, 2),
            "capacity_hours": round(capacity, 2),
            "unit_slots": float(len(role_slots)),
            "staff_count": float(len(eligible)),
            "ok": float(capacity >= demand_hours),
        }
    return stats


def print_precheck_header(check: CoverageCheck, stream=None) -> None:
    """Print 'Pre-check' on its own line, then one ✅/❌/ℹ️ line per role."""
    stream = stream or sys.stdout
    print("\nPre-check:\n", file=stream)
    if not check.roles:
        print("ℹ️  No roles are required by this request.", file=stream)
        return
    for role, cov in check.roles.items():
        icon = {"ok": "✅", "understaffed": "❌", "overstaffed": "ℹ️ "}[cov.status]
        print(
            f"{icon} {role.display_name} — {cov.status} | "
            f"requires {cov.required}, have {cov.available}",
            file=stream,
        )
    print(
        "ℹ️  Pre-check only compares headcounts; dates, availability and "
        "consecutive-day caps may still leave shifts unfilled.",
        file=stream,
    )


def print_role_status(
    capacity: Dict[Role, Dict[str, float]],
    *,
    stream=None,
) -> None:
    """One line per role: demanded vs. suppliable staff-hours."""
    stream = stream or sys.stdout
    print("\nRole/hour capacity check:", file=stream)
    if not capacity:
        print("✅ No slots to staff.", file=stream)
        return
    for role, st in capacity.items():
        icon = "✅" if st["ok"] else "❌"
        print(
            f"{icon} {role.display_name} — demand {st['demand_hours']:,.1f}h over "
            f"{int(st['unit_slots'])} shift(s) | capacity ≤ {st['capacity_hours']:,.1f}h "
            f"from {int(st['staff_count'])} staff",
            file=stream,
        )
