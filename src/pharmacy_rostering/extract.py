# src/pharmacy_rostering/extract.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from ortools.sat.python import cp_model

from pharmacy_rostering.build import BuildContext
from pharmacy_rostering.expand import Slot
from pharmacy_rostering.input_data import format_clock
from pharmacy_rostering.staff import StaffMember


def extract_assignment(
    ctx: BuildContext, solver: cp_model.CpSolver
) -> list[Optional[str]]:
    """Staff id (or None) per slot, aligned with ctx.slots."""
    assignment: list[Optional[str]] = [None] * len(ctx.slots)
    for (e, s), var in ctx.x.items():
        if solver.value(var) == 1:
            assignment[s] = ctx.staff[e].id
    return assignment


def assignment_frame(
    slots: Sequence[Slot],
    staff: Sequence[StaffMember],
    assignment: Sequence[Optional[str]],
) -> pd.DataFrame:
    """One row per slot with the assigned person (if any) and paid hours."""
    columns = [
        "date",
        "day_index",
        "start_time",
        "end_time",
        "role",
        "employee_id",
        "name",
        "paid_hours",
    ]
    names = {m.id: m.name for m in staff}
    rows = [
        {
            "date": slot.date.isoformat(),
            "day_index": slot.day_index,
            "start_time": format_clock(slot.start_minute),
            "end_time": format_clock(slot.end_minute),
            "role": slot.role.value,
            "employee_id": emp_id,
            "name": names.get(emp_id) if emp_id is not None else None,
            "paid_hours": slot.paid_minutes / 60.0,
        }
        for slot, emp_id in zip(slots, assignment)
    ]
    if not rows:
        return pd.DataFrame(columns=columns)
    return (
        pd.DataFrame(rows, columns=columns)
        .sort_values(["date", "start_time", "role"], kind="stable")
        .reset_index(drop=True)
    )


def worked_runs(dates: set[date]) -> list[int]:
    """Lengths of maximal runs of consecutive calendar days in `dates`."""
    runs: list[int] = []
    for day in sorted(dates):
        if day - timedelta(days=1) in dates:
            continue
        length = 1
        while day + timedelta(days=length) in dates:
            length += 1
        runs.append(length)
    return runs


def compute_run_stats(
    slots: Sequence[Slot], assignment: Sequence[Optional[str]]
) -> tuple[float, int]:
    """(average, max) consecutive-working-day run over everyone who worked."""
    worked: dict[str, set[date]] = {}
    for slot, emp_id in zip(slots, assignment):
        if emp_id is not None:
            worked.setdefault(emp_id, set()).add(slot.date)
    runs = [r for dates in worked.values() for r in worked_runs(dates)]
    if not runs:
        return 0.0, 0
    return float(np.mean(runs)), int(np.max(runs))
