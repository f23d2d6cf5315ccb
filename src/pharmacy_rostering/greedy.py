# src/pharmacy_rostering/greedy.py
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional, Sequence

from pharmacy_rostering.expand import Slot
from pharmacy_rostering.staff import StaffMember


def is_eligible(member: StaffMember, slot: Slot) -> bool:
    """Static hard constraints: role match and availability on the slot's date."""
    return member.role is slot.role and member.is_available(slot.date)


def run_length_with(worked: set[date], day: date) -> int:
    """Length of the run of consecutive worked days containing `day` once it is worked."""
    run = 1
    cur = day - timedelta(days=1)
    while cur in worked:
        run += 1
        cur -= timedelta(days=1)
    cur = day + timedelta(days=1)
    while cur in worked:
        run += 1
        cur += timedelta(days=1)
    return run


@dataclass
class StaffLedger:
    """Running per-staff counters; updated after every assignment."""

    member: StaffMember
    target_minutes: float
    assigned_minutes: int = 0
    slots_by_date: dict[date, list[Slot]] = field(
        default_factory=lambda: defaultdict(list)
    )
    shifts_by_week: dict[tuple[int, int], int] = field(
        default_factory=lambda: defaultdict(int)
    )

    @property
    def worked_dates(self) -> set[date]:
        return {d for d, booked in self.slots_by_date.items() if booked}

    def is_double_booked(self, slot: Slot) -> bool:
        return any(slot.overlaps(b) for b in self.slots_by_date.get(slot.date, []))

    def breaks_consecutive_cap(self, slot: Slot) -> bool:
        cap = self.member.max_consecutive_days
        if cap is None:
            return False
        worked = self.worked_dates
        if slot.date in worked:
            return False
        return run_length_with(worked, slot.date) > cap

    def can_take(self, slot: Slot) -> bool:
        return (
            is_eligible(self.member, slot)
            and not self.is_double_booked(slot)
            and not self.breaks_consecutive_cap(slot)
        )

    def rank(self, slot: Slot) -> tuple:
        iso = slot.date.isocalendar()
        return (
            self.assigned_minutes - self.target_minutes,
            self.shifts_by_week[(iso[0], iso[1])],
            self.member.id,
        )

    def book(self, slot: Slot) -> None:
        iso = slot.date.isocalendar()
        self.assigned_minutes += slot.paid_minutes
        self.slots_by_date[slot.date].append(slot)
        self.shifts_by_week[(iso[0], iso[1])] += 1


class GreedyAssigner:
    """
    Reference assignment heuristic.

    Slots are visited in (date, start, end, role) order; each goes to the
    hard-feasible candidate furthest below their target hours, ties broken by
    fewer shifts that ISO week, then staff id. A slot nobody can take stays
    unfilled. Deterministic for identical input.
    """

    def __init__(
        self, slots: Sequence[Slot], staff: Sequence[StaffMember], period_days: int
    ) -> None:
        self.slots = list(slots)
        self.staff = list(staff)
        self.period_days = int(period_days)
        self.ledgers: dict[str, StaffLedger] = {
            m.id: StaffLedger(m, m.target_hours(self.period_days) * 60.0)
            for m in self.staff
        }

    def assign(self) -> list[Optional[str]]:
        """Return the assigned staff id (or None) for every slot, aligned with `slots`."""
        order = sorted(range(len(self.slots)), key=lambda i: self.slots[i].sort_key())
        assignment: list[Optional[str]] = [None] * len(self.slots)
        for i in order:
            slot = self.slots[i]
            candidates = [
                ledger for ledger in self.ledgers.values() if ledger.can_take(slot)
            ]
            if not candidates:
                continue
            best = min(candidates, key=lambda ledger: ledger.rank(slot))
            best.book(slot)
            assignment[i] = best.member.id
        return assignment
