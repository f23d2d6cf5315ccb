# src/pharmacy_rostering/rules/double_booking.py
from __future__ import annotations

from pharmacy_rostering.rules.base import Rule


class NoDoubleBookingRule(Rule):
    """
    A staff member cannot work two overlapping shifts. Each candidate (e, s)
    pair becomes an optional interval over absolute minutes since the period
    start, present iff x[e,s]; intervals per employee must not overlap.
    """

    order = 30
    name = "NoDoubleBooking"

    def declare_vars(self):
        ctx, m = self.model, self.model.m
        self.intervals: dict[int, list] = {}
        for e in range(len(ctx.staff)):
            per_emp = []
            for s, var in ctx.slot_vars_for(e):
                slot = ctx.slots[s]
                per_emp.append(
                    m.new_optional_fixed_size_interval_var(
                        slot.abs_start,
                        slot.duration_minutes,
                        var,
                        f"iv_e{e}_s{s}",
                    )
                )
            self.intervals[e] = per_emp

    def add_hard(self):
        m = self.model.m
        for per_emp in self.intervals.values():
            if len(per_emp) > 1:
                m.add_no_overlap(per_emp)
