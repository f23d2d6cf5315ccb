from __future__ import annotations

from collections import defaultdict

from pharmacy_rostering.rules.base import Rule


class ConsecutiveDaysRule(Rule):
    """
    Link worked-day indicators to assignments, enforce per-staff hard caps on
    consecutive working days, and softly discourage long runs for everyone else.

      z[e,d] = 1  iff  e works at least one shift on day d
      cap k   =>  every window of k+1 consecutive calendar days has ∑ z ≤ k

    Settings (RuleSpec.settings):
      consec_days_before_penalty: int, run length allowed before the soft penalty applies (default 5)
      scaler: float >= 0, penalty per window that exceeds it (default 2.0; 0 disables)
    """

    order = 40
    name = "ConsecutiveDays"

    def __init__(self, model, **settings):
        super().__init__(model, **settings)
        self.consec_days_before_penalty = int(
            self.setting("consec_days_before_penalty", 5)
        )
        self.scaler = float(self.setting("scaler", 2.0))
        if self.consec_days_before_penalty < 1:
            raise ValueError("consec_days_before_penalty must be >= 1")
        if self.scaler < 0:
            raise ValueError("consecutive-days 'scaler' must be >= 0")

    def add_hard(self) -> None:
        ctx, m = self.model, self.model.m
        D = int(ctx.period_days)

        on_day: dict[tuple[int, int], list] = defaultdict(list)
        for (e, s), var in ctx.x.items():
            on_day[(e, ctx.slots[s].day_index)].append(var)

        for (e, d), worked in ctx.z.items():
            vars_ = on_day.get((e, d), [])
            if not vars_:
                m.add(worked == 0)
                continue
            for var in vars_:
                m.add_implication(var, worked)
            m.add(worked <= sum(vars_))

        for e, member in enumerate(ctx.staff):
            limit = member.max_consecutive_days
            if limit is None or limit >= D:
                continue
            for start in range(D - limit):
                m.add(
                    sum(ctx.z[(e, d)] for d in range(start, start + limit + 1)) <= limit
                )

    def contribute_objective(self):
        weight = int(round(self.scaler))
        if weight <= 0:
            return []

        ctx, m = self.model, self.model.m
        D = int(ctx.period_days)
        span = self.consec_days_before_penalty + 1
        if D < span:
            return []

        terms = []
        for e, member in enumerate(ctx.staff):
            limit = member.max_consecutive_days
            if limit is not None and limit <= self.consec_days_before_penalty:
                # The hard cap already rules these runs out.
                continue
            for start in range(D - span + 1):
                over = m.new_bool_var(f"consec_over_e{e}_d{start}")
                window = sum(ctx.z[(e, d)] for d in range(start, start + span))
                m.add(window <= self.consec_days_before_penalty + over)
                terms.append(weight * over)
        return terms
