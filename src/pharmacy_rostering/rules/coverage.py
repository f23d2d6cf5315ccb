# src/pharmacy_rostering/rules/coverage.py
from __future__ import annotations

from collections import Counter
from typing import Any

from pharmacy_rostering.rules.base import Rule


class CoverageRule(Rule):
    """
    Every unit slot is either staffed by exactly one person or explicitly unfilled:
        ∑_e x[e,s] + u[s] = 1
    Objective: penalty · ∑_s u[s], where the penalty (default
    Config.UNFILLED_PENALTY) dwarfs every fairness term so that coverage is
    never traded for balance.
    """

    order = 20
    name = "Coverage"

    def __init__(self, model, **settings):
        super().__init__(model, **settings)
        self.penalty = int(self.setting("penalty", model.cfg.UNFILLED_PENALTY))
        if self.penalty <= 0:
            raise ValueError("coverage 'penalty' must be > 0")

    def add_hard(self):
        ctx, m = self.model, self.model.m
        takers: dict[int, list] = {s: [] for s in range(len(ctx.slots))}
        for (e, s), var in ctx.x.items():
            takers[s].append(var)
        for s, vars_ in takers.items():
            m.add(sum(vars_) + ctx.u[s] == 1)

    def contribute_objective(self):
        return [self.penalty * u for u in self.model.u.values()]

    def report_descriptors(self) -> list[dict[str, Any]]:
        ctx = self.model
        per_role = Counter(slot.role.value for slot in ctx.slots)
        no_takers = set(range(len(ctx.slots))) - {s for (_, s) in ctx.x}
        return [
            {
                "type": "coverage",
                "name": self.name,
                "unit_slots_by_role": dict(per_role),
                "slots_without_candidates": len(no_takers),
            }
        ]
