from __future__ import annotations

from typing import Callable

from ortools.sat.python import cp_model


def ensure_total_minutes(rule, horizon_ub: int) -> Callable[[int], cp_model.IntVar]:
    """Return accessor that reuses per-employee paid-minute IntVars."""

    cache: dict[int, cp_model.IntVar] | None = getattr(
        rule.model, "_total_minutes_cache", None
    )
    if cache is None:
        cache = {}
        rule.model._total_minutes_cache = cache

    def _getter(e: int) -> cp_model.IntVar:
        if e not in cache:
            total = rule.model.m.new_int_var(0, horizon_ub, f"total_minutes_e{e}")
            rule.model.m.add(
                total
                == sum(
                    rule.model.slots[s].paid_minutes * var
                    for s, var in rule.model.slot_vars_for(e)
                )
            )
            cache[e] = total
        return cache[e]

    return _getter
