# src/pharmacy_rostering/build.py
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence, Tuple, Type, cast

from ortools.sat.python import cp_model

from pharmacy_rostering.config import Config
from pharmacy_rostering.expand import Slot
from pharmacy_rostering.rules.base import BuildCtxProto, RuleSpec
from pharmacy_rostering.rules.registry import build_sequence
from pharmacy_rostering.staff import StaffMember

if TYPE_CHECKING:
    # Only imported for typing to avoid runtime cycles
    from pharmacy_rostering.rules.base import Rule

# Type aliases for readability
ES = Tuple[int, int]  # (employee, slot)
ED = Tuple[int, int]  # (employee, day)


class BuildContext:
    """Holds shared state while building the model (used by rules and solver)."""

    def __init__(
        self,
        cfg: Config,
        slots: Sequence[Slot],
        staff: Sequence[StaffMember],
        period_days: int,
    ) -> None:
        self.cfg: Config = cfg
        self.slots: list[Slot] = list(slots)
        self.staff: list[StaffMember] = list(staff)
        self.period_days: int = int(period_days)
        self.m: cp_model.CpModel = cp_model.CpModel()

        # Decision/aux placeholders the rules will populate
        self.x: dict[ES, cp_model.IntVar] = {}  # e works unit slot s
        self.u: dict[int, cp_model.IntVar] = {}  # slot s left unfilled
        self.z: dict[ED, cp_model.IntVar] = {}  # e works any slot on day d

        # Penalty terms per rule name, summed into the objective
        self.objective_terms: dict[str, list[cp_model.LinearExprT]] = {}

        # Concrete rule instances (filled during build)
        self._rules: list["Rule"] = []

    # ----- helpers exposed to rules -----
    def slot_vars_for(self, e: int) -> list[tuple[int, cp_model.IntVar]]:
        """(slot index, x var) pairs for employee e, in slot order."""
        return sorted(
            ((s, var) for (emp, s), var in self.x.items() if emp == e),
            key=lambda item: item[0],
        )

    def add_hint(self, assignment: Sequence[Optional[str]]) -> None:
        """
        Seed the search with a complete assignment (staff id or None per slot),
        typically the greedy result. Every x/u variable gets a hint.
        """
        index_of = {member.id: e for e, member in enumerate(self.staff)}
        chosen = {
            (index_of[emp_id], s)
            for s, emp_id in enumerate(assignment)
            if emp_id is not None and emp_id in index_of
        }
        for key, var in self.x.items():
            self.m.add_hint(var, 1 if key in chosen else 0)
        filled = {s for (_, s) in chosen}
        for s, var in self.u.items():
            self.m.add_hint(var, 0 if s in filled else 1)

    def report_descriptors(self) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        for rule in self._rules:
            out.extend(rule.report_descriptors())
        return out


def build_model(
    cfg: Config,
    slots: Sequence[Slot],
    staff: Sequence[StaffMember],
    period_days: int,
    rules: Sequence[RuleSpec | Type["Rule"] | str] | None = None,
) -> BuildContext:
    """
    Build the CP-SAT model by running each registered Rule through the 4 phases:
      1) declare_vars  2) add_hard  3) add_soft  4) contribute_objective
    Then attach the final objective and run sanity checks.
    """
    ctx = BuildContext(cfg, slots, staff, period_days)

    ctx._rules = build_sequence(cast(BuildCtxProto, ctx), rules)

    # Phase 1: variables
    for r in ctx._rules:
        r.declare_vars()

    # Phase 2: hard constraints
    for r in ctx._rules:
        r.add_hard()

    # Phase 3: soft constraints (aux variables etc.)
    for r in ctx._rules:
        r.add_soft()

    # Phase 4: objective terms
    for r in ctx._rules:
        ctx.objective_terms.setdefault(r.name, []).extend(r.contribute_objective())

    terms = [t for per_rule in ctx.objective_terms.values() for t in per_rule]
    ctx.m.minimize(cp_model.LinearExpr.sum(terms) if terms else 0)

    # ---- sanity checks (fail fast with clear messages) ----
    if len(ctx.u) != len(ctx.slots):
        raise RuntimeError(
            f"[build sanity] u has {len(ctx.u)} keys; expected {len(ctx.slots)} (one per slot). "
            "Ensure VariablesRule is registered/enabled."
        )
    expected_z = len(ctx.staff) * ctx.period_days
    if len(ctx.z) != expected_z:
        raise RuntimeError(
            f"[build sanity] z has {len(ctx.z)} keys; expected {expected_z} (staff*days)."
        )

    return ctx
