# src/pharmacy_rostering/model.py
from __future__ import annotations

from typing import Optional, Sequence, Type

import pandas as pd

from pharmacy_rostering.build import BuildContext, build_model
from pharmacy_rostering.config import Config
from pharmacy_rostering.expand import Expansion, Slot, expand_requirements
from pharmacy_rostering.extract import (
    assignment_frame,
    compute_run_stats,
    extract_assignment,
)
from pharmacy_rostering.greedy import GreedyAssigner
from pharmacy_rostering.input_data import GenerationRequest
from pharmacy_rostering.precheck import (
    CoverageCheck,
    precheck_capacity,
    precheck_coverage,
)
from pharmacy_rostering.reporting.stats import (
    compute_stats,
    coverage_warnings,
    explain_unfilled,
    fairness_warnings,
)
from pharmacy_rostering.result_types import GenerationResult, Shift
from pharmacy_rostering.rules.base import Rule, RuleSpec
from pharmacy_rostering.solver import solve_model

Assignment = list[Optional[str]]

SOLVED_STATUSES = ("OPTIMAL", "FEASIBLE")


class RosterModel:
    """
    Thin orchestrator around:
      - precheck_coverage()   -> headcount advisories
      - expand_requirements() -> dated unit slots
      - GreedyAssigner        -> reference assignment (hint + fallback)
      - build_model()         -> BuildContext with CP-SAT model + variables
      - solve_model()         -> runs CP-SAT
      - extraction helpers    -> Shifts, stats and warnings
    """

    def __init__(
        self,
        cfg: Config,
        request: GenerationRequest,
        rules: Sequence[RuleSpec | Type[Rule] | str] | None = None,
    ):
        self.cfg = cfg
        self.request = request
        self._rule_specs = rules
        self._expansion: Expansion | None = None
        self._slots: list[Slot] | None = None
        self._greedy: Assignment | None = None
        self._ctx: BuildContext | None = None

    # ---------- Precheck ----------
    def precheck(self) -> CoverageCheck:
        return precheck_coverage(
            self.request.requirements,
            self.request.rules.min_staffing,
            self.request.staff,
            overstaff_margin=self.cfg.OVERSTAFF_MARGIN,
        )

    def capacity(self):
        return precheck_capacity(self.slots, self.request.staff)

    # ---------- Expansion ----------
    @property
    def expansion(self) -> Expansion:
        if self._expansion is None:
            self._expansion = expand_requirements(self.request, self.cfg)
        return self._expansion

    @property
    def slots(self) -> list[Slot]:
        """Unit slots in stable (date, start, end, role) order."""
        if self._slots is None:
            self._slots = self.expansion.unit_slots()
        return self._slots

    # ---------- Greedy ----------
    def assign_greedy(self) -> Assignment:
        if self._greedy is None:
            self._greedy = GreedyAssigner(
                self.slots, self.request.staff, self.request.period_days
            ).assign()
        return list(self._greedy)

    # ---------- Build ----------
    def build(self) -> BuildContext:
        """
        Build the CP-SAT model and seed it with the greedy assignment.
        """
        self._ctx = build_model(
            self.cfg,
            self.slots,
            self.request.staff,
            self.request.period_days,
            rules=self._rule_specs,
        )
        self._ctx.add_hint(self.assign_greedy())
        return self._ctx

    # ---------- Solve ----------
    def solve(self, progress_cb=None) -> GenerationResult:
        """
        Produce the schedule with the configured strategy.

        "greedy" returns the reference heuristic directly. "cpsat" optimises
        the same hard constraints, starting from the greedy hint; when the
        solver returns no usable solution the greedy assignment is kept and
        the status reads GREEDY_FALLBACK.
        """
        if self.cfg.STRATEGY == "greedy":
            return self._result(self.assign_greedy(), "GREEDY")

        ctx = self._ctx or self.build()

        if self.cfg.VERBOSE:
            print("\nSolving...")
        solver, status_name = solve_model(ctx, progress_cb=progress_cb)

        progress_history = None
        if progress_cb is not None:
            if hasattr(progress_cb, "solution_history") and callable(
                getattr(progress_cb, "solution_history")
            ):
                progress_history = progress_cb.solution_history()
            else:
                progress_history = getattr(progress_cb, "history", None)

        if status_name not in SOLVED_STATUSES:
            result = self._result(self.assign_greedy(), "GREEDY_FALLBACK")
            result.progress_history = progress_history
            return result

        result = self._result(
            extract_assignment(ctx, solver),
            status_name,
            objective_value=solver.objective_value,
        )
        result.progress_history = progress_history
        return result

    def _result(
        self,
        assignment: Assignment,
        status_name: str,
        objective_value: float | None = None,
    ) -> GenerationResult:
        staff = self.request.staff
        shifts = [
            Shift.from_slot(
                slot,
                emp_id,
                notes="" if emp_id is not None else explain_unfilled(slot, staff),
            )
            for slot, emp_id in zip(self.slots, assignment)
        ]
        stats = compute_stats(shifts, staff, self.request.period_days)
        return GenerationResult(
            shifts=shifts,
            warnings=list(self.expansion.notices) + coverage_warnings(shifts),
            fairness_warnings=fairness_warnings(
                stats, staff, self.cfg.FAIRNESS_TOLERANCE_HOURS
            ),
            stats=stats,
            status_name=status_name,
            objective_value=objective_value,
            precheck_warnings=list(self.precheck().warnings),
        )

    # ---------- Reporting helpers ----------
    def assignment_frame(self, result: GenerationResult) -> pd.DataFrame:
        assignment = [s.assigned_employee_id for s in result.shifts]
        return assignment_frame(self.slots, self.request.staff, assignment)

    def run_stats(self, result: GenerationResult) -> tuple[float, int]:
        """(average, max) consecutive working-day run in the result."""
        assignment = [s.assigned_employee_id for s in result.shifts]
        return compute_run_stats(self.slots, assignment)

    def get_report_descriptors(self) -> list[dict]:
        if self._ctx is None:
            raise RuntimeError("Call build() before get_report_descriptors().")
        return self._ctx.report_descriptors()

    def model_stats(self) -> dict[str, int] | None:
        if self._ctx is None:
            return None
        return {
            "unit_slots": len(self._ctx.slots),
            "assignment_vars": len(self._ctx.x),
            "staff": len(self._ctx.staff),
            "days": self._ctx.period_days,
        }
