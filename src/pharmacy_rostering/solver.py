# src/pharmacy_rostering/solver.py
from __future__ import annotations

from typing import Tuple

from ortools.sat.python import cp_model

from pharmacy_rostering.build import BuildContext
from pharmacy_rostering.config import Config


def setup_solver(cfg: Config) -> cp_model.CpSolver:
    """
    Single worker + fixed seed + deterministic time budget, so the same model
    always yields the same answer. The wall-clock limit is only a safety net.
    """
    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = cfg.TIME_LIMIT_SEC
    solver.parameters.max_deterministic_time = cfg.DETERMINISTIC_TIME_LIMIT
    solver.parameters.num_workers = cfg.NUM_PARALLEL_WORKERS
    solver.parameters.random_seed = cfg.SEED
    solver.parameters.log_search_progress = False
    solver.parameters.log_to_stdout = False
    return solver


def solve_model(
    ctx: BuildContext, progress_cb=None
) -> Tuple[cp_model.CpSolver, str]:
    """
    Run the solver on a built context.
    Returns: (solver, status_name)
    """
    solver = setup_solver(ctx.cfg)
    status = (
        solver.solve(ctx.m, progress_cb)
        if progress_cb is not None
        else solver.solve(ctx.m)
    )
    return solver, solver.status_name(status)
