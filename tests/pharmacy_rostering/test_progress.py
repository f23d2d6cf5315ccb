# tests/pharmacy_rostering/test_progress.py
import re
from unittest.mock import patch

import pytest
from ortools.sat.python import cp_model

from pharmacy_rostering.progress import MinimalProgress


@pytest.fixture
def solver():
    """CpSolver with a short time limit so the test runs fast."""
    s = cp_model.CpSolver()
    s.parameters.max_time_in_seconds = 0.2
    s.parameters.num_workers = 1
    s.parameters.log_search_progress = False
    return s


@pytest.fixture
def mock_print():
    """Patch print in the progress module to capture output."""
    with patch("pharmacy_rostering.progress.print") as m:
        yield m


def build_tiny_model():
    """
    Small model with an objective so at least one solution is reported.
    Maximize x + y subject to bounds.
    """
    m = cp_model.CpModel()
    x = m.new_int_var(0, 50, "x")
    y = m.new_int_var(0, 50, "y")
    m.maximize(x + y)
    return m


def test_progress_callback_prints_and_records(solver, mock_print):
    # log_every_sec=0 so the first solution prints immediately
    callback = MinimalProgress(time_limit_sec=0.2, log_every_sec=0.0)

    status = solver.solve(build_tiny_model(), callback)

    assert status in (cp_model.OPTIMAL, cp_model.FEASIBLE)
    assert callback.sols >= 1
    assert len(callback.solution_history()) == callback.sols
    assert mock_print.call_count >= 2, "Expected a header and a progress line"

    args, _ = mock_print.call_args  # last call
    line = args[0] if args else ""
    assert "sols=" in line
    assert "best=" in line
    assert "bound=" in line
    assert "gap=" not in line
    assert re.match(r"^\[\s*\d+(\.\d+)?s\]\s", line)


def test_quiet_progress_only_records(solver, mock_print):
    callback = MinimalProgress(time_limit_sec=0.2, log_every_sec=0.0, verbose=False)

    solver.solve(build_tiny_model(), callback)

    mock_print.assert_not_called()
    history = callback.solution_history()
    assert history
    wall_time, best, bound = history[-1]
    assert best == 100
    assert bound >= best


def test_solution_history_is_a_copy():
    callback = MinimalProgress(time_limit_sec=1.0, verbose=False)
    callback.history.append((0.1, 5.0, 3.0))
    snapshot = callback.solution_history()
    snapshot.clear()
    assert callback.history == [(0.1, 5.0, 3.0)]
