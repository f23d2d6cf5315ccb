from __future__ import annotations

import pytest

from pharmacy_rostering.config import Config
from pharmacy_rostering.input_data import build_request
from pharmacy_rostering.main import run_solver
from pharmacy_rostering.model import RosterModel
from pharmacy_rostering.reporting.reporter import Reporter


def _model(payload, **cfg_overrides):
    config = Config(**cfg_overrides)
    return RosterModel(config, build_request(payload, config))


def test_pre_solve_prints_advisories_without_blocking(capsys, payload_factory, employee):
    payload = payload_factory(
        employees=[employee("s1", "säljare")],
        min_staffing=[{"role": "pharmacist", "count": 2}],
    )
    model = _model(payload, STRATEGY="greedy")
    Reporter(model.cfg).pre_solve(model)

    out = capsys.readouterr().out
    assert "Pre-check" in out
    assert "❌ Farmaceut" in out
    assert model.precheck().understaffed


def test_pre_solve_model_stats_stage(capsys, payload_factory):
    model = _model(payload_factory())
    model.build()
    Reporter(model.cfg).pre_solve(
        model, stage="model_stats", model_stats=model.model_stats()
    )
    out = capsys.readouterr().out
    assert "unit_slots=5" in out
    assert "assignment_vars=5" in out


def test_post_solve_writes_report_file(tmp_path, capsys, payload_factory):
    model = _model(payload_factory(), STRATEGY="greedy")
    res = model.solve()
    path = tmp_path / "reports" / "run.txt"

    Reporter(model.cfg, report_path=path).post_solve(res, model)

    text = path.read_text(encoding="utf-8")
    assert text.startswith("Solver status: GREEDY")
    assert "Shifts by role:" in text
    assert "Solver status: GREEDY" in capsys.readouterr().out


def test_run_solver_uses_custom_reporter(payload_factory):
    calls = []

    class RecordingReporter(Reporter):
        def pre_solve(self, model, *, stage="precheck", model_stats=None):
            calls.append(stage)

        def post_solve(self, res, model):
            calls.append("post")

    config = Config(STRATEGY="cpsat", DETERMINISTIC_TIME_LIMIT=1.0)
    request = build_request(payload_factory(), config)
    run_solver(config, request=request, reporter=RecordingReporter(config))
    assert calls == ["precheck", "model_stats", "post"]


def test_report_descriptors_need_a_built_model(payload_factory):
    model = _model(payload_factory())
    with pytest.raises(RuntimeError, match="build"):
        model.get_report_descriptors()
    model.build()
    assert any(d["type"] == "coverage" for d in model.get_report_descriptors())


def test_solve_builds_the_model_on_demand(payload_factory):
    model = _model(payload_factory(), STRATEGY="cpsat", DETERMINISTIC_TIME_LIMIT=1.0)
    assert model.model_stats() is None

    res = model.solve()

    assert res.status_name in ("OPTIMAL", "FEASIBLE")
    assert model.model_stats()["unit_slots"] == 5
    assert [s.assigned_employee_id for s in res.shifts] == ["p1"] * 5
