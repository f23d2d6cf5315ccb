from __future__ import annotations

import pytest

from pharmacy_rostering.build import build_model
from pharmacy_rostering.config import Config
from pharmacy_rostering.expand import expand_requirements
from pharmacy_rostering.extract import compute_run_stats, extract_assignment
from pharmacy_rostering.input_data import build_request
from pharmacy_rostering.rules.consecutive_days import ConsecutiveDaysRule
from pharmacy_rostering.solver import solve_model


def _build(payload, cfg=None, rules=None):
    cfg = cfg or Config(DETERMINISTIC_TIME_LIMIT=2.0)
    request = build_request(payload, cfg)
    slots = expand_requirements(request, cfg).unit_slots()
    ctx = build_model(cfg, slots, request.staff, request.period_days, rules=rules)
    return ctx, slots


def _rule(ctx) -> ConsecutiveDaysRule:
    return next(r for r in ctx._rules if isinstance(r, ConsecutiveDaysRule))


def test_cap_is_a_hard_limit(payload_factory, employee):
    payload = payload_factory(employees=[employee("p1", max_consec=2)])
    ctx, slots = _build(payload)

    solver, status = solve_model(ctx)
    assert status == "OPTIMAL"
    assignment = extract_assignment(ctx, solver)
    assert assignment.count("p1") == 4
    assert compute_run_stats(slots, assignment)[1] == 2
    # z follows the assignment
    for s, emp_id in enumerate(assignment):
        assert solver.value(ctx.z[(0, slots[s].day_index)]) == int(emp_id == "p1")


def test_soft_penalty_skips_staff_with_a_tighter_cap(payload_factory, employee):
    payload = payload_factory(
        start="2024-04-01",
        end="2024-04-14",
        employees=[employee("p1", max_consec=3), employee("p2")],
    )
    ctx, _ = _build(payload)
    terms = _rule(ctx).contribute_objective()
    # 14 days, windows of 6 -> 9 windows, only for p2
    assert len(terms) == 9


def test_short_periods_have_no_soft_terms(payload_factory):
    ctx, _ = _build(payload_factory())
    assert _rule(ctx).contribute_objective() == []


def test_zero_scaler_disables_soft_penalty(payload_factory):
    ctx, _ = _build(
        payload_factory(start="2024-04-01", end="2024-04-14")
    )
    rule = ConsecutiveDaysRule(ctx, scaler=0)
    assert rule.contribute_objective() == []


def test_invalid_settings_raise(payload_factory):
    ctx, _ = _build(payload_factory())
    with pytest.raises(ValueError):
        ConsecutiveDaysRule(ctx, consec_days_before_penalty=0)
    with pytest.raises(ValueError):
        ConsecutiveDaysRule(ctx, scaler=-1)
