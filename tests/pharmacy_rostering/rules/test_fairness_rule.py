from __future__ import annotations

from types import SimpleNamespace

import pytest

from pharmacy_rostering.build import build_model
from pharmacy_rostering.config import Config
from pharmacy_rostering.expand import expand_requirements
from pharmacy_rostering.extract import extract_assignment
from pharmacy_rostering.input_data import build_request
from pharmacy_rostering.rules.fairness import FairnessRule
from pharmacy_rostering.solver import solve_model


def _ctx_for(payload, cfg=None):
    cfg = cfg or Config(DETERMINISTIC_TIME_LIMIT=2.0)
    request = build_request(payload, cfg)
    slots = expand_requirements(request, cfg).unit_slots()
    return build_model(cfg, slots, request.staff, request.period_days)


def test_penalty_table_is_cumulative_and_convex():
    rule = FairnessRule(SimpleNamespace(), base=2.0, scale=1.0, max_deviation_hours=4)
    assert rule.penalty_table() == [0, 2, 6, 14, 30]


@pytest.mark.parametrize(
    "settings",
    [{"base": 1.0}, {"scale": -1}, {"excess_weight": -0.5}, {"max_deviation_hours": 0}],
)
def test_invalid_settings_raise(settings):
    with pytest.raises(ValueError):
        FairnessRule(SimpleNamespace(), **settings)


def test_hourly_staff_only_get_linear_terms(payload_factory, employee):
    payload = payload_factory(
        employees=[employee("p1"), employee("p2", hours=0, kind="Timanställd")]
    )
    ctx = _ctx_for(payload)
    terms = FairnessRule(ctx).contribute_objective()
    # p1: excess + shortfall + exponential tier; p2: excess + shortfall
    assert len(terms) == 5


def test_work_is_shared_towards_targets(payload_factory, employee):
    payload = payload_factory(
        employees=[employee("p1", hours=20), employee("p2", hours=20)]
    )
    ctx = _ctx_for(payload)
    solver, status = solve_model(ctx)
    assert status == "OPTIMAL"
    assignment = extract_assignment(ctx, solver)
    assert None not in assignment
    assert sorted([assignment.count("p1"), assignment.count("p2")]) == [2, 3]


def test_totals_are_shared_between_rules(payload_factory):
    ctx = _ctx_for(payload_factory())
    cache = ctx._total_minutes_cache
    assert set(cache) == {0}
    FairnessRule(ctx).contribute_objective()
    assert set(ctx._total_minutes_cache) == {0}
    assert ctx._total_minutes_cache[0] is cache[0]
