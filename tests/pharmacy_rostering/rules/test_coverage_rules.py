from __future__ import annotations

from pharmacy_rostering.build import build_model
from pharmacy_rostering.config import Config
from pharmacy_rostering.expand import expand_requirements
from pharmacy_rostering.extract import extract_assignment
from pharmacy_rostering.input_data import build_request
from pharmacy_rostering.solver import solve_model


def _solve(payload):
    cfg = Config(DETERMINISTIC_TIME_LIMIT=2.0)
    request = build_request(payload, cfg)
    slots = expand_requirements(request, cfg).unit_slots()
    ctx = build_model(cfg, slots, request.staff, request.period_days)
    solver, status = solve_model(ctx)
    return ctx, slots, solver, status


def test_overlapping_needs_cannot_share_one_person(
    payload_factory, employee, requirement
):
    payload = payload_factory(
        start="2024-04-01",
        end="2024-04-01",
        employees=[employee("p1")],
        requirements=[
            requirement(days=(1,), start="09:00", end="13:00"),
            requirement(days=(1,), start="12:00", end="16:00"),
            requirement(days=(1,), start="16:00", end="18:00"),
        ],
    )
    ctx, slots, solver, status = _solve(payload)
    assert status == "OPTIMAL"
    assignment = extract_assignment(ctx, solver)
    # Touching windows are fine; the 12-16 overlap forces one hole
    assert assignment.count("p1") == 2
    assert assignment[2] == "p1"
    assert sum(solver.value(u) for u in ctx.u.values()) == 1


def test_role_and_availability_are_respected(payload_factory, employee):
    payload = payload_factory(
        employees=[
            employee("p1", unavailable=("2024-04-02", "2024-04-04")),
            employee("s1", "säljare"),
        ]
    )
    ctx, slots, solver, status = _solve(payload)
    assert all(ctx.staff[e].id == "p1" for (e, _) in ctx.x)
    assignment = extract_assignment(ctx, solver)
    assert [slot.date.day for slot, a in zip(slots, assignment) if a is None] == [2, 4]


def test_report_descriptors_summarise_rules(payload_factory, employee):
    payload = payload_factory(
        employees=[employee("p1", unavailable=("2024-04-02",)), employee("s1", "säljare")]
    )
    ctx, *_ = _solve(payload)
    by_type = {d["type"]: d for d in ctx.report_descriptors()}
    assert by_type["availability"]["blocked_pairs"] == 1
    assert by_type["coverage"]["unit_slots_by_role"] == {"pharmacist": 5}
    assert by_type["coverage"]["slots_without_candidates"] == 0
