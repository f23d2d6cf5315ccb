from __future__ import annotations

from datetime import date

import pytest

from pharmacy_rostering.config import Config
from pharmacy_rostering.expand import Slot, SlotSource, expand_requirements, fan_out
from pharmacy_rostering.input_data import build_request
from pharmacy_rostering.roles import Role

WEEK_HOURS = [
    {"dayOfWeek": 0, "openTime": None, "closeTime": None},
    *[
        {"dayOfWeek": d, "openTime": "09:00", "closeTime": "18:00"}
        for d in range(1, 6)
    ],
    {"dayOfWeek": 6, "openTime": "10:00", "closeTime": "14:00"},
]


def _expand(payload, config=None):
    return expand_requirements(build_request(payload), config)


def test_exact_time_requirement_expands_once_per_matching_weekday(payload_factory):
    exp = _expand(payload_factory(start="2024-04-01", end="2024-04-07"))
    assert [s.date for s in exp.slots] == [date(2024, 4, d) for d in range(1, 6)]
    first = exp.slots[0]
    assert (first.start_minute, first.end_minute) == (540, 1020)
    assert first.role is Role.PHARMACIST
    assert first.lunch_minutes == 30
    assert first.paid_minutes == 450
    assert exp.notices == []


def test_full_day_with_lunch_takes_the_whole_opening_window(
    payload_factory, requirement
):
    payload = payload_factory(
        requirements=[requirement(start="10:00", end="12:00", fill_type="full_day")],
        pharmacy_hours=WEEK_HOURS,
    )
    slot = _expand(payload).slots[0]
    assert (slot.start_minute, slot.end_minute) == (540, 1080)
    assert slot.lunch_minutes == 30


def test_full_day_without_lunch_keeps_configured_window(payload_factory, requirement):
    payload = payload_factory(
        requirements=[
            requirement(
                start="10:00", end="12:00", fill_type="full_day", include_lunch=False
            )
        ],
        pharmacy_hours=WEEK_HOURS,
    )
    slot = _expand(payload).slots[0]
    assert (slot.start_minute, slot.end_minute) == (600, 720)
    assert slot.lunch_minutes is None


def test_windows_outside_opening_hours_are_clipped_or_dropped_with_notice(
    payload_factory, requirement
):
    payload = payload_factory(
        start="2024-04-05",
        end="2024-04-06",  # Friday 09-18, Saturday 10-14
        requirements=[
            requirement(days=(5, 6), start="08:00", end="12:00"),
            requirement(days=(6,), start="15:00", end="17:00", role="säljare"),
        ],
        pharmacy_hours=WEEK_HOURS,
    )
    exp = _expand(payload)
    windows = [(s.date, s.start_minute, s.end_minute, s.role) for s in exp.slots]
    assert windows == [
        (date(2024, 4, 5), 540, 720, Role.PHARMACIST),
        (date(2024, 4, 6), 600, 720, Role.PHARMACIST),
    ]
    assert len(exp.notices) == 3
    assert sum("clipped" in n for n in exp.notices) == 2
    assert sum("dropped" in n for n in exp.notices) == 1
    assert "2024-04-06" in exp.notices[-1]


def test_closed_days_produce_no_slots(payload_factory, requirement):
    payload = payload_factory(
        start="2024-04-06",
        end="2024-04-07",
        requirements=[requirement(days=(0, 6), start="10:00", end="14:00")],
        pharmacy_hours=WEEK_HOURS,
    )
    slots = _expand(payload).slots
    assert [s.date for s in slots] == [date(2024, 4, 6)]


def test_short_shifts_get_no_lunch(payload_factory, requirement):
    payload = payload_factory(requirements=[requirement(start="09:00", end="13:00")])
    assert all(s.lunch_minutes is None for s in _expand(payload).slots)
    cfg = Config(LUNCH_MIN_SHIFT_HOURS=3.0)
    assert all(s.lunch_minutes == 30 for s in _expand(payload, cfg).slots)


def test_min_staffing_floor_adds_only_the_residual(payload_factory, requirement):
    payload = payload_factory(
        end="2024-04-01",
        requirements=[requirement(fill_type="full_day", count=1)],
        min_staffing=[{"role": "pharmacist", "count": 3}],
    )
    slots = _expand(payload).slots
    assert [(s.source, s.count) for s in slots] == [
        (SlotSource.REQUIREMENT, 1),
        (SlotSource.MIN_STAFFING, 2),
    ]
    assert len(fan_out(slots)) == 3


def test_floor_already_met_adds_nothing(payload_factory, requirement):
    payload = payload_factory(
        end="2024-04-01",
        requirements=[requirement(fill_type="full_day", count=2)],
        min_staffing=[{"role": "pharmacist", "count": 2}],
    )
    slots = _expand(payload).slots
    assert [s.source for s in slots] == [SlotSource.REQUIREMENT]


def test_partial_exact_time_slot_does_not_count_toward_floor(
    payload_factory, requirement
):
    payload = payload_factory(
        end="2024-04-01",
        requirements=[requirement(start="12:00", end="16:00")],
        min_staffing=[{"role": "pharmacist", "count": 1}],
    )
    slots = _expand(payload).slots
    floor = [s for s in slots if s.source is SlotSource.MIN_STAFFING]
    assert len(floor) == 1
    assert (floor[0].start_minute, floor[0].end_minute) == (540, 1080)
    assert floor[0].lunch_minutes == 30


def test_partial_full_day_slot_does_not_count_toward_floor(
    payload_factory, requirement
):
    payload = payload_factory(
        end="2024-04-01",
        requirements=[
            requirement(
                start="09:00", end="12:00", fill_type="full_day", include_lunch=False
            )
        ],
        min_staffing=[{"role": "pharmacist", "count": 1}],
    )
    slots = _expand(payload).slots
    assert [(s.start_minute, s.end_minute, s.count, s.source) for s in slots] == [
        (540, 720, 1, SlotSource.REQUIREMENT),
        (540, 1080, 1, SlotSource.MIN_STAFFING),
    ]


def test_floor_for_role_without_requirements_applies_every_open_day(payload_factory):
    payload = payload_factory(
        start="2024-04-05",
        end="2024-04-07",
        requirements=[],
        min_staffing=[{"role": "säljare", "count": 1}],
        pharmacy_hours=WEEK_HOURS,
    )
    slots = _expand(payload).slots
    assert [(s.date.day, s.role) for s in slots] == [
        (5, Role.SALES),
        (6, Role.SALES),
    ]


def test_fan_out_orders_by_date_time_role(payload_factory, requirement):
    payload = payload_factory(
        end="2024-04-01",
        requirements=[
            requirement("egenvårdsrådgivare", start="09:00", end="17:00"),
            requirement("pharmacist", start="09:00", end="17:00", count=2),
            requirement("säljare", start="08:00", end="12:00"),
        ],
    )
    units = _expand(payload).unit_slots()
    assert [(s.role, s.position) for s in units] == [
        (Role.SALES, 0),  # clipped to 09:00-12:00, ends first
        (Role.PHARMACIST, 0),
        (Role.PHARMACIST, 1),
        (Role.SELF_CARE_ADVISOR, 0),
    ]
    assert all(s.count == 1 for s in units)


def test_expansion_is_idempotent(payload_factory, requirement):
    payload = payload_factory(
        start="2024-04-01",
        end="2024-04-14",
        requirements=[
            requirement(fill_type="full_day", count=2),
            requirement("säljare", start="12:00", end="20:00"),
        ],
        min_staffing=[{"role": "pharmacist", "count": 3}],
    )
    request = build_request(payload)
    first = expand_requirements(request)
    second = expand_requirements(request)
    assert first.unit_slots() == second.unit_slots()
    assert first.notices == second.notices


def test_slot_validates_its_window():
    with pytest.raises(ValueError):
        Slot(date(2024, 4, 1), 0, 600, 600, Role.PHARMACIST)
    with pytest.raises(ValueError):
        Slot(date(2024, 4, 1), 0, 600, 700, Role.PHARMACIST, count=0)


def test_slot_absolute_start_and_overlap():
    a = Slot(date(2024, 4, 2), 1, 540, 780, Role.SALES)
    b = Slot(date(2024, 4, 2), 1, 720, 900, Role.PHARMACIST)
    c = Slot(date(2024, 4, 2), 1, 780, 900, Role.SALES)
    assert a.abs_start == 1440 + 540
    assert a.overlaps(b)
    assert not a.overlaps(c)  # touching windows do not overlap
