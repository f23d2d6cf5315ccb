"""
Module with example code for running the schedule generator.

There are three ways to run the code:

1. Run the code with default options. This will generate a
    synthetic request from the config and schedule it.
2. Run the code with a request defined via code.
3. Run the code with a request pre-defined in a JSON file.

Usage via cli:
    python3 -m src.example --option 1
"""

from __future__ import annotations

import argparse
import json
from dataclasses import replace
from datetime import date, timedelta
from pathlib import Path

from pharmacy_rostering import Config, GenerationRequest, run_solver
from pharmacy_rostering.generate.request import request_from_json
from pharmacy_rostering.input_data import (
    CoverageRequirement,
    DayHours,
    FillType,
    GenerationRules,
    MinStaffingRule,
    build_request,
    parse_clock,
)
from pharmacy_rostering.main import MinimalProgress, Reporter, default_request_builder
from pharmacy_rostering.roles import Role
from pharmacy_rostering.rules.base import RuleSpec
from pharmacy_rostering.rules.fairness import FairnessRule
from pharmacy_rostering.rules.registry import default_rule_specs
from pharmacy_rostering.staff import EmploymentType, StaffMember

cfg = Config(
    STRATEGY="cpsat",
    TIME_LIMIT_SEC=60.0,
    DETERMINISTIC_TIME_LIMIT=5.0,
    LOG_SOLUTIONS_FREQUENCY_SECONDS=1.0,
    VERBOSE=True,
)


def _example_rule_specs() -> list[RuleSpec]:
    """Default rules with a gentler fairness curve for option 3."""
    specs = [s for s in default_rule_specs() if s.cls is not FairnessRule]
    specs.append(
        RuleSpec(
            cls=FairnessRule,
            order=90,
            settings={"base": 1.25, "scale": 1.0, "max_deviation_hours": 6},
        )
    )
    return specs


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run schedule generation examples.")
    parser.add_argument(
        "--option",
        type=int,
        default=3,
        choices=(1, 2, 3),
        help="Example scenario to run (default: 3).",
    )
    return parser.parse_args()


def run_option(option: int) -> None:
    print(f"Running example code with option {option}")

    # Run the code with default options. This will generate a
    # synthetic request from the config and schedule it.
    if option == 1:

        # The parameters below are defaults, with the exception of config,
        # they can be omitted i.e. the below is equivalent to:
        # run_solver(cfg)
        run_solver(
            config=cfg,
            validate_config=True,
            request_builder=default_request_builder,
            reporter=Reporter(cfg),
            progress_cb=MinimalProgress(
                cfg.TIME_LIMIT_SEC, cfg.LOG_SOLUTIONS_FREQUENCY_SECONDS
            ),
        )

    # Run the code with a request defined via code.
    elif option == 2:

        start = date(2024, 4, 1)  # a Monday
        open_m, close_m = parse_clock("09:00"), parse_clock("18:00")
        hours = {dow: DayHours(dow, open_m, close_m) for dow in range(1, 6)}

        staff = [
            StaffMember(
                id="p1",
                name="Anna",
                role=Role.PHARMACIST,
                minsta_antal_timmar=40,
                unavailable_dates={start + timedelta(days=2)},
            ),
            StaffMember(
                id="p2",
                name="Erik",
                role=Role.PHARMACIST,
                minsta_antal_timmar=24,
                employment_type=EmploymentType.PART_TIME,
                max_consecutive_days=3,
            ),
            StaffMember(
                id="s1",
                name="Maria",
                role=Role.SALES,
                minsta_antal_timmar=0,
                employment_type=EmploymentType.HOURLY,
            ),
        ]
        request = GenerationRequest(
            start_date=start,
            end_date=start + timedelta(days=6),
            pharmacy_hours=hours,
            requirements=[
                CoverageRequirement(
                    days_of_week=frozenset({1, 2, 3, 4, 5}),
                    start_minute=parse_clock("12:00"),
                    end_minute=parse_clock("16:00"),
                    role=Role.SALES,
                    include_lunch=False,
                    fill_type=FillType.EXACT_TIME,
                ),
            ],
            staff=staff,
            rules=GenerationRules(min_staffing=(MinStaffingRule(Role.PHARMACIST, 1),)),
        )
        request.validate()
        run_solver(cfg, request=request)

    # Run the code with a request defined via JSON. Typical production use.
    elif option == 3:

        payload = request_from_json(Path("src/example_request.json"))
        run_cfg = replace(cfg, TIME_LIMIT_SEC=120.0)
        result = run_solver(
            run_cfg,
            request=build_request(payload, run_cfg),
            rules=_example_rule_specs(),
        )
        out = Path("outputs/example_schedule.json")
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(
            json.dumps(result.to_payload(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        print(f"\nSchedule written to {out}")
    else:
        raise SystemExit(f"Unknown option {option}")


def main() -> None:
    args = parse_args()
    run_option(args.option)


if __name__ == "__main__":
    main()
