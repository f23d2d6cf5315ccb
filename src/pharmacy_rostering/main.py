from __future__ import annotations

import argparse
import json
import sys
from contextlib import redirect_stdout
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence, Type

from ortools.sat.python import cp_model

from pharmacy_rostering.config import Config, cfg
from pharmacy_rostering.generate.request import RequestGenConfig, build_request_payload
from pharmacy_rostering.input_data import GenerationRequest, RequestError, build_request
from pharmacy_rostering.model import RosterModel
from pharmacy_rostering.progress import MinimalProgress
from pharmacy_rostering.reporting import Reporter
from pharmacy_rostering.reporting.text_report import describe
from pharmacy_rostering.result_types import GenerationResult, error_payload
from pharmacy_rostering.rules.base import Rule, RuleSpec

RequestBuilder = Callable[[Config], GenerationRequest]


def default_request_builder(config: Config) -> GenerationRequest:
    """Build a synthetic request using the project's generator."""
    payload = build_request_payload(RequestGenConfig(seed=config.SEED))
    return build_request(payload, config)


def run_solver(
    config: Config | None = None,
    request: GenerationRequest | None = None,
    request_builder: RequestBuilder | None = None,
    reporter: Reporter | None = None,
    progress_cb: cp_model.CpSolverSolutionCallback | None = None,
    validate_config: bool = True,
    enable_reporting: bool | None = None,
    rules: Sequence[RuleSpec | Type[Rule] | str] | None = None,
) -> GenerationResult:
    """
    Expand, assign, and optionally report on a schedule request.

    Parameters
    ----------
    config:
        The configuration for the run. Defaults to `pharmacy_rostering.config.cfg`.
    request:
        A parsed `GenerationRequest`. When omitted, `request_builder` (or the
        default synthetic builder) constructs one from the config.
    request_builder:
        Optional callable that accepts a `Config` and returns a request.
        Ignored when `request` is supplied.
    reporter:
        Custom reporter. When reporting is enabled and none is given, the
        default `Reporter` is used.
    progress_cb:
        Optional `cp_model.CpSolverSolutionCallback`. Defaults to
        `MinimalProgress`, printing only when `Config.VERBOSE` is set.
    validate_config:
        Toggle to run `Config.validate()` first.
    enable_reporting:
        Run reporter pre/post hooks. Defaults to True when a reporter is
        passed or `Config.VERBOSE` is set, so library calls stay silent.
    rules:
        Optional rule selection/settings for the CP-SAT model. `None` uses
        the library defaults.

    Returns
    -------
    GenerationResult
    """
    cfg_obj = config or cfg

    if validate_config:
        cfg_obj.validate()

    if request is None:
        builder = request_builder or default_request_builder
        request = builder(cfg_obj)

    model = RosterModel(cfg_obj, request, rules=rules)

    if enable_reporting is None:
        enable_reporting = reporter is not None or cfg_obj.VERBOSE
    active_reporter = reporter if enable_reporting else None
    if active_reporter is None and enable_reporting:
        active_reporter = Reporter(cfg_obj)

    if active_reporter is not None:
        active_reporter.pre_solve(model, stage="precheck")

    progress = None
    if cfg_obj.STRATEGY == "cpsat":
        model.build()
        if active_reporter is not None:
            active_reporter.pre_solve(
                model, stage="model_stats", model_stats=model.model_stats()
            )
        progress = progress_cb or MinimalProgress(
            cfg_obj.TIME_LIMIT_SEC,
            cfg_obj.LOG_SOLUTIONS_FREQUENCY_SECONDS,
            verbose=cfg_obj.VERBOSE,
        )

    result = model.solve(progress_cb=progress)

    if active_reporter is not None:
        active_reporter.post_solve(result, model)

    return result


def generate_schedule(
    payload: Mapping[str, Any],
    config: Config | None = None,
    rules: Sequence[RuleSpec | Type[Rule] | str] | None = None,
) -> dict[str, Any]:
    """
    Request payload in, response payload out.

    Malformed requests produce {"error": message} and no schedule; every
    other shortfall is reported through warnings in a normal response.
    """
    cfg_obj = config or cfg
    try:
        request = build_request(payload, cfg_obj)
    except RequestError as exc:
        return error_payload(str(exc))
    result = run_solver(
        config=cfg_obj, request=request, rules=rules, enable_reporting=False
    )
    return result.to_payload()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pharmacy-rostering",
        description="Generate a pharmacy staff schedule from a JSON request.",
    )
    parser.add_argument("request", type=Path, help="Path to the request JSON file.")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the response JSON here instead of stdout.",
    )
    parser.add_argument(
        "--strategy",
        choices=("cpsat", "greedy"),
        default=None,
        help=f"Assignment strategy (default: {cfg.STRATEGY}).",
    )
    parser.add_argument(
        "--time-limit",
        type=float,
        default=None,
        help=(
            "Wall-clock safety net for the CP-SAT search in seconds; must not be "
            "below the deterministic limit."
        ),
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print the pre-check, solver progress and a text report to stderr.",
    )
    parser.add_argument(
        "--report-file",
        type=Path,
        default=None,
        help="Also save the text report to this file (implies --report).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point. Exit code 1 when the request is rejected."""
    args = parse_args(argv)

    overrides: dict[str, Any] = {}
    if args.strategy:
        overrides["STRATEGY"] = args.strategy
    if args.time_limit is not None:
        overrides["TIME_LIMIT_SEC"] = args.time_limit
    report = bool(args.report or args.report_file)
    if report:
        overrides["VERBOSE"] = True
    run_cfg = replace(cfg, **overrides)

    try:
        payload = json.loads(args.request.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Could not read {args.request}: {exc}", file=sys.stderr)
        return 1

    try:
        run_cfg.validate()
        request = build_request(payload, run_cfg)
    except ValueError as exc:
        response = error_payload(str(exc))
        exit_code = 1
    else:
        if report:
            # Keep stdout clean for the JSON response
            with redirect_stdout(sys.stderr):
                result = run_solver(
                    run_cfg,
                    request=request,
                    reporter=Reporter(run_cfg, report_path=args.report_file),
                )
        else:
            result = run_solver(run_cfg, request=request, enable_reporting=False)
        print(describe(result), file=sys.stderr)
        response = result.to_payload()
        exit_code = 0

    text = json.dumps(response, ensure_ascii=False, indent=2)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
