from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from pharmacy_rostering.precheck import print_precheck_header, print_role_status
from pharmacy_rostering.reporting.text_report import (
    ReportDocument,
    render_text_report,
    set_active_report,
    shifts_by_role,
)
from pharmacy_rostering.result_types import GenerationResult

if TYPE_CHECKING:
    from pharmacy_rostering.model import RosterModel


class Reporter:
    """High-level orchestrator: prints pre-check results and renders reports."""

    def __init__(
        self,
        cfg: Any,
        num_print_examples: int = 6,
        report_path: Path | str | None = None,
    ) -> None:
        self.cfg = cfg
        self.num_print_examples = num_print_examples
        self.report_path = Path(report_path) if report_path is not None else None

    def pre_solve(
        self,
        model: "RosterModel",
        *,
        stage: str = "precheck",
        model_stats: dict[str, int] | None = None,
    ) -> None:
        """
        stage="precheck"    -> headcount and staff-hour checks per role.
        stage="model_stats" -> print model size summary if available.
        The pre-check is advisory; generation always continues.
        """
        if stage == "model_stats":
            if model_stats:
                print(
                    "\nModel stats summary:\n  "
                    + " | ".join(f"{k}={v:,}" for k, v in model_stats.items())
                )
            return

        check = model.precheck()
        print_precheck_header(check)
        for line in check.warnings:
            print(line)
        print_role_status(model.capacity())
        for notice in model.expansion.notices:
            print(f"ℹ️  {notice}")

    def render_text_report(self, res: GenerationResult, model: "RosterModel") -> None:
        """Public entry point for callers that want text reporting only."""
        render_text_report(
            res,
            num_print_examples=self.num_print_examples,
            run_stats=model.run_stats(res),
            shifts_by_role=shifts_by_role(model.assignment_frame(res)),
        )

    def post_solve(self, res: GenerationResult, model: "RosterModel") -> None:
        """Render the textual report, optionally mirrored into report_path."""
        if self.report_path is None:
            self.render_text_report(res, model)
            return

        report_doc = ReportDocument(self.report_path)
        set_active_report(report_doc)
        try:
            self.render_text_report(res, model)
        finally:
            set_active_report(None)
            report_doc.write()
