from __future__ import annotations

from io import StringIO
from pathlib import Path
from typing import Any, Optional

import numpy as np
import pandas as pd

from pharmacy_rostering.result_types import GenerationResult


class ReportDocument:
    """Collects every printed report line so the run can be saved as a text file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.lines: list[str] = []

    def add_text(self, text: str) -> None:
        self.lines.append(text)

    def write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        body = "\n".join(self.lines) if self.lines else "Report contains no data."
        self.path.write_text(body + "\n", encoding="utf-8")


_ACTIVE_REPORT: Optional[ReportDocument] = None


def set_active_report(doc: Optional[ReportDocument]) -> None:
    global _ACTIVE_REPORT
    _ACTIVE_REPORT = doc


def get_active_report() -> Optional[ReportDocument]:
    return _ACTIVE_REPORT


def _log_print(*args, **kwargs) -> None:
    buf = StringIO()
    kwargs_copy = kwargs.copy()
    kwargs_copy["file"] = buf
    print(*args, **kwargs_copy)
    print(*args, **kwargs)
    if _ACTIVE_REPORT is not None:
        _ACTIVE_REPORT.add_text(buf.getvalue().rstrip("\n"))


def _fmt_float(x: float | None, nd: int = 2, as_pct: bool = False) -> str:
    if x is None or pd.isna(x):
        return "nan"
    return f"{float(100 * x):.{nd}f}%" if as_pct else f"{float(x):.{nd}f}"


def utilization_frame(res: GenerationResult) -> pd.DataFrame:
    """Per-person hours table, sorted by delta (most under target first)."""
    columns = ["name", "assigned_h", "target_h", "delta_h", "shifts"]
    rows = [
        {
            "name": name,
            "assigned_h": util.assigned_hours,
            "target_h": util.target_hours,
            "delta_h": util.delta_hours,
            "shifts": util.shifts_count,
        }
        for name, util in res.stats.employee_utilization.items()
    ]
    if not rows:
        return pd.DataFrame(columns=columns)
    return (
        pd.DataFrame(rows, columns=columns)
        .sort_values(["delta_h", "name"], kind="stable")
        .reset_index(drop=True)
    )


def _print_hours_histogram(df_emp: pd.DataFrame) -> None:
    if df_emp.empty:
        _log_print("\nHours distribution: (no data)")
        return
    hours_series = (
        pd.to_numeric(df_emp["assigned_h"], errors="coerce")
        .dropna()
        .round()
        .astype(int)
    )
    counts = hours_series.value_counts().sort_index()
    _log_print("\nHours distribution (staff per rounded total):")
    for h, n in counts.items():
        bar = "█" * min(int(n), 50)
        _log_print(f"  {h:>3}h : {n:>4} staff  {bar}")


def render_text_report(
    res: GenerationResult,
    *,
    num_print_examples: int = 6,
    run_stats: tuple[float, int] | None = None,
    shifts_by_role: pd.DataFrame | None = None,
) -> None:
    """Print a human-readable summary of a generation result."""
    _log_print(f"Solver status: {res.status_name}")
    if res.status_name == "GREEDY_FALLBACK":
        _log_print("CP-SAT returned no solution in time; using the greedy schedule.")

    total, unfilled = res.stats.total_shifts, res.stats.unfilled_shifts
    filled_pct = (total - unfilled) / total if total else 1.0
    _log_print(
        f"\nShifts: total={total:,} | unfilled={unfilled:,} | "
        f"filled={_fmt_float(filled_pct, nd=1, as_pct=True)}"
    )

    if shifts_by_role is not None and not shifts_by_role.empty:
        _log_print("\nShifts by role:")
        _log_print(shifts_by_role.to_string())

    df_emp = utilization_frame(res)
    if not df_emp.empty:
        _log_print(f"\nPer-employee hours (most under target, top {num_print_examples}):")
        _log_print(df_emp.head(num_print_examples).to_string(index=False))

        hrs = df_emp["assigned_h"].to_numpy(dtype=float)
        mean = float(np.mean(hrs))
        std = float(np.std(hrs, ddof=1)) if hrs.size > 1 else float("nan")
        _log_print(
            "\nHours across employees: "
            f"mean={_fmt_float(mean)} | std={_fmt_float(std)} | "
            f"min={_fmt_float(float(np.min(hrs)))} | max={_fmt_float(float(np.max(hrs)))}"
        )

    if run_stats is not None:
        avg_run, max_run = run_stats
        _log_print(f"\nAvg consecutive days worked = {_fmt_float(avg_run)}")
        _log_print(f"Max consecutive days worked = {max_run}")

    if res.objective_value is not None:
        _log_print(f"\nObjective value (overall penalty): {res.objective_value:,.0f}")

    for title, lines in (
        ("Warnings", res.warnings),
        ("Fairness & distribution notes", res.fairness_warnings),
    ):
        if not lines:
            continue
        _log_print(f"\n{title} ({len(lines)}):")
        for line in lines:
            _log_print(f"  - {line}")

    _print_hours_histogram(df_emp)


def shifts_by_role(frame: pd.DataFrame) -> pd.DataFrame:
    """Filled/unfilled shift counts per role from an assignment frame."""
    if frame.empty:
        return pd.DataFrame()
    filled = frame["employee_id"].notna()
    return (
        frame.assign(filled=filled, unfilled=~filled)
        .groupby("role")[["filled", "unfilled"]]
        .sum()
        .astype(int)
    )


def describe(res: Any) -> str:
    """One-line summary, used by the CLI when no full report is requested."""
    stats = res.stats
    return (
        f"{res.status_name}: {stats.total_shifts} shift(s), "
        f"{stats.unfilled_shifts} unfilled, {len(res.warnings)} warning(s), "
        f"{len(res.fairness_warnings)} fairness note(s)"
    )
