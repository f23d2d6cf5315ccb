from __future__ import annotations

from .reporter import Reporter
from .stats import compute_stats, coverage_warnings, fairness_warnings

__all__ = [
    "Reporter",
    "compute_stats",
    "coverage_warnings",
    "fairness_warnings",
]
