# src/pharmacy_rostering/generate/request.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from pharmacy_rostering.roles import ALL_ROLES, Role
from pharmacy_rostering.staff import EmploymentType

DEFAULT_REQUEST_JSON = Path(__file__).resolve().parents[2] / "example_request.json"

# fmt: off
FIRST_NAMES: Tuple[str, ...] = (
    "Anna", "Erik", "Maria", "Lars", "Karin", "Johan", "Eva", "Anders",
    "Sara", "Per", "Lena", "Nils", "Emma", "Olof", "Ida", "Gustav",
    "Elin", "Magnus", "Klara", "Henrik", "Sofia", "Mikael", "Hanna", "Jonas",
    "Frida", "Oskar", "Maja", "Viktor", "Linnea", "Axel",
)
# fmt: on


# ----------------------------
# Configuration container
# ----------------------------
@dataclass(slots=True)
class RequestGenConfig:
    """
    Configuration for generation of a synthetic schedule request.
    """

    n: int = 12
    start_date: date = date(2024, 4, 1)
    days: int = 14

    # Role mix (must sum to 1.0), in ALL_ROLES order
    role_probs: Tuple[float, ...] = (0.40, 0.40, 0.20)

    # Employment mix (must sum to 1.0): Heltid, Deltid, Timanställd
    employment_probs: Tuple[float, ...] = (0.60, 0.25, 0.15)
    weekly_hours: dict[EmploymentType, float] = field(
        default_factory=lambda: {
            EmploymentType.FULL_TIME: 40.0,
            EmploymentType.PART_TIME: 24.0,
            EmploymentType.HOURLY: 0.0,
        }
    )

    # Fraction of staff with a consecutive-days cap and cap-choice distribution
    capped_pct: float = 0.25
    cap_choices: Tuple[int, ...] = (3, 4, 5)
    cap_weights: Tuple[float, ...] = (0.3, 0.4, 0.3)

    # Per-person, per-day probability of being unavailable
    unavailable_rate: float = 0.08

    # Opening hours: weekdays / Saturday; Sunday closed when None
    weekday_hours: Tuple[str, str] = ("09:00", "18:00")
    saturday_hours: Optional[Tuple[str, str]] = ("10:00", "15:00")
    sunday_hours: Optional[Tuple[str, str]] = None

    # RNG seed
    seed: Optional[int] = 7

    def validate(self) -> None:
        if self.n <= 0:
            raise ValueError("n must be > 0.")
        if self.days <= 0:
            raise ValueError("days must be > 0.")
        if len(self.role_probs) != len(ALL_ROLES):
            raise ValueError("role_probs needs one entry per role.")
        if not np.isclose(sum(self.role_probs), 1.0, atol=1e-9):
            raise ValueError("role_probs must sum to 1.0")
        if len(self.employment_probs) != len(EmploymentType):
            raise ValueError("employment_probs needs one entry per employment type.")
        if not np.isclose(sum(self.employment_probs), 1.0, atol=1e-9):
            raise ValueError("employment_probs must sum to 1.0")
        if not (0.0 <= self.capped_pct <= 1.0):
            raise ValueError("capped_pct must be in [0,1].")
        if len(self.cap_choices) != len(self.cap_weights):
            raise ValueError("cap_choices and cap_weights must be same length.")
        if any(c <= 0 for c in self.cap_choices):
            raise ValueError("cap_choices must be positive integers.")
        if not np.isclose(sum(self.cap_weights), 1.0, atol=1e-9):
            raise ValueError("cap_weights must sum to 1.0")
        if not (0.0 <= self.unavailable_rate <= 1.0):
            raise ValueError("unavailable_rate must be in [0,1].")
        if self.seed is not None and not isinstance(self.seed, int):
            raise ValueError("seed must be an int or None.")


# ----------------------------
# Generation helpers
# ----------------------------
def _rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed) if seed is not None else np.random.default_rng()


def _deterministic_counts(n: int, probs: np.ndarray) -> np.ndarray:
    """
    Turn probabilities into integer counts that sum to n with minimal rounding error.
    """
    expected = probs * n
    floors = np.floor(expected).astype(int)
    shortfall = n - floors.sum()
    if shortfall > 0:
        remainders = expected - floors
        bump_idx = np.argsort(remainders)[::-1][:shortfall]
        floors[bump_idx] += 1
    return floors


def _name(i: int) -> str:
    base = FIRST_NAMES[i % len(FIRST_NAMES)]
    return base if i < len(FIRST_NAMES) else f"{base} {i // len(FIRST_NAMES) + 1}"


# ----------------------------
# Core API
# ----------------------------
def create_employees(cfg: RequestGenConfig) -> list[dict[str, Any]]:
    """Employee entries in request-payload shape."""
    cfg.validate()
    g = _rng(cfg.seed)

    # Every role gets close to its share; shuffled so ids don't cluster by role
    counts = _deterministic_counts(cfg.n, np.array(cfg.role_probs, dtype=float))
    roles = np.concatenate(
        [np.full(count, i, dtype=int) for i, count in enumerate(counts)]
    )
    g.shuffle(roles)

    emp_types = list(EmploymentType)
    emp_draws = g.choice(
        len(emp_types), size=cfg.n, p=np.array(cfg.employment_probs, dtype=float)
    )
    capped_flags = g.random(cfg.n) < cfg.capped_pct
    cap_draws = g.choice(
        cfg.cap_choices, size=cfg.n, p=np.array(cfg.cap_weights, dtype=float)
    )

    employees: list[dict[str, Any]] = []
    for i in range(cfg.n):
        emp_type = emp_types[int(emp_draws[i])]
        unavailable = np.where(g.random(cfg.days) < cfg.unavailable_rate)[0]
        employees.append(
            {
                "id": f"emp-{i:03d}",
                "name": _name(i),
                "role": ALL_ROLES[int(roles[i])].value,
                "minstaAntalTimmar": cfg.weekly_hours.get(emp_type, 0.0),
                "anstallningstyp": emp_type.value,
                "constraints": {
                    "maxConsecutiveDays": (
                        int(cap_draws[i]) if capped_flags[i] else None
                    ),
                    "unavailableDates": [
                        (cfg.start_date + timedelta(days=int(d))).isoformat()
                        for d in unavailable
                    ],
                },
            }
        )
    return employees


def _hours_entry(dow: int, window: Optional[Tuple[str, str]]) -> dict[str, Any]:
    return {
        "dayOfWeek": dow,
        "openTime": window[0] if window else None,
        "closeTime": window[1] if window else None,
    }


def pharmacy_hours(cfg: RequestGenConfig) -> list[dict[str, Any]]:
    """Seven entries, 0 = Sunday."""
    out = [_hours_entry(0, cfg.sunday_hours)]
    out += [_hours_entry(dow, cfg.weekday_hours) for dow in range(1, 6)]
    out.append(_hours_entry(6, cfg.saturday_hours))
    return out


def build_request_payload(cfg: RequestGenConfig | None = None) -> dict[str, Any]:
    """
    A complete camelCase request: one pharmacist and one sales person all
    day on weekdays, a self-care advisor over the afternoon peak, a reduced
    Saturday, and a floor of one pharmacist whenever the pharmacy is open.
    """
    cfg = cfg or RequestGenConfig()
    cfg.validate()
    open_t, close_t = cfg.weekday_hours
    requirements: list[dict[str, Any]] = [
        {
            "daysOfWeek": [1, 2, 3, 4, 5],
            "startTime": open_t,
            "endTime": close_t,
            "requiredRole": Role.PHARMACIST.value,
            "requiredCount": 1,
            "includeLunch": True,
            "fillType": "full_day",
        },
        {
            "daysOfWeek": [1, 2, 3, 4, 5],
            "startTime": open_t,
            "endTime": close_t,
            "requiredRole": Role.SALES.value,
            "requiredCount": 1,
            "includeLunch": True,
            "fillType": "full_day",
        },
        {
            "daysOfWeek": [1, 2, 3, 4, 5],
            "startTime": "13:00",
            "endTime": "17:00",
            "requiredRole": Role.SELF_CARE_ADVISOR.value,
            "requiredCount": 1,
            "includeLunch": False,
            "fillType": "exact_time",
        },
    ]
    if cfg.saturday_hours:
        requirements.append(
            {
                "daysOfWeek": [6],
                "startTime": cfg.saturday_hours[0],
                "endTime": cfg.saturday_hours[1],
                "requiredRole": Role.SALES.value,
                "requiredCount": 1,
                "includeLunch": False,
                "fillType": "exact_time",
            }
        )
    return {
        "startDate": cfg.start_date.isoformat(),
        "endDate": (cfg.start_date + timedelta(days=cfg.days - 1)).isoformat(),
        "pharmacyHours": pharmacy_hours(cfg),
        "requirements": requirements,
        "employees": create_employees(cfg),
        "rules": {
            "defaultLunchMinutes": 30,
            "minStaffing": [{"role": Role.PHARMACIST.value, "count": 1}],
        },
    }


# ----------------------------
# Convenience utilities
# ----------------------------
def employees_to_dataframe(employees: list[Mapping[str, Any]]) -> pd.DataFrame:
    rows = []
    for e in employees:
        constraints = e.get("constraints") or {}
        cap = constraints.get("maxConsecutiveDays")
        rows.append(
            {
                "id": e.get("id"),
                "name": e.get("name"),
                "role": e.get("role"),
                "employment": e.get("anstallningstyp"),
                "weekly_hours": e.get("minstaAntalTimmar"),
                "max_consec_days": cap if cap is not None else np.nan,
                "unavailable_days": len(constraints.get("unavailableDates") or []),
            }
        )
    return pd.DataFrame(rows)


def request_from_json(path: str | Path | None = None) -> dict[str, Any]:
    """
    Load a request payload from a JSON file on disk.

    If `path` is omitted, the loader reads from `src/example_request.json`.
    """
    file_path = Path(path) if path is not None else DEFAULT_REQUEST_JSON
    file_path = file_path.expanduser()

    if file_path.suffix.lower() != ".json":
        raise ValueError("request_from_json expects a path to a .json file.")
    if not file_path.exists():
        raise FileNotFoundError(f"Request JSON file not found: {file_path}")

    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {file_path}") from exc

    if not isinstance(data, Mapping):
        raise TypeError("JSON file must contain a request object.")
    return dict(data)
