# tests/conftest.py
from __future__ import annotations

import os
import random
from pathlib import Path
from typing import Any, Callable

import numpy as np
import pytest

from pharmacy_rostering.config import Config


# -----------------------------
# Global, deterministic seeding
# -----------------------------
@pytest.fixture(autouse=True, scope="session")
def _seed_everything() -> None:
    """
    Make tests deterministic across runs. If you need a different seed in a test,
    override locally.
    """
    seed = int(os.environ.get("PYTEST_SEED", "1234"))
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)


# -----------------------------
# Path helpers
# -----------------------------
@pytest.fixture(scope="session")
def project_root() -> Path:
    """Repository root (where pyproject.toml lives)."""
    return Path(__file__).resolve().parents[1]


# -----------------------------
# Request builders
# -----------------------------
def _employee(
    id: str,
    role: str = "pharmacist",
    *,
    name: str | None = None,
    hours: float = 40,
    kind: str = "Heltid",
    max_consec: int | None = None,
    unavailable: tuple[str, ...] = (),
) -> dict[str, Any]:
    return {
        "id": id,
        "name": name or id,
        "role": role,
        "minstaAntalTimmar": hours,
        "anstallningstyp": kind,
        "constraints": {
            "maxConsecutiveDays": max_consec,
            "unavailableDates": list(unavailable),
        },
    }


def _requirement(
    role: str = "pharmacist",
    *,
    days: tuple[int, ...] = (1, 2, 3, 4, 5),
    start: str = "09:00",
    end: str = "17:00",
    count: int = 1,
    include_lunch: bool = True,
    fill_type: str = "exact_time",
) -> dict[str, Any]:
    return {
        "daysOfWeek": list(days),
        "startTime": start,
        "endTime": end,
        "requiredRole": role,
        "requiredCount": count,
        "includeLunch": include_lunch,
        "fillType": fill_type,
    }


@pytest.fixture
def employee() -> Callable[..., dict[str, Any]]:
    """Factory for one camelCase employee entry."""
    return _employee


@pytest.fixture
def requirement() -> Callable[..., dict[str, Any]]:
    """Factory for one camelCase requirement entry (Mon-Fri 09-17 by default)."""
    return _requirement


@pytest.fixture
def payload_factory() -> Callable[..., dict[str, Any]]:
    """
    Factory for a full request payload. Defaults: Mon 2024-04-01 .. Fri
    2024-04-05, no pharmacyHours (so the Config default 09:00-18:00 applies),
    one exact 09:00-17:00 pharmacist requirement and one pharmacist.
    """

    def _make(
        *,
        start: str = "2024-04-01",
        end: str = "2024-04-05",
        employees: list[dict[str, Any]] | None = None,
        requirements: list[dict[str, Any]] | None = None,
        min_staffing: list[dict[str, Any]] | None = None,
        pharmacy_hours: list[dict[str, Any]] | None = None,
        lunch: int = 30,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "startDate": start,
            "endDate": end,
            "requirements": (
                requirements if requirements is not None else [_requirement()]
            ),
            "employees": employees if employees is not None else [_employee("p1")],
            "rules": {
                "defaultLunchMinutes": lunch,
                "minStaffing": min_staffing or [],
            },
        }
        if pharmacy_hours is not None:
            payload["pharmacyHours"] = pharmacy_hours
        return payload

    return _make


@pytest.fixture(params=["greedy", "cpsat"])
def strategy_cfg(request) -> Config:
    """A quiet Config for each assignment strategy."""
    return Config(
        STRATEGY=request.param,
        TIME_LIMIT_SEC=60.0,
        DETERMINISTIC_TIME_LIMIT=2.0,
        VERBOSE=False,
    )
