from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Sequence

from pharmacy_rostering.config import Config, cfg
from pharmacy_rostering.roles import Role
from pharmacy_rostering.staff import EmploymentType, StaffMember, StaffOrigin

MINUTES_PER_DAY = 24 * 60


class RequestError(ValueError):
    """The generation request is malformed or has nothing to schedule."""


class FillType(str, Enum):
    FULL_DAY = "full_day"
    EXACT_TIME = "exact_time"


# ----------------------------
# Clock helpers
# ----------------------------
def parse_clock(value: str) -> int:
    """'HH:MM' or 'HH:MM:SS' -> minutes after midnight. '24:00' is allowed as end of day."""
    if not isinstance(value, str):
        raise RequestError(f"Time must be a 'HH:MM' string; got {value!r}")
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise RequestError(f"Time {value!r} is not in HH:MM format")
    hours, minutes = int(parts[0]), int(parts[1])
    if minutes >= 60 or hours > 24 or (hours == 24 and minutes > 0):
        raise RequestError(f"Time {value!r} is out of range")
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def payload_weekday(day: date) -> int:
    """Weekday in the payload convention: 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def _as_int(value: Any, label: str) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError) as exc:
        raise RequestError(f"{label} must be an integer; got {value!r}") from exc


def _require_object(value: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise RequestError(f"{label} must be an object; got {type(value).__name__}")
    return value


def _require_list(value: Any, label: str) -> Sequence[Any]:
    if value is None:
        return []
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise RequestError(f"{label} must be a list")
    return value


def _parse_date(value: Any, label: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise RequestError(f"{label} {value!r} is not an ISO date") from exc
    raise RequestError(f"{label} is missing")


# ----------------------------
# Request model
# ----------------------------
@dataclass(frozen=True)
class DayHours:
    day_of_week: int
    open_minute: Optional[int]
    close_minute: Optional[int]

    @property
    def is_open(self) -> bool:
        return (
            self.open_minute is not None
            and self.close_minute is not None
            and self.open_minute < self.close_minute
        )


@dataclass(frozen=True)
class CoverageRequirement:
    days_of_week: frozenset[int]
    start_minute: int
    end_minute: int
    role: Role
    count: int = 1
    include_lunch: bool = True
    fill_type: FillType = FillType.FULL_DAY

    def applies_to(self, day: date) -> bool:
        return payload_weekday(day) in self.days_of_week

    def label(self) -> str:
        return (
            f"{self.role.value} {format_clock(self.start_minute)}-"
            f"{format_clock(self.end_minute)}"
        )


@dataclass(frozen=True)
class MinStaffingRule:
    role: Role
    count: int


@dataclass(frozen=True)
class GenerationRules:
    default_lunch_minutes: int = 30
    min_staffing: tuple[MinStaffingRule, ...] = ()


@dataclass
class GenerationRequest:
    start_date: date
    end_date: date
    pharmacy_hours: dict[int, DayHours]
    requirements: list[CoverageRequirement]
    staff: list[StaffMember]
    rules: GenerationRules = field(default_factory=GenerationRules)

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise RequestError(
                f"endDate {self.end_date.isoformat()} is before startDate "
                f"{self.start_date.isoformat()}"
            )

    @property
    def period_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def dates(self) -> Iterator[date]:
        for offset in range(self.period_days):
            yield self.start_date + timedelta(days=offset)

    def hours_for(self, day: date) -> Optional[DayHours]:
        hours = self.pharmacy_hours.get(payload_weekday(day))
        if hours is None or not hours.is_open:
            return None
        return hours

    def validate(self) -> None:
        """Reject requests the engine cannot generate anything meaningful from."""
        if not self.staff:
            raise RequestError("No staff supplied; add staff to include in the schedule.")
        if not self.requirements and not self.rules.min_staffing:
            raise RequestError(
                "No active staffing requirements or minimum staffing rules; nothing to generate."
            )
        seen: set[str] = set()
        for member in self.staff:
            if member.id in seen:
                raise RequestError(f"Duplicate staff id {member.id!r}")
            seen.add(member.id)


# ----------------------------
# Payload parsing
# ----------------------------
def _parse_hours(raw: Any, config: Config) -> dict[int, DayHours]:
    if raw is None:
        open_m = parse_clock(config.DEFAULT_OPEN_TIME)
        close_m = parse_clock(config.DEFAULT_CLOSE_TIME)
        return {d: DayHours(d, open_m, close_m) for d in range(7)}
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise RequestError("pharmacyHours must be a list")

    out: dict[int, DayHours] = {}
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise RequestError("pharmacyHours entries must be objects")
        dow = entry.get("dayOfWeek")
        if not isinstance(dow, int) or not 0 <= dow <= 6:
            raise RequestError(f"dayOfWeek must be an int in 0-6; got {dow!r}")
        open_raw, close_raw = entry.get("openTime"), entry.get("closeTime")
        open_m = parse_clock(open_raw) if open_raw else None
        close_m = parse_clock(close_raw) if close_raw else None
        out[dow] = DayHours(dow, open_m, close_m)
    return out


def _parse_requirement(entry: Mapping[str, Any]) -> CoverageRequirement | None:
    """Return None for inactive requirements (no weekdays, no role, count < 1)."""
    _require_object(entry, "requirements entry")
    days = _require_list(entry.get("daysOfWeek"), "daysOfWeek")
    role_raw = entry.get("requiredRole")
    count = _as_int(entry.get("requiredCount"), "requiredCount")
    if not days or not role_raw or count < 1:
        return None
    for d in days:
        if not isinstance(d, int) or not 0 <= d <= 6:
            raise RequestError(f"daysOfWeek entries must be ints in 0-6; got {d!r}")
    try:
        role = Role.parse(role_raw)
        fill_type = FillType(entry.get("fillType") or FillType.FULL_DAY.value)
    except ValueError as exc:
        raise RequestError(str(exc)) from exc
    start_m = parse_clock(entry.get("startTime"))
    end_m = parse_clock(entry.get("endTime"))
    if start_m >= end_m:
        raise RequestError(
            f"Requirement for {role.value} has startTime {format_clock(start_m)} "
            f"not before endTime {format_clock(end_m)}"
        )
    return CoverageRequirement(
        days_of_week=frozenset(days),
        start_minute=start_m,
        end_minute=end_m,
        role=role,
        count=count,
        include_lunch=bool(entry.get("includeLunch", True)),
        fill_type=fill_type,
    )


def _parse_employee(entry: Mapping[str, Any]) -> StaffMember:
    _require_object(entry, "employees entry")
    constraints = _require_object(entry.get("constraints") or {}, "constraints")
    if entry.get("id") in (None, ""):
        raise RequestError("Every employee needs an id")
    origin = StaffOrigin.MANUAL if entry.get("isManual") else StaffOrigin.EMPLOYED
    try:
        return StaffMember(
            id=str(entry["id"]),
            name=str(entry.get("name") or entry["id"]),
            role=Role.parse(entry.get("role")),
            minsta_antal_timmar=float(entry.get("minstaAntalTimmar") or 0),
            employment_type=EmploymentType.parse(
                entry.get("anstallningstyp") or EmploymentType.FULL_TIME.value
            ),
            max_consecutive_days=constraints.get("maxConsecutiveDays"),
            unavailable_dates=set(constraints.get("unavailableDates") or []),
            origin=origin,
        )
    except (TypeError, ValueError) as exc:
        raise RequestError(f"Employee {entry.get('id')!r}: {exc}") from exc


def build_request(
    payload: Mapping[str, Any], config: Config | None = None
) -> GenerationRequest:
    """
    Parse the camelCase request payload into a validated GenerationRequest.

    Inactive requirements and min-staffing rules are filtered out first, so a
    payload whose only requirements are inactive is rejected as empty.
    """
    config = config or cfg
    if not isinstance(payload, Mapping):
        raise RequestError("Request payload must be a JSON object")

    start = _parse_date(payload.get("startDate"), "startDate")
    end = _parse_date(payload.get("endDate"), "endDate")

    requirements = []
    for entry in _require_list(payload.get("requirements"), "requirements"):
        req = _parse_requirement(entry)
        if req is not None:
            requirements.append(req)

    rules_raw = _require_object(payload.get("rules") or {}, "rules")
    min_staffing = []
    for entry in _require_list(rules_raw.get("minStaffing"), "minStaffing"):
        _require_object(entry, "minStaffing entry")
        count = _as_int(entry.get("count"), "minStaffing count")
        if not entry.get("role") or count < 1:
            continue
        try:
            min_staffing.append(MinStaffingRule(Role.parse(entry["role"]), count))
        except ValueError as exc:
            raise RequestError(str(exc)) from exc
    lunch = _as_int(
        rules_raw.get("defaultLunchMinutes", 30), "defaultLunchMinutes"
    )
    if lunch < 0:
        raise RequestError("defaultLunchMinutes must be non-negative")

    employees = _require_list(payload.get("employees"), "employees")
    staff = [_parse_employee(e) for e in employees]

    request = GenerationRequest(
        start_date=start,
        end_date=end,
        pharmacy_hours=_parse_hours(payload.get("pharmacyHours"), config),
        requirements=requirements,
        staff=staff,
        rules=GenerationRules(
            default_lunch_minutes=lunch, min_staffing=tuple(min_staffing)
        ),
    )
    request.validate()
    return request
