# src/pharmacy_rostering/collaborators.py
"""
Hooks for the systems around the engine: persisting a generated schedule,
posting unfilled shifts publicly, and reconciling saved shifts with
individual assignments. The engine only talks to these through the
protocols below; concrete implementations live with the caller.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from pharmacy_rostering.input_data import GenerationRequest
from pharmacy_rostering.result_types import GenerationResult, Shift
from pharmacy_rostering.staff import StaffMember

MANUAL_NOTE = "(Manually reassigned)"


@dataclass(frozen=True)
class SyncSummary:
    created: int = 0
    updated: int = 0
    cancelled: int = 0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "SyncSummary":
        return cls(
            created=int(raw.get("created", 0) or 0),
            updated=int(raw.get("updated", 0) or 0),
            cancelled=int(raw.get("cancelled", 0) or 0),
        )


@dataclass(frozen=True)
class SaveOutcome:
    schedule_id: str
    sync: Optional[SyncSummary] = None


class ScheduleStore(Protocol):
    def save_schedule(
        self,
        name: str,
        start_date: date,
        end_date: date,
        shifts: Sequence[Shift],
    ) -> str:
        """Persist the schedule and its shifts; return the new schedule id."""
        ...


class ShiftPoster(Protocol):
    def post_shift_need(self, shift: Shift) -> str:
        """Publish an unfilled shift; return the id of the public posting."""
        ...


class AssignmentSync(Protocol):
    def sync_schedule_shifts(self, schedule_id: str) -> Mapping[str, Any]:
        """Reconcile a saved schedule with assignments; counts of created/updated/cancelled."""
        ...


def _with_note(notes: str, note: str) -> str:
    if note in notes:
        return notes
    return f"{notes} {note}".strip()


def _without_note(notes: str, note: str) -> str:
    return " ".join(notes.replace(note, " ").split())


def reassign_shift(shift: Shift, member: Optional[StaffMember]) -> Shift:
    """
    Move a shift to another person (or clear it with None).

    The new assignee must hold the shift's role. Assigning marks the notes
    with '(Manually reassigned)'; clearing removes the mark and leaves the
    shift unfilled.
    """
    if member is None:
        return replace(
            shift,
            assigned_employee_id=None,
            notes=_without_note(shift.notes, MANUAL_NOTE),
        )
    if member.role is not shift.role:
        raise ValueError(
            f"{member.name} has role {member.role.value}; "
            f"shift requires {shift.role.value}"
        )
    notes = shift.notes if not shift.is_unfilled else ""
    return replace(
        shift,
        assigned_employee_id=member.id,
        notes=_with_note(notes, MANUAL_NOTE),
    )


def publish_unfilled(shifts: Sequence[Shift], poster: ShiftPoster) -> list[Shift]:
    """
    Post every unfilled, not-yet-posted shift and record the posting id.

    Returns the full list in the same order; already posted or filled shifts
    pass through unchanged, so publishing twice posts nothing new.
    """
    out: list[Shift] = []
    for shift in shifts:
        if not shift.is_unfilled or shift.published_shift_need_id is not None:
            out.append(shift)
            continue
        need_id = str(poster.post_shift_need(shift))
        out.append(
            replace(
                shift,
                published_shift_need_id=need_id,
                notes=_with_note(shift.notes, f"(Publicly posted: {need_id[:8]}...)"),
            )
        )
    return out


def save_schedule(
    store: ScheduleStore,
    name: str,
    request: GenerationRequest,
    result: GenerationResult,
    sync: Optional[AssignmentSync] = None,
) -> SaveOutcome:
    """Persist a generated schedule and optionally reconcile its assignments."""
    if not name or not name.strip():
        raise ValueError("Schedule name must not be empty")
    schedule_id = store.save_schedule(
        name.strip(), request.start_date, request.end_date, result.shifts
    )
    if sync is None:
        return SaveOutcome(schedule_id=schedule_id)
    summary = SyncSummary.from_mapping(sync.sync_schedule_shifts(schedule_id))
    return SaveOutcome(schedule_id=schedule_id, sync=summary)
