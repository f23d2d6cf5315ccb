# src/pharmacy_rostering/rules/base.py
from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, Type

if TYPE_CHECKING:
    from pharmacy_rostering.config import Config
    from pharmacy_rostering.expand import Slot
    from pharmacy_rostering.staff import StaffMember

from ortools.sat.python import cp_model


class BuildCtxProto(Protocol):
    m: cp_model.CpModel
    cfg: Config
    slots: list[Slot]
    staff: list[StaffMember]
    period_days: int
    x: dict[tuple[int, int], cp_model.IntVar]
    u: dict[int, cp_model.IntVar]
    z: dict[tuple[int, int], cp_model.IntVar]

    def slot_vars_for(self, e: int) -> list[tuple[int, cp_model.IntVar]]: ...


@dataclass
class RuleSpec:
    cls: Type["Rule"]
    order: int | None = None
    enabled: bool = True
    settings: dict[str, Any] = field(default_factory=dict)


class Rule(ABC):
    order: int = 100
    enabled: bool = True
    name: str = "Rule"

    def __init__(self, model: BuildCtxProto, **settings: Any) -> None:
        self.model: BuildCtxProto = model
        self._settings: dict[str, Any] = settings

    def declare_vars(self) -> None:
        return

    def add_hard(self) -> None:
        return

    def add_soft(self) -> None:
        return

    def contribute_objective(self) -> list[cp_model.LinearExprT]:
        return []

    def report_descriptors(self) -> list[dict[str, Any]]:
        """Return zero or more JSON-serializable descriptors that a reporter can use.
        Default: [] (rule has nothing to report)."""
        return []

    # Helper for subclasses to read optional settings
    def setting(self, key: str, default: Any) -> Any:
        return self._settings.get(key, default)
