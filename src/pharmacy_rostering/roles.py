from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """The closed set of staff roles a pharmacy schedules for."""

    PHARMACIST = "pharmacist"
    SALES = "säljare"
    SELF_CARE_ADVISOR = "egenvårdsrådgivare"

    @property
    def display_name(self) -> str:
        return ROLE_DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: object) -> "Role":
        if isinstance(value, Role):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Role must be a string; got {value!r}")
        token = value.strip().lower()
        for role in cls:
            if role.value == token:
                return role
        known = ", ".join(r.value for r in cls)
        raise ValueError(f"Unknown role {value!r} (expected one of: {known})")

    def __str__(self) -> str:
        return self.value


ROLE_DISPLAY_NAMES: dict[Role, str] = {
    Role.PHARMACIST: "Farmaceut",
    Role.SALES: "Säljare",
    Role.SELF_CARE_ADVISOR: "Egenvårdsrådgivare",
}

ALL_ROLES: tuple[Role, ...] = tuple(Role)
