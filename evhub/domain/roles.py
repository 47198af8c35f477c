"""Roles and the acting principal."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "Admin"
    STATION_USER = "StationUser"
    EV_OWNER = "EVOwner"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        """Map a stored role name onto the closed set; unknown names become OTHER."""
        raw = (value or "").strip().lower()
        for role in cls:
            if role.value.lower() == raw:
                return role
        return cls.OTHER


FULL_ACCESS_ROLES = frozenset({Role.ADMIN, Role.STATION_USER})


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of the current request."""

    id: str
    role: Role

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id)
