"""Typed outcomes returned by the service layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

GENERIC_ERROR_MESSAGE = "An unexpected error occurred."


class OperationStatus(str, Enum):
    SUCCESS = "Success"
    UNAUTHENTICATED = "Unauthenticated"
    NOT_AUTHORIZED = "NotAuthorized"
    VALIDATION_FAILED = "ValidationFailed"
    STATION_NOT_FOUND = "StationNotFound"
    EV_OWNER_NOT_FOUND = "EVOwnerNotFound"
    USER_NOT_FOUND = "UserNotFound"
    ALREADY_IN_STATE = "AlreadyInState"
    HAS_ACTIVE_BOOKINGS = "HasActiveBookings"
    USERNAME_EXISTS = "UsernameExists"
    EMAIL_EXISTS = "EmailExists"
    PHONE_EXISTS = "PhoneExists"
    NIC_EXISTS = "NICExists"
    ACCOUNT_ALREADY_DEACTIVATED = "AccountAlreadyDeactivated"
    ACCOUNT_ALREADY_ACTIVE = "AccountAlreadyActive"
    INTERNAL = "Internal"


_DEFAULT_MESSAGES = {
    OperationStatus.UNAUTHENTICATED: "Authentication required.",
    OperationStatus.NOT_AUTHORIZED: "You are not authorized to perform this operation.",
    OperationStatus.VALIDATION_FAILED: "Validation failed.",
    OperationStatus.STATION_NOT_FOUND: "Charging station not found.",
    OperationStatus.EV_OWNER_NOT_FOUND: "EV owner not found.",
    OperationStatus.USER_NOT_FOUND: "User not found.",
    OperationStatus.ALREADY_IN_STATE: "Station is already in the requested state.",
    OperationStatus.HAS_ACTIVE_BOOKINGS: "Cannot deactivate station. There are active bookings for this station.",
    OperationStatus.INTERNAL: GENERIC_ERROR_MESSAGE,
}


@dataclass
class OperationResult:
    status: OperationStatus
    message: str
    data: Any = None
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "OperationResult":
        return cls(OperationStatus.SUCCESS, message, data)

    @classmethod
    def failed(cls, status: OperationStatus, message: str | None = None, errors: list | None = None) -> "OperationResult":
        text = message or _DEFAULT_MESSAGES.get(status, "Operation failed.")
        return cls(status, text, None, [str(getattr(e, "value", e)) for e in (errors or [])])


@dataclass
class StationQueryResult:
    success: bool
    stations: list = field(default_factory=list)
    error_message: Optional[str] = None
    pagination: Optional[dict] = None

    @classmethod
    def ok(cls, stations: list, pagination: dict | None = None) -> "StationQueryResult":
        return cls(True, list(stations), None, pagination)

    @classmethod
    def failed(cls, message: str = GENERIC_ERROR_MESSAGE) -> "StationQueryResult":
        return cls(False, [], message)


@dataclass
class StationRetrievalResult:
    success: bool
    station: Any = None
    station_users: list = field(default_factory=list)
    error_message: Optional[str] = None
    status: OperationStatus = OperationStatus.SUCCESS
