"""
Station field rules: sanitization, validation, capacity and derived location.

Everything here is pure; persistence and orchestration live in
evhub.services.station_service.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

MAX_STATION_NAME_LENGTH = 100
MAX_ADDRESS_LENGTH = 200
MAX_CITY_LENGTH = 100
MAX_STATE_PROVINCE_LENGTH = 100
MIN_TOTAL_SLOTS = 1
MAX_TOTAL_SLOTS = 100
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15
MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0
MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0

VALID_STATION_TYPES = ("AC", "DC")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_NON_DIGITS = re.compile(r"\D")

# A booking in any other status still holds a slot.
INACTIVE_BOOKING_STATUSES = frozenset({"Cancelled", "Completed"})


class StationValidationError(str, Enum):
    STATION_DATA_REQUIRED = "StationDataRequired"
    INVALID_TYPE = "InvalidType"
    TYPE_REQUIRED = "TypeRequired"
    STATION_NAME_REQUIRED = "StationNameRequired"
    STATION_NAME_TOO_LONG = "StationNameTooLong"
    ADDRESS_REQUIRED = "AddressRequired"
    ADDRESS_TOO_LONG = "AddressTooLong"
    CITY_REQUIRED = "CityRequired"
    CITY_TOO_LONG = "CityTooLong"
    STATE_PROVINCE_REQUIRED = "StateProvinceRequired"
    STATE_PROVINCE_TOO_LONG = "StateProvinceTooLong"
    TOTAL_SLOTS_MUST_BE_POSITIVE = "TotalSlotsMustBePositive"
    TOTAL_SLOTS_EXCEEDS_MAXIMUM = "TotalSlotsExceedsMaximum"
    CONTACT_PHONE_REQUIRED = "ContactPhoneRequired"
    CONTACT_PHONE_INVALID = "ContactPhoneInvalid"
    CONTACT_EMAIL_REQUIRED = "ContactEmailRequired"
    CONTACT_EMAIL_INVALID = "ContactEmailInvalid"
    LATITUDE_REQUIRED = "LatitudeRequired"
    LATITUDE_INVALID_RANGE = "LatitudeInvalidRange"
    LONGITUDE_REQUIRED = "LongitudeRequired"
    LONGITUDE_INVALID_RANGE = "LongitudeInvalidRange"


ERROR_MESSAGES = {
    StationValidationError.STATION_DATA_REQUIRED: "Station data is required.",
    StationValidationError.INVALID_TYPE: f"Invalid station type. Allowed types: {', '.join(VALID_STATION_TYPES)}.",
    StationValidationError.TYPE_REQUIRED: "Type is required.",
    StationValidationError.STATION_NAME_REQUIRED: "Station name is required.",
    StationValidationError.STATION_NAME_TOO_LONG: f"Station name cannot exceed {MAX_STATION_NAME_LENGTH} characters.",
    StationValidationError.ADDRESS_REQUIRED: "Address is required.",
    StationValidationError.ADDRESS_TOO_LONG: f"Address cannot exceed {MAX_ADDRESS_LENGTH} characters.",
    StationValidationError.CITY_REQUIRED: "City is required.",
    StationValidationError.CITY_TOO_LONG: f"City cannot exceed {MAX_CITY_LENGTH} characters.",
    StationValidationError.STATE_PROVINCE_REQUIRED: "State/Province is required.",
    StationValidationError.STATE_PROVINCE_TOO_LONG: f"State/Province cannot exceed {MAX_STATE_PROVINCE_LENGTH} characters.",
    StationValidationError.TOTAL_SLOTS_MUST_BE_POSITIVE: "Total slots must be greater than 0.",
    StationValidationError.TOTAL_SLOTS_EXCEEDS_MAXIMUM: f"Total slots cannot exceed {MAX_TOTAL_SLOTS}.",
    StationValidationError.CONTACT_PHONE_REQUIRED: "Contact phone is required.",
    StationValidationError.CONTACT_PHONE_INVALID: "Invalid phone number format.",
    StationValidationError.CONTACT_EMAIL_REQUIRED: "Contact email is required.",
    StationValidationError.CONTACT_EMAIL_INVALID: "Invalid email format.",
    StationValidationError.LATITUDE_REQUIRED: "Latitude is required.",
    StationValidationError.LATITUDE_INVALID_RANGE: "Latitude must be between -90 and 90.",
    StationValidationError.LONGITUDE_REQUIRED: "Longitude is required.",
    StationValidationError.LONGITUDE_INVALID_RANGE: "Longitude must be between -180 and 180.",
}


@dataclass
class StationCreate:
    """Payload for creating a station. Missing fields are reported by validate_create."""

    station_name: Optional[str] = None
    type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state_province: Optional[str] = None
    total_slots: Optional[int] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class StationUpdate:
    """Partial patch; None or blank values mean "leave unchanged"."""

    station_name: Optional[str] = None
    type: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state_province: Optional[str] = None
    total_slots: Optional[int] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class ValidationResult:
    errors: list[StationValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        if not self.errors:
            return ""
        if len(self.errors) == 1:
            return ERROR_MESSAGES[self.errors[0]]
        return "Multiple validation errors occurred: " + " ".join(ERROR_MESSAGES[e] for e in self.errors)


# -------------------------- sanitization --------------------------
def clean_text(value: str | None) -> str | None:
    """Trim a free-text field; blank values collapse to None."""
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def clean_email(value: str | None) -> str | None:
    cleaned = clean_text(value)
    return cleaned.lower() if cleaned else None


def normalize_station_type(value: str | None) -> str | None:
    cleaned = clean_text(value)
    return cleaned.upper() if cleaned else None


def is_valid_station_type(value: str | None) -> bool:
    return normalize_station_type(value) in VALID_STATION_TYPES


def is_valid_phone(value: str | None) -> bool:
    cleaned = clean_text(value)
    if not cleaned:
        return False
    digits = _NON_DIGITS.sub("", cleaned)
    return MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS


def is_valid_email(value: str | None) -> bool:
    cleaned = clean_text(value)
    if not cleaned:
        return False
    return EMAIL_PATTERN.match(cleaned) is not None


def derive_location(address: str | None, city: str | None, state_province: str | None) -> str:
    """Combined "address, city, state" string cached on the station row."""
    return f"{address or ''}, {city or ''}, {state_province or ''}"


def is_active_booking(status: str | None) -> bool:
    return (status or "") not in INACTIVE_BOOKING_STATUSES


# -------------------------- capacity --------------------------
def recompute_available_slots(current_available: int, current_total: int, new_total: int) -> int:
    """
    Availability after a capacity change, preserving the slots in use.

    If the new capacity is below the number of used slots availability drops to
    zero; if it grows, the extra capacity becomes available. Callers must reject
    new_total <= 0 before calling.
    """
    used = current_total - current_available
    new_available = new_total - min(used, new_total)
    return max(0, min(new_total, new_available))


# -------------------------- validation --------------------------
def _check_text(errors: list, value: str | None, max_length: int, too_long, required=None) -> None:
    cleaned = clean_text(value)
    if cleaned is None:
        if required is not None:
            errors.append(required)
        return
    if len(cleaned) > max_length:
        errors.append(too_long)


def _check_slots(errors: list, value: int | None) -> None:
    if value is None or value < MIN_TOTAL_SLOTS:
        errors.append(StationValidationError.TOTAL_SLOTS_MUST_BE_POSITIVE)
    elif value > MAX_TOTAL_SLOTS:
        errors.append(StationValidationError.TOTAL_SLOTS_EXCEEDS_MAXIMUM)


def _check_range(errors: list, value: float | None, low: float, high: float, invalid, required=None) -> None:
    if value is None:
        if required is not None:
            errors.append(required)
        return
    if not math.isfinite(value) or value < low or value > high:
        errors.append(invalid)


def validate_create(payload: StationCreate | None) -> ValidationResult:
    """Validate a full creation payload, collecting every field error."""
    if payload is None:
        return ValidationResult([StationValidationError.STATION_DATA_REQUIRED])
    if clean_text(payload.type) and not is_valid_station_type(payload.type):
        return ValidationResult([StationValidationError.INVALID_TYPE])

    errors: list[StationValidationError] = []
    _check_text(
        errors, payload.station_name, MAX_STATION_NAME_LENGTH,
        StationValidationError.STATION_NAME_TOO_LONG, StationValidationError.STATION_NAME_REQUIRED,
    )
    if not clean_text(payload.type):
        errors.append(StationValidationError.TYPE_REQUIRED)
    _check_text(
        errors, payload.address, MAX_ADDRESS_LENGTH,
        StationValidationError.ADDRESS_TOO_LONG, StationValidationError.ADDRESS_REQUIRED,
    )
    _check_text(
        errors, payload.city, MAX_CITY_LENGTH,
        StationValidationError.CITY_TOO_LONG, StationValidationError.CITY_REQUIRED,
    )
    _check_text(
        errors, payload.state_province, MAX_STATE_PROVINCE_LENGTH,
        StationValidationError.STATE_PROVINCE_TOO_LONG, StationValidationError.STATE_PROVINCE_REQUIRED,
    )
    _check_slots(errors, payload.total_slots)
    if not clean_text(payload.contact_phone):
        errors.append(StationValidationError.CONTACT_PHONE_REQUIRED)
    elif not is_valid_phone(payload.contact_phone):
        errors.append(StationValidationError.CONTACT_PHONE_INVALID)
    if not clean_text(payload.contact_email):
        errors.append(StationValidationError.CONTACT_EMAIL_REQUIRED)
    elif not is_valid_email(payload.contact_email):
        errors.append(StationValidationError.CONTACT_EMAIL_INVALID)
    _check_range(
        errors, payload.latitude, MIN_LATITUDE, MAX_LATITUDE,
        StationValidationError.LATITUDE_INVALID_RANGE, StationValidationError.LATITUDE_REQUIRED,
    )
    _check_range(
        errors, payload.longitude, MIN_LONGITUDE, MAX_LONGITUDE,
        StationValidationError.LONGITUDE_INVALID_RANGE, StationValidationError.LONGITUDE_REQUIRED,
    )
    return ValidationResult(errors)


def validate_update(payload: StationUpdate | None) -> ValidationResult:
    """Validate only the fields present in a partial update."""
    if payload is None:
        return ValidationResult([StationValidationError.STATION_DATA_REQUIRED])
    if clean_text(payload.type) and not is_valid_station_type(payload.type):
        return ValidationResult([StationValidationError.INVALID_TYPE])

    errors: list[StationValidationError] = []
    _check_text(errors, payload.station_name, MAX_STATION_NAME_LENGTH, StationValidationError.STATION_NAME_TOO_LONG)
    _check_text(errors, payload.address, MAX_ADDRESS_LENGTH, StationValidationError.ADDRESS_TOO_LONG)
    _check_text(errors, payload.city, MAX_CITY_LENGTH, StationValidationError.CITY_TOO_LONG)
    _check_text(errors, payload.state_province, MAX_STATE_PROVINCE_LENGTH, StationValidationError.STATE_PROVINCE_TOO_LONG)
    if payload.total_slots is not None:
        _check_slots(errors, payload.total_slots)
    if clean_text(payload.contact_phone) and not is_valid_phone(payload.contact_phone):
        errors.append(StationValidationError.CONTACT_PHONE_INVALID)
    if clean_text(payload.contact_email) and not is_valid_email(payload.contact_email):
        errors.append(StationValidationError.CONTACT_EMAIL_INVALID)
    _check_range(errors, payload.latitude, MIN_LATITUDE, MAX_LATITUDE, StationValidationError.LATITUDE_INVALID_RANGE)
    _check_range(errors, payload.longitude, MIN_LONGITUDE, MAX_LONGITUDE, StationValidationError.LONGITUDE_INVALID_RANGE)
    return ValidationResult(errors)


def build_update_values(payload: StationUpdate, current) -> dict:
    """
    Column values for a validated patch against the stored station `current`.

    total_slots and available_slots are always written together, and location
    is rebuilt from post-patch parts whenever any of them is supplied.
    """
    values: dict = {}
    station_name = clean_text(payload.station_name)
    if station_name:
        values["station_name"] = station_name
    station_type = normalize_station_type(payload.type)
    if station_type:
        values["type"] = station_type
    address = clean_text(payload.address)
    city = clean_text(payload.city)
    state_province = clean_text(payload.state_province)
    if address:
        values["address"] = address
    if city:
        values["city"] = city
    if state_province:
        values["state_province"] = state_province
    phone = clean_text(payload.contact_phone)
    if phone:
        values["contact_phone"] = phone
    email = clean_email(payload.contact_email)
    if email:
        values["contact_email"] = email
    if payload.latitude is not None:
        values["latitude"] = float(payload.latitude)
    if payload.longitude is not None:
        values["longitude"] = float(payload.longitude)
    if payload.total_slots is not None and payload.total_slots > 0:
        values["total_slots"] = payload.total_slots
        values["available_slots"] = recompute_available_slots(
            current.available_slots, current.total_slots, payload.total_slots
        )
    if address or city or state_province:
        values["location"] = derive_location(
            address or current.address,
            city or current.city,
            state_province or current.state_province,
        )
    return values
