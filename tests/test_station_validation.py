from __future__ import annotations

from types import SimpleNamespace

from conftest import station_payload

from evhub.domain.stations import (
    StationUpdate,
    StationValidationError,
    build_update_values,
    derive_location,
    is_valid_phone,
    validate_create,
    validate_update,
)


def test_lowercase_type_is_accepted():
    result = validate_create(station_payload(type="ac"))
    assert result.is_valid
    assert result.message == ""


def test_unknown_type_short_circuits_other_errors():
    payload = station_payload(type="Tesla", station_name="", total_slots=0, latitude=200)
    result = validate_create(payload)
    assert result.errors == [StationValidationError.INVALID_TYPE]


def test_missing_payload():
    assert validate_create(None).errors == [StationValidationError.STATION_DATA_REQUIRED]
    assert validate_update(None).errors == [StationValidationError.STATION_DATA_REQUIRED]


def test_create_collects_every_field_error():
    payload = station_payload(
        station_name="x" * 101,
        address="   ",
        total_slots=101,
        contact_phone="12345",
        contact_email="not-an-email",
        latitude=None,
        longitude=-181,
    )
    result = validate_create(payload)
    assert result.errors == [
        StationValidationError.STATION_NAME_TOO_LONG,
        StationValidationError.ADDRESS_REQUIRED,
        StationValidationError.TOTAL_SLOTS_EXCEEDS_MAXIMUM,
        StationValidationError.CONTACT_PHONE_INVALID,
        StationValidationError.CONTACT_EMAIL_INVALID,
        StationValidationError.LATITUDE_REQUIRED,
        StationValidationError.LONGITUDE_INVALID_RANGE,
    ]
    assert result.message.startswith("Multiple validation errors occurred:")


def test_total_slots_bounds():
    assert validate_create(station_payload(total_slots=1)).is_valid
    assert validate_create(station_payload(total_slots=100)).is_valid
    assert validate_create(station_payload(total_slots=0)).errors == [
        StationValidationError.TOTAL_SLOTS_MUST_BE_POSITIVE
    ]


def test_phone_counts_digits_only():
    assert is_valid_phone("+94 (77) 123-4567")
    assert not is_valid_phone("077-123")
    assert not is_valid_phone("1" * 16)


def test_update_only_checks_supplied_fields():
    assert validate_update(StationUpdate()).is_valid
    assert validate_update(StationUpdate(city="  ")).is_valid
    result = validate_update(StationUpdate(total_slots=0, contact_email="bad"))
    assert result.errors == [
        StationValidationError.TOTAL_SLOTS_MUST_BE_POSITIVE,
        StationValidationError.CONTACT_EMAIL_INVALID,
    ]
    assert validate_update(StationUpdate(type="dc ")).is_valid
    assert validate_update(StationUpdate(type="Tesla", total_slots=0)).errors == [
        StationValidationError.INVALID_TYPE
    ]


def test_update_values_rebuild_location_from_stored_parts():
    current = SimpleNamespace(
        address="12 Main Street", city="Colombo", state_province="Western", available_slots=3, total_slots=10
    )
    values = build_update_values(StationUpdate(city=" Kandy ", total_slots=5, type="dc"), current)
    assert values == {
        "city": "Kandy",
        "type": "DC",
        "total_slots": 5,
        "available_slots": 0,
        "location": derive_location("12 Main Street", "Kandy", "Western"),
    }


def test_update_values_leave_location_alone_without_address_parts():
    current = SimpleNamespace(address="a", city="b", state_province="c", available_slots=1, total_slots=1)
    values = build_update_values(StationUpdate(station_name="Renamed"), current)
    assert values == {"station_name": "Renamed"}


def test_non_finite_coordinates_are_out_of_range():
    result = validate_create(station_payload(latitude=float("nan"), longitude=float("inf")))
    assert result.errors == [
        StationValidationError.LATITUDE_INVALID_RANGE,
        StationValidationError.LONGITUDE_INVALID_RANGE,
    ]
    update = validate_update(StationUpdate(latitude=float("nan")))
    assert update.errors == [StationValidationError.LATITUDE_INVALID_RANGE]
