from __future__ import annotations

from types import SimpleNamespace

from conftest import make_staff, station_payload

from evhub.domain.roles import Role
from evhub.domain.stations import StationUpdate, StationValidationError
from evhub.services.results import OperationStatus
from evhub.services.station_service import StationService


class ExplodingRepository:
    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise RuntimeError("database is down")

        return _fail


def _create(service: StationService, **overrides) -> str:
    result = service.create_station(station_payload(**overrides))
    assert result.success, result.message
    return result.data["station_id"]


def test_create_normalizes_and_fills_derived_fields(repo):
    service = StationService(repo)
    station_id = _create(
        service, type=" ac ", contact_email=" Hub@Example.COM ", station_name="  Downtown Hub  ", total_slots=6
    )
    station = repo.get_station(station_id)
    assert station.type == "AC"
    assert station.station_name == "Downtown Hub"
    assert station.contact_email == "hub@example.com"
    assert station.total_slots == 6
    assert station.available_slots == 6
    assert station.location == "12 Main Street, Colombo, Western"
    assert station.is_active is True


def test_create_rejects_invalid_type_first(repo):
    result = StationService(repo).create_station(station_payload(type="Tesla", total_slots=0))
    assert result.status is OperationStatus.VALIDATION_FAILED
    assert result.errors == [StationValidationError.INVALID_TYPE.value]
    assert repo.count_stations() == 0


def test_update_recomputes_capacity_and_location(repo):
    service = StationService(repo)
    station_id = _create(service, total_slots=10)
    # simulate 7 slots in use
    repo.update_station_fields(station_id, {"available_slots": 3})

    result = service.update_station(station_id, StationUpdate(total_slots=5, city="Kandy"))
    assert result.success

    station = repo.get_station(station_id)
    assert station.total_slots == 5
    assert station.available_slots == 0
    assert station.city == "Kandy"
    assert station.location == "12 Main Street, Kandy, Western"


def test_update_growth_frees_slots(repo):
    service = StationService(repo)
    station_id = _create(service, total_slots=10)
    repo.update_station_fields(station_id, {"available_slots": 8})
    assert service.update_station(station_id, StationUpdate(total_slots=20)).success
    assert repo.get_station(station_id).available_slots == 18


def test_update_validation_and_missing_station(repo):
    service = StationService(repo)
    invalid = service.update_station("missing", StationUpdate(latitude=95))
    assert invalid.status is OperationStatus.VALIDATION_FAILED
    assert invalid.errors == [StationValidationError.LATITUDE_INVALID_RANGE.value]

    missing = service.update_station("missing", StationUpdate(station_name="New"))
    assert missing.status is OperationStatus.STATION_NOT_FOUND


def test_activate_already_active_changes_nothing(repo):
    service = StationService(repo)
    station_id = _create(service)
    before = repo.get_station(station_id)

    result = service.activate_station(station_id)
    assert result.status is OperationStatus.ALREADY_IN_STATE

    after = repo.get_station(station_id)
    assert after.updated_at == before.updated_at
    assert after.is_active is True


def test_pending_booking_blocks_deactivation(repo):
    service = StationService(repo)
    station_id = _create(service)
    booking = repo.create_booking(station_id, status="Pending")

    blocked = service.deactivate_station(station_id)
    assert blocked.status is OperationStatus.HAS_ACTIVE_BOOKINGS
    assert repo.get_station(station_id).is_active is True

    repo.update_booking_status(booking.id, "Completed")
    done = service.deactivate_station(station_id)
    assert done.success
    assert repo.get_station(station_id).is_active is False

    again = service.deactivate_station(station_id)
    assert again.status is OperationStatus.ALREADY_IN_STATE


def test_activate_after_deactivate(repo):
    service = StationService(repo)
    station_id = _create(service)
    assert service.deactivate_station(station_id).success
    assert service.activate_station(station_id).success
    assert repo.get_station(station_id).is_active is True


def test_lifecycle_on_missing_station(repo):
    service = StationService(repo)
    assert service.activate_station("nope").status is OperationStatus.STATION_NOT_FOUND
    assert service.deactivate_station("nope").status is OperationStatus.STATION_NOT_FOUND


def test_conditional_deactivate_refuses_when_booking_is_active(repo):
    station_id = _create(StationService(repo))
    repo.create_booking(station_id, status="Approved")
    assert repo.deactivate_station_if_idle(station_id) is False
    assert repo.get_station(station_id).is_active is True


def test_get_station_includes_station_users(repo):
    service = StationService(repo)
    station_id = _create(service)
    make_staff(repo, "operator", Role.STATION_USER, charging_station_id=station_id)
    make_staff(repo, "boss", Role.ADMIN)

    result = service.get_station(station_id)
    assert result.success
    assert result.station.id == station_id
    assert [u["username"] for u in result.station_users] == ["operator"]

    missing = service.get_station("nope")
    assert not missing.success
    assert missing.status is OperationStatus.STATION_NOT_FOUND


def test_statistics_and_existence_checks(repo):
    service = StationService(repo)
    station_id = _create(service, total_slots=4)
    repo.update_station_fields(station_id, {"available_slots": 1})
    repo.create_booking(station_id, status="Pending")
    repo.create_booking(station_id, status="Cancelled")

    stats = service.get_station_statistics(station_id)
    assert stats["utilization_percentage"] == 75.0
    assert stats["total_bookings"] == 2
    assert stats["active_bookings"] == 1
    assert service.get_station_statistics("nope") is None

    assert service.is_station_active_and_exists(station_id)
    assert not service.is_station_active_and_exists("nope")


def test_store_errors_become_internal():
    service = StationService(ExplodingRepository())
    assert service.activate_station("x").status is OperationStatus.INTERNAL
    assert service.deactivate_station("x").status is OperationStatus.INTERNAL
    result = service.create_station(station_payload())
    assert result.status is OperationStatus.INTERNAL
    assert result.message == "An unexpected error occurred."
    assert service.is_station_active_and_exists("x") is False


class VanishingRepository:
    """The station exists and is inactive on first read, then disappears before the UPDATE."""

    def __init__(self):
        self.reads = 0

    def get_station(self, station_id):
        self.reads += 1
        if self.reads == 1:
            return SimpleNamespace(id=station_id, is_active=False)
        return None

    def activate_station(self, station_id):
        return False


def test_activate_reports_missing_when_row_vanishes():
    repository = VanishingRepository()
    result = StationService(repository).activate_station("gone")
    assert result.status is OperationStatus.STATION_NOT_FOUND
    assert repository.reads == 2
