"""
Smoke tests for the SQLRepository against a temporary SQLite database.
"""
from __future__ import annotations

import pytest
from conftest import make_owner, make_staff, station_payload
from sqlalchemy.exc import IntegrityError

from evhub.domain.roles import Role
from evhub.services.station_service import StationService


def test_user_lookups_are_case_insensitive(repo):
    user = make_staff(repo, "Alice", Role.ADMIN)
    assert repo.get_user_by_username("alice").id == user.id
    assert repo.get_user_by_login("ALICE@example.com").id == user.id
    assert repo.get_user_by_login("  ") is None


def test_owner_account_is_created_with_its_user(repo):
    owner = make_owner(repo, "kamal", "NIC1", "0771234567")
    assert owner.user.username == "kamal"
    assert repo.get_ev_owner_by_user_id(owner.user_id).nic == "NIC1"
    assert repo.get_ev_owner_by_phone("0771234567").nic == "NIC1"
    assert repo.get_ev_owner_with_user() is None


def test_duplicate_owner_nic_is_rejected(repo):
    make_owner(repo, "kamal", "NIC1", "0771234567")
    with pytest.raises(IntegrityError):
        make_owner(repo, "nimal", "NIC1", "0770000000")
    assert repo.get_user_by_username("nimal") is None


def test_capacity_constraint_is_enforced_by_the_store(repo):
    station_id = StationService(repo).create_station(station_payload(total_slots=3)).data["station_id"]
    with pytest.raises(IntegrityError):
        repo.update_station_fields(station_id, {"available_slots": 4})
    assert repo.get_station(station_id).available_slots == 3


def test_booking_counts(repo):
    station_id = StationService(repo).create_station(station_payload()).data["station_id"]
    repo.create_booking(station_id, status="Pending")
    repo.create_booking(station_id, status="Approved")
    repo.create_booking(station_id, status="Completed")
    repo.create_booking(station_id, status="Cancelled")
    assert repo.count_bookings(station_id) == 4
    assert repo.count_active_bookings(station_id) == 2
    assert repo.station_is_active(station_id)


def test_owner_account_update_writes_both_rows(repo):
    owner = make_owner(repo, "kamal", "NIC1", "0771234567")
    repo.update_ev_owner_account("NIC1", {"first_name": "Kamal"}, {"phone": "0779999999"})
    updated = repo.get_ev_owner_with_user(nic="NIC1")
    assert updated.user.first_name == "Kamal"
    assert updated.phone == "0779999999"
    assert updated.user_id == owner.user_id

    repo.update_ev_owner_account("NOPE", {"first_name": "Ghost"}, {})
    assert repo.get_user(owner.user_id).first_name == "Kamal"


def test_failed_owner_update_leaves_the_account_untouched(repo):
    make_owner(repo, "kamal", "NIC1", "0771234567")
    make_owner(repo, "nimal", "NIC2", "0770000000")
    with pytest.raises(IntegrityError):
        repo.update_ev_owner_account("NIC1", {"first_name": "Changed"}, {"phone": "0770000000"})
    owner = repo.get_ev_owner_with_user(nic="NIC1")
    assert owner.user.first_name is None
    assert owner.phone == "0771234567"
