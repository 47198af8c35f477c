"""
Charging station use cases: create, update, activate/deactivate and listings.

Every public method returns a typed result. Business failures (validation,
missing station, state conflicts, active bookings) are reported through the
result status; unexpected store errors are logged here and surface as
OperationStatus.INTERNAL with a generic message.
"""
from __future__ import annotations

import logging
import math

from evhub.core.config import get_settings
from evhub.core.logging_utils import log_event
from evhub.db.models import ChargingStation, User
from evhub.domain.geo import haversine_km
from evhub.domain.stations import (
    StationCreate,
    StationUpdate,
    build_update_values,
    clean_email,
    clean_text,
    derive_location,
    normalize_station_type,
    validate_create,
    validate_update,
)
from evhub.repositories.sql_repository import SQLRepository
from evhub.services.results import (
    OperationResult,
    OperationStatus,
    StationQueryResult,
    StationRetrievalResult,
)
from evhub.services.station_query import (
    MAX_SEARCH_TERM_LENGTH,
    StationFilter,
    StationQuery,
    StationSort,
)

logger = logging.getLogger(__name__)

STATION_CREATED = "Charging station created successfully."
STATION_UPDATED = "Charging station updated successfully."
STATION_ACTIVATED = "Charging station activated successfully."
STATION_DEACTIVATED = "Charging station deactivated successfully."
STATION_ALREADY_ACTIVE = "Charging station is already active."
STATION_ALREADY_DEACTIVATED = "Charging station is already deactivated."
SEARCH_TERM_TOO_LONG = f"Search term cannot exceed {MAX_SEARCH_TERM_LENGTH} characters."


def station_to_dict(station: ChargingStation) -> dict:
    return {
        "id": station.id,
        "station_name": station.station_name,
        "type": station.type,
        "address": station.address,
        "city": station.city,
        "state_province": station.state_province,
        "location": station.location,
        "total_slots": station.total_slots,
        "available_slots": station.available_slots,
        "contact_phone": station.contact_phone,
        "contact_email": station.contact_email,
        "latitude": station.latitude,
        "longitude": station.longitude,
        "is_active": bool(station.is_active),
        "created_at": station.created_at.isoformat() if station.created_at else None,
        "updated_at": station.updated_at.isoformat() if station.updated_at else None,
    }


def station_user_profile(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role,
        "is_active": bool(user.is_active),
    }


class StationService:
    """Station lifecycle engine backed by SQLRepository."""

    def __init__(self, repository: SQLRepository | None = None) -> None:
        self.repository = repository or SQLRepository()

    # -------------------------------------- mutations --------------------------------------
    def create_station(self, payload: StationCreate | None) -> OperationResult:
        validation = validate_create(payload)
        if not validation.is_valid:
            return OperationResult.failed(OperationStatus.VALIDATION_FAILED, validation.message, validation.errors)
        address = clean_text(payload.address)
        city = clean_text(payload.city)
        state_province = clean_text(payload.state_province)
        values = {
            "station_name": clean_text(payload.station_name),
            "type": normalize_station_type(payload.type),
            "address": address,
            "city": city,
            "state_province": state_province,
            "location": derive_location(address, city, state_province),
            "total_slots": payload.total_slots,
            "available_slots": payload.total_slots,
            "contact_phone": clean_text(payload.contact_phone),
            "contact_email": clean_email(payload.contact_email),
            "latitude": float(payload.latitude),
            "longitude": float(payload.longitude),
            "is_active": True,
        }
        try:
            station = self.repository.insert_station(values)
        except Exception:
            logger.exception("Failed to create charging station")
            return OperationResult.failed(OperationStatus.INTERNAL)
        log_event(logger, "station_created", f"Charging station {station.id} created", station_id=station.id)
        return OperationResult.ok(STATION_CREATED, {"station_id": station.id})

    def update_station(self, station_id: str, payload: StationUpdate | None) -> OperationResult:
        validation = validate_update(payload)
        if not validation.is_valid:
            return OperationResult.failed(OperationStatus.VALIDATION_FAILED, validation.message, validation.errors)
        try:
            station = self.repository.get_station(station_id)
            if not station:
                return OperationResult.failed(OperationStatus.STATION_NOT_FOUND)
            values = build_update_values(payload, station)
            if not self.repository.update_station_fields(station_id, values):
                return OperationResult.failed(OperationStatus.STATION_NOT_FOUND)
        except Exception:
            logger.exception("Failed to update charging station %s", station_id)
            return OperationResult.failed(OperationStatus.INTERNAL)
        log_event(
            logger,
            "station_updated",
            f"Charging station {station_id} updated",
            station_id=station_id,
            fields=sorted(values),
        )
        return OperationResult.ok(STATION_UPDATED)

    def activate_station(self, station_id: str) -> OperationResult:
        try:
            station = self.repository.get_station(station_id)
            if not station:
                return OperationResult.failed(OperationStatus.STATION_NOT_FOUND)
            if station.is_active:
                return OperationResult.failed(OperationStatus.ALREADY_IN_STATE, STATION_ALREADY_ACTIVE)
            if not self.repository.activate_station(station_id):
                # The row changed between the read and the conditional UPDATE.
                if not self.repository.get_station(station_id):
                    return OperationResult.failed(OperationStatus.STATION_NOT_FOUND)
                return OperationResult.failed(OperationStatus.ALREADY_IN_STATE, STATION_ALREADY_ACTIVE)
        except Exception:
            logger.exception("Failed to activate charging station %s", station_id)
            return OperationResult.failed(OperationStatus.INTERNAL)
        log_event(logger, "station_activated", f"Charging station {station_id} activated", station_id=station_id)
        return OperationResult.ok(STATION_ACTIVATED)

    def deactivate_station(self, station_id: str) -> OperationResult:
        try:
            station = self.repository.get_station(station_id)
            if not station:
                return OperationResult.failed(OperationStatus.STATION_NOT_FOUND)
            if not station.is_active:
                return OperationResult.failed(OperationStatus.ALREADY_IN_STATE, STATION_ALREADY_DEACTIVATED)
            if self.repository.count_active_bookings(station_id) > 0:
                return OperationResult.failed(OperationStatus.HAS_ACTIVE_BOOKINGS)
            if not self.repository.deactivate_station_if_idle(station_id):
                return self._diagnose_failed_deactivation(station_id)
        except Exception:
            logger.exception("Failed to deactivate charging station %s", station_id)
            return OperationResult.failed(OperationStatus.INTERNAL)
        log_event(logger, "station_deactivated", f"Charging station {station_id} deactivated", station_id=station_id)
        return OperationResult.ok(STATION_DEACTIVATED)

    def _diagnose_failed_deactivation(self, station_id: str) -> OperationResult:
        # The conditional UPDATE lost a race: report whichever condition now blocks it.
        station = self.repository.get_station(station_id)
        if not station:
            return OperationResult.failed(OperationStatus.STATION_NOT_FOUND)
        if not station.is_active:
            return OperationResult.failed(OperationStatus.ALREADY_IN_STATE, STATION_ALREADY_DEACTIVATED)
        return OperationResult.failed(OperationStatus.HAS_ACTIVE_BOOKINGS)

    # -------------------------------------- lookups --------------------------------------
    def get_station(self, station_id: str) -> StationRetrievalResult:
        try:
            station = self.repository.get_station(station_id)
            if not station:
                return StationRetrievalResult(
                    False,
                    error_message="Charging station not found.",
                    status=OperationStatus.STATION_NOT_FOUND,
                )
            users = self.repository.list_station_users(station_id)
        except Exception:
            logger.exception("Failed to load charging station %s", station_id)
            return StationRetrievalResult(False, error_message="An unexpected error occurred.", status=OperationStatus.INTERNAL)
        return StationRetrievalResult(True, station, [station_user_profile(u) for u in users])

    def is_station_active_and_exists(self, station_id: str) -> bool:
        try:
            return self.repository.station_is_active(station_id)
        except Exception:
            logger.exception("Failed to check charging station %s", station_id)
            return False

    def get_station_statistics(self, station_id: str) -> dict | None:
        try:
            station = self.repository.get_station(station_id)
            if not station:
                return None
            total_bookings = self.repository.count_bookings(station_id)
            active_bookings = self.repository.count_active_bookings(station_id)
        except Exception:
            logger.exception("Failed to compute statistics for charging station %s", station_id)
            return None
        utilization = 0.0
        if station.total_slots > 0:
            utilization = (station.total_slots - station.available_slots) / station.total_slots * 100
        return {
            "station_id": station_id,
            "total_slots": station.total_slots,
            "available_slots": station.available_slots,
            "utilization_percentage": round(utilization, 2),
            "total_bookings": total_bookings,
            "active_bookings": active_bookings,
            "is_active": bool(station.is_active),
        }

    # -------------------------------------- listings --------------------------------------
    def get_stations(self, station_filter: StationFilter | None = None) -> StationQueryResult:
        return self.get_stations_sorted(station_filter, StationSort())

    def get_stations_sorted(self, station_filter: StationFilter | None, sort: StationSort | None) -> StationQueryResult:
        query = StationQuery(station_filter or StationFilter(), sort or StationSort())
        if len(query.filter.term) > MAX_SEARCH_TERM_LENGTH:
            return StationQueryResult.failed(SEARCH_TERM_TOO_LONG)
        try:
            stations = self.repository.find_stations(query.where, query.order_by)
        except Exception:
            logger.exception("Failed to list charging stations")
            return StationQueryResult.failed()
        return StationQueryResult.ok(stations)

    def get_stations_paginated(
        self,
        station_filter: StationFilter | None,
        page_number: int,
        page_size: int,
        sort: StationSort | None = None,
    ) -> StationQueryResult:
        query = StationQuery(station_filter or StationFilter(), sort or StationSort())
        if len(query.filter.term) > MAX_SEARCH_TERM_LENGTH:
            return StationQueryResult.failed(SEARCH_TERM_TOO_LONG)
        page_number = max(1, int(page_number or 1))
        page_size = max(1, int(page_size or 1))
        try:
            total_count = self.repository.count_stations(query.where)
            stations = self.repository.find_stations(
                query.where,
                query.order_by,
                offset=(page_number - 1) * page_size,
                limit=page_size,
            )
        except Exception:
            logger.exception("Failed to page charging stations")
            return StationQueryResult.failed()
        pagination = {
            "total_count": total_count,
            "page_number": page_number,
            "page_size": page_size,
            "total_pages": math.ceil(total_count / page_size) if total_count else 0,
        }
        return StationQueryResult.ok(stations, pagination)

    def get_nearby_stations(self, latitude: float, longitude: float, radius_km: float | None = None) -> StationQueryResult:
        """Active stations within radius_km of the point, by haversine distance."""
        radius = get_settings().nearby_radius_km if radius_km is None else radius_km
        try:
            stations = self.repository.list_stations()
        except Exception:
            logger.exception("Failed to list charging stations for proximity search")
            return StationQueryResult.failed()
        nearby = [
            s
            for s in stations
            if s.is_active and haversine_km(latitude, longitude, s.latitude, s.longitude) <= radius
        ]
        return StationQueryResult.ok(nearby)
