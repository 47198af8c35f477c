from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from evhub.domain.roles import Role
from evhub.domain.stations import StationCreate, StationUpdate
from evhub.routers.deps import error_response, require_principal, require_roles, result_response, status_code_for
from evhub.services.results import StationQueryResult
from evhub.services.station_query import StationFilter, StationSort
from evhub.services.station_service import StationService, station_to_dict

router = APIRouter(prefix="/api/stations", tags=["stations"])
station_service = StationService()

admin_only = require_roles(Role.ADMIN)


def _query_response(result: StationQueryResult):
    if not result.success:
        return error_response(400, "QueryFailed", result.error_message or "")
    body = {"ok": True, "data": [station_to_dict(s) for s in result.stations]}
    if result.pagination is not None:
        body["pagination"] = result.pagination
    return body


@router.post("", dependencies=[Depends(admin_only)])
def create_station(payload: StationCreate):
    return result_response(station_service.create_station(payload))


@router.get("", dependencies=[Depends(require_principal)])
def list_stations(
    is_active: Optional[bool] = None,
    search_term: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page_number: Optional[int] = None,
    page_size: Optional[int] = None,
):
    station_filter = StationFilter(is_active=is_active, search_term=search_term)
    sort = StationSort.parse(sort_by, sort_order)
    if page_number is not None or page_size is not None:
        result = station_service.get_stations_paginated(station_filter, page_number or 1, page_size or 10, sort)
    else:
        result = station_service.get_stations_sorted(station_filter, sort)
    return _query_response(result)


@router.get("/nearby", dependencies=[Depends(require_principal)])
def nearby_stations(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0),
):
    return _query_response(station_service.get_nearby_stations(latitude, longitude, radius_km))


@router.get("/{station_id}", dependencies=[Depends(require_principal)])
def get_station(station_id: str):
    result = station_service.get_station(station_id)
    if not result.success:
        return error_response(status_code_for(result.status), result.status.value, result.error_message or "")
    return {
        "ok": True,
        "data": {
            "station": station_to_dict(result.station),
            "station_users": result.station_users,
        },
    }


@router.get("/{station_id}/statistics", dependencies=[Depends(require_principal)])
def station_statistics(station_id: str):
    stats = station_service.get_station_statistics(station_id)
    if stats is None:
        return error_response(404, "StationNotFound", "Charging station not found.")
    return {"ok": True, "data": stats}


@router.put("/{station_id}", dependencies=[Depends(admin_only)])
def update_station(station_id: str, payload: StationUpdate):
    return result_response(station_service.update_station(station_id, payload))


@router.patch("/{station_id}/activate", dependencies=[Depends(admin_only)])
def activate_station(station_id: str):
    return result_response(station_service.activate_station(station_id))


@router.patch("/{station_id}/deactivate", dependencies=[Depends(admin_only)])
def deactivate_station(station_id: str):
    return result_response(station_service.deactivate_station(station_id))
