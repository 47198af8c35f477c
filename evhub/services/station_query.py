"""
Filter and sort composition for station listings.

A StationQuery turns a free-form listing request (active flag, search term,
sort field and direction) into SQLAlchemy WHERE and ORDER BY clauses. The
search term is matched case-insensitively as a substring across the name,
type, address parts and the cached location string.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from evhub.db.models import ChargingStation

MAX_SEARCH_TERM_LENGTH = 100

SEARCH_COLUMNS = (
    ChargingStation.station_name,
    ChargingStation.type,
    ChargingStation.address,
    ChargingStation.city,
    ChargingStation.state_province,
    ChargingStation.location,
)


class StationSortField(str, Enum):
    LOCATION = "Location"
    TYPE = "Type"
    TOTAL_SLOTS = "TotalSlots"
    AVAILABLE_SLOTS = "AvailableSlots"
    IS_ACTIVE = "IsActive"
    CREATED_AT = "CreatedAt"
    UPDATED_AT = "UpdatedAt"

    @classmethod
    def parse(cls, value: str | None) -> Optional["StationSortField"]:
        """Accepts "TotalSlots", "totalSlots" or "total_slots"; None when unknown."""
        key = (value or "").replace("_", "").replace("-", "").strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class SortOrder(str, Enum):
    ASC = "Asc"
    DESC = "Desc"

    @classmethod
    def parse(cls, value: str | None) -> "SortOrder":
        if (value or "").strip().lower() in {"asc", "ascending"}:
            return cls.ASC
        return cls.DESC


_SORT_COLUMNS = {
    StationSortField.LOCATION: ChargingStation.location,
    StationSortField.TYPE: ChargingStation.type,
    StationSortField.TOTAL_SLOTS: ChargingStation.total_slots,
    StationSortField.AVAILABLE_SLOTS: ChargingStation.available_slots,
    StationSortField.IS_ACTIVE: ChargingStation.is_active,
    StationSortField.CREATED_AT: ChargingStation.created_at,
    StationSortField.UPDATED_AT: ChargingStation.updated_at,
}


@dataclass
class StationFilter:
    is_active: Optional[bool] = None
    search_term: Optional[str] = None

    @property
    def term(self) -> str:
        return (self.search_term or "").strip()


@dataclass(frozen=True)
class StationSort:
    field: StationSortField = StationSortField.CREATED_AT
    order: SortOrder = SortOrder.DESC

    @classmethod
    def parse(cls, sort_by: str | None, sort_order: str | None = None) -> "StationSort":
        """Unknown or missing fields fall back to newest first."""
        parsed = StationSortField.parse(sort_by)
        if parsed is None:
            return cls()
        return cls(parsed, SortOrder.parse(sort_order))


def build_search_clause(term: str):
    """OR of case-insensitive substring matches over SEARCH_COLUMNS."""
    clause = None
    for column in SEARCH_COLUMNS:
        match = column.icontains(term, autoescape=True)
        clause = match if clause is None else clause | match
    return clause


def build_station_filter(station_filter: StationFilter | None) -> list:
    clauses: list = []
    if station_filter is None:
        return clauses
    if station_filter.is_active is not None:
        clauses.append(ChargingStation.is_active.is_(station_filter.is_active))
    if station_filter.term:
        clauses.append(build_search_clause(station_filter.term))
    return clauses


def build_station_sort(sort: StationSort | None) -> list:
    sort = sort or StationSort()
    column = _SORT_COLUMNS.get(sort.field, ChargingStation.created_at)
    return [column.asc() if sort.order is SortOrder.ASC else column.desc()]


@dataclass
class StationQuery:
    """Conjunctive filter plus a single-field sort."""

    filter: StationFilter = field(default_factory=StationFilter)
    sort: StationSort = field(default_factory=StationSort)

    @property
    def where(self) -> list:
        return build_station_filter(self.filter)

    @property
    def order_by(self) -> list:
        return build_station_sort(self.sort)
