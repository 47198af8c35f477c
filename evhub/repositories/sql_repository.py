"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.orm import joinedload

from evhub.db.models import Booking, ChargingStation, EVOwner, User, UserSession
from evhub.db.session import get_session
from evhub.domain.roles import Role
from evhub.domain.stations import INACTIVE_BOOKING_STATUSES


def _active_bookings_clause(station_id: str):
    return (Booking.station_id == station_id) & Booking.status.not_in(sorted(INACTIVE_BOOKING_STATUSES))


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        with get_session() as session:
            return session.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(func.lower(User.username) == (username or "").lower())
            return session.execute(stmt).scalar_one_or_none()

    def get_user_by_email(self, email: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.email == (email or "").lower())
            return session.execute(stmt).scalar_one_or_none()

    def get_user_by_login(self, identifier: str) -> Optional[User]:
        """Find a user by username or e-mail."""
        value = (identifier or "").strip()
        if not value:
            return None
        if "@" in value:
            return self.get_user_by_email(value)
        return self.get_user_by_username(value)

    def create_user(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        role: Role,
        first_name: str | None = None,
        last_name: str | None = None,
        charging_station_id: str | None = None,
        is_active: bool = True,
    ) -> User:
        now = datetime.now(timezone.utc)
        entity = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            role=role.value,
            first_name=first_name,
            last_name=last_name,
            charging_station_id=charging_station_id,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def update_user_fields(self, user_id: str, values: dict) -> int:
        if not values:
            return 0
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(**values, updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount

    def list_station_users(self, station_id: str) -> list[User]:
        with get_session() as session:
            stmt = select(User).where(
                User.charging_station_id == station_id,
                User.role == Role.STATION_USER.value,
            )
            return session.execute(stmt).scalars().all()

    def delete_user(self, user_id: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.user_id == user_id))
            session.execute(delete(EVOwner).where(EVOwner.user_id == user_id))
            session.execute(delete(User).where(User.id == user_id))
            session.commit()

    # -------------------------- sessions --------------------------
    def create_session(self, user_id: str, expires_at: datetime) -> str:
        token = secrets.token_urlsafe(32)
        entity = UserSession(token=token, user_id=user_id, expires_at=expires_at)
        with get_session() as session:
            session.add(entity)
            session.commit()
        return token

    def get_session_with_user(self, token: str) -> Optional[tuple[UserSession, User]]:
        with get_session() as session:
            stmt = (
                select(UserSession, User)
                .join(User, User.id == UserSession.user_id)
                .where(UserSession.token == token)
            )
            row = session.execute(stmt).first()
            if not row:
                return None
            return row[0], row[1]

    def delete_session(self, token: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.token == token))
            session.commit()

    def delete_user_sessions(self, user_id: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.user_id == user_id))
            session.commit()

    # -------------------------- ev owners --------------------------
    def get_ev_owner_by_nic(self, nic: str) -> Optional[EVOwner]:
        with get_session() as session:
            return session.get(EVOwner, nic)

    def get_ev_owner_by_user_id(self, user_id: str) -> Optional[EVOwner]:
        with get_session() as session:
            stmt = select(EVOwner).where(EVOwner.user_id == user_id)
            return session.execute(stmt).scalar_one_or_none()

    def get_ev_owner_by_phone(self, phone: str) -> Optional[EVOwner]:
        with get_session() as session:
            stmt = select(EVOwner).where(EVOwner.phone == phone)
            return session.execute(stmt).scalar_one_or_none()

    def get_ev_owner_with_user(self, *, nic: str | None = None, user_id: str | None = None) -> Optional[EVOwner]:
        with get_session() as session:
            stmt = select(EVOwner).options(joinedload(EVOwner.user))
            if nic is not None:
                stmt = stmt.where(EVOwner.nic == nic)
            elif user_id is not None:
                stmt = stmt.where(EVOwner.user_id == user_id)
            else:
                return None
            return session.execute(stmt).scalar_one_or_none()

    def create_ev_owner_account(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        nic: str,
        phone: str | None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> EVOwner:
        """Insert the login account and its EV owner record in one transaction."""
        now = datetime.now(timezone.utc)
        user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            role=Role.EV_OWNER.value,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        owner = EVOwner(nic=nic, phone=phone, is_active=True, created_at=now, updated_at=now)
        owner.user = user
        with get_session() as session:
            session.add(owner)
            session.commit()
            stmt = select(EVOwner).options(joinedload(EVOwner.user)).where(EVOwner.nic == nic)
            return session.execute(stmt).scalar_one()

    def update_ev_owner_account(self, nic: str, user_values: dict, owner_values: dict) -> None:
        """Patch the owner record and its login account in one transaction."""
        if not user_values and not owner_values:
            return
        now = datetime.now(timezone.utc)
        with get_session() as session:
            owner = session.get(EVOwner, nic)
            if not owner:
                return
            if user_values:
                session.execute(update(User).where(User.id == owner.user_id).values(**user_values, updated_at=now))
            if owner_values:
                session.execute(update(EVOwner).where(EVOwner.nic == nic).values(**owner_values, updated_at=now))
            session.commit()

    def set_ev_owner_active(self, nic: str, is_active: bool) -> None:
        """Flip the owner record and its login account together."""
        now = datetime.now(timezone.utc)
        with get_session() as session:
            owner = session.get(EVOwner, nic)
            if not owner:
                return
            owner.is_active = is_active
            owner.updated_at = now
            session.execute(update(User).where(User.id == owner.user_id).values(is_active=is_active, updated_at=now))
            if not is_active:
                session.execute(delete(UserSession).where(UserSession.user_id == owner.user_id))
            session.commit()

    def list_ev_owners(self, is_active: bool | None = None) -> list[EVOwner]:
        with get_session() as session:
            stmt = select(EVOwner).options(joinedload(EVOwner.user)).order_by(EVOwner.created_at.desc())
            if is_active is not None:
                stmt = stmt.where(EVOwner.is_active == is_active)
            return session.execute(stmt).scalars().all()

    # -------------------------- stations --------------------------
    def insert_station(self, values: dict) -> ChargingStation:
        now = datetime.now(timezone.utc)
        values = {"created_at": now, "updated_at": now, **values}
        entity = ChargingStation(**values)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def get_station(self, station_id: str) -> Optional[ChargingStation]:
        with get_session() as session:
            return session.get(ChargingStation, station_id)

    def station_is_active(self, station_id: str) -> bool:
        with get_session() as session:
            stmt = select(ChargingStation.id).where(
                ChargingStation.id == station_id, ChargingStation.is_active.is_(True)
            )
            return session.execute(stmt).first() is not None

    def update_station_fields(self, station_id: str, values: dict) -> int:
        """Write all columns of a patch in a single UPDATE."""
        with get_session() as session:
            stmt = (
                update(ChargingStation)
                .where(ChargingStation.id == station_id)
                .values(**values, updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount

    def activate_station(self, station_id: str) -> bool:
        """Inactive -> Active; False when the row was not inactive."""
        with get_session() as session:
            stmt = (
                update(ChargingStation)
                .where(ChargingStation.id == station_id, ChargingStation.is_active.is_(False))
                .values(is_active=True, updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount == 1

    def deactivate_station_if_idle(self, station_id: str) -> bool:
        """
        Active -> Inactive only while no active booking references the station.

        The booking check is part of the UPDATE's WHERE clause so both conditions
        are evaluated by the store in one statement.
        """
        with get_session() as session:
            stmt = (
                update(ChargingStation)
                .where(
                    ChargingStation.id == station_id,
                    ChargingStation.is_active.is_(True),
                    ~exists().where(_active_bookings_clause(station_id)),
                )
                .values(is_active=False, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount == 1

    def find_stations(self, where=(), order_by=(), *, offset: int | None = None, limit: int | None = None) -> list[ChargingStation]:
        with get_session() as session:
            stmt = select(ChargingStation).where(*where).order_by(*order_by)
            if offset:
                stmt = stmt.offset(offset)
            if limit:
                stmt = stmt.limit(limit)
            return session.execute(stmt).scalars().all()

    def count_stations(self, where=()) -> int:
        with get_session() as session:
            stmt = select(func.count()).select_from(ChargingStation).where(*where)
            return int(session.execute(stmt).scalar_one())

    def list_stations(self) -> list[ChargingStation]:
        with get_session() as session:
            return session.execute(select(ChargingStation)).scalars().all()

    # -------------------------- bookings --------------------------
    def create_booking(self, station_id: str, status: str = "Pending", owner_nic: str | None = None) -> Booking:
        entity = Booking(
            station_id=station_id,
            owner_nic=owner_nic,
            status=status,
            created_at=datetime.now(timezone.utc),
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def update_booking_status(self, booking_id: str, status: str) -> None:
        with get_session() as session:
            session.execute(update(Booking).where(Booking.id == booking_id).values(status=status))
            session.commit()

    def count_active_bookings(self, station_id: str) -> int:
        with get_session() as session:
            stmt = select(func.count()).select_from(Booking).where(_active_bookings_clause(station_id))
            return int(session.execute(stmt).scalar_one())

    def count_bookings(self, station_id: str) -> int:
        with get_session() as session:
            stmt = select(func.count()).select_from(Booking).where(Booking.station_id == station_id)
            return int(session.execute(stmt).scalar_one())
