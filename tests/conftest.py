from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the evhub package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from evhub.core import config as core_config
from evhub.core.rate_limiter import reset_limits
from evhub.core.security import hash_password
from evhub.db import models
from evhub.db import session as db_session
from evhub.db.create_tables import create_all
from evhub.domain.roles import Role
from evhub.domain.stations import StationCreate
from evhub.repositories.sql_repository import SQLRepository


@pytest.fixture()
def temp_db(tmp_path, monkeypatch):
    """Point DATABASE_URL at a temporary SQLite file and tear it down completely afterwards."""
    db_file = tmp_path / "test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.delenv("NEARBY_RADIUS_KM", raising=False)
    monkeypatch.delenv("LOGIN_RATE_LIMIT", raising=False)
    # clear caches so env changes are re-read
    core_config.get_settings.cache_clear()
    db_session.reset_engine()
    reset_limits()

    create_all(drop_first=True)

    yield db_file

    try:
        models.Base.metadata.drop_all(bind=db_session.get_engine())
    except Exception:
        pass
    core_config.get_settings.cache_clear()
    db_session.reset_engine()


@pytest.fixture()
def repo(temp_db) -> SQLRepository:
    return SQLRepository()


def station_payload(**overrides) -> StationCreate:
    values = dict(
        station_name="Downtown Hub",
        type="AC",
        address="12 Main Street",
        city="Colombo",
        state_province="Western",
        total_slots=10,
        contact_phone="0771234567",
        contact_email="hub@example.com",
        latitude=6.9271,
        longitude=79.8612,
    )
    values.update(overrides)
    return StationCreate(**values)


def make_staff(repo: SQLRepository, username: str, role: Role, password: str = "password123", **extra):
    return repo.create_user(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(password),
        role=role,
        **extra,
    )


def make_owner(repo: SQLRepository, username: str, nic: str, phone: str, password: str = "password123"):
    return repo.create_ev_owner_account(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(password),
        nic=nic,
        phone=phone,
    )
