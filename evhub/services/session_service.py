"""Session helpers (issue tokens, cookies, token extraction)."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi import Request, Response

from evhub.core.config import get_settings
from evhub.repositories.sql_repository import SQLRepository

SESSION_COOKIE_NAME = "session"
_BEARER_PREFIX = "bearer "

_repo = SQLRepository()


def issue_session(user_id: str) -> str:
    """Create a new session token for the user and persist it."""
    settings = get_settings()
    ttl = max(60, settings.session_ttl_seconds)
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)
    return _repo.create_session(user_id, expires_at)


def session_token(request: Request) -> str | None:
    """Token from the Authorization header, falling back to the session cookie."""
    header = request.headers.get("authorization") or ""
    if header.lower().startswith(_BEARER_PREFIX):
        token = header[len(_BEARER_PREFIX):].strip()
        if token:
            return token
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; they were written as UTC.
    if value is None:
        return None
    return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    secure_cookie = settings.app_env == "prod"
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=secure_cookie,
        samesite="strict",
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")


def delete_session(token: str) -> None:
    """Remove a session token from the store."""
    if not token:
        return
    _repo.delete_session(token)
