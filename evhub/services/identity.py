"""Resolve the acting principal from the current request."""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Request

from evhub.domain.roles import Principal, Role
from evhub.repositories.sql_repository import SQLRepository
from evhub.services.session_service import as_utc, session_token


class IdentityResolver:
    """Maps a session token onto an immutable Principal."""

    def __init__(self, repository: SQLRepository | None = None) -> None:
        self.repository = repository or SQLRepository()

    def resolve_token(self, token: str | None) -> Principal | None:
        if not token:
            return None
        found = self.repository.get_session_with_user(token)
        if not found:
            return None
        db_session, user = found
        expires_at = as_utc(db_session.expires_at)
        if expires_at and expires_at < datetime.now(timezone.utc):
            self.repository.delete_session(token)
            return None
        if not user.is_active:
            return None
        return Principal(id=user.id, role=Role.parse(user.role))

    def current_principal(self, request: Request) -> Principal | None:
        """Principal for this request, resolved once and cached on request.state."""
        cached = getattr(request.state, "principal", None)
        if isinstance(cached, Principal):
            return cached
        principal = self.resolve_token(session_token(request))
        if principal is not None:
            request.state.principal = principal
        return principal
