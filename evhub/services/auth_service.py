"""
Authentication use cases: password login and logout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from evhub.core.logging_utils import log_event
from evhub.core.security import hash_password, needs_rehash, verify_password
from evhub.domain.roles import Role
from evhub.repositories.sql_repository import SQLRepository
from evhub.services.session_service import delete_session, issue_session

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for authentication-related exceptions."""


class InvalidCredentialsError(AuthError):
    pass


class AccountInactiveError(AuthError):
    pass


@dataclass
class LoginSuccess:
    user_id: str
    username: str
    role: Role
    session_token: str


@dataclass
class AuthService:
    """Handles login and logout flows."""

    repository: SQLRepository | None = None

    def __post_init__(self):
        if self.repository is None:
            self.repository = SQLRepository()

    def login(self, identifier: str, password: str) -> LoginSuccess:
        """Authenticate by username or e-mail and open a session."""
        user = self.repository.get_user_by_login(identifier)
        if not user or not verify_password(password or "", user.password_hash):
            raise InvalidCredentialsError("Invalid username or password.")
        if not user.is_active:
            raise AccountInactiveError("Account is deactivated. Contact an administrator to reactivate it.")
        if needs_rehash(user.password_hash):
            self.repository.update_user_fields(user.id, {"password_hash": hash_password(password)})
        token = issue_session(user.id)
        log_event(logger, "user_logged_in", f"User {user.id} logged in", user_id=user.id, role=user.role)
        return LoginSuccess(
            user_id=user.id,
            username=user.username,
            role=Role.parse(user.role),
            session_token=token,
        )

    def logout(self, token: str | None) -> None:
        if token:
            delete_session(token)
