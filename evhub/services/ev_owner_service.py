"""
EV owner account use cases: registration, profile, activation state.

Access control is not repeated here; routers run the role and ownership gates
before calling these methods.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from evhub.core.logging_utils import log_event
from evhub.core.security import hash_password
from evhub.db.models import EVOwner
from evhub.domain.owners import normalize_nic
from evhub.domain.stations import clean_email, clean_text
from evhub.repositories.sql_repository import SQLRepository
from evhub.services.results import OperationResult, OperationStatus

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

REGISTERED = "EV owner registered successfully."
PROFILE_UPDATED = "Profile updated successfully."
ACCOUNT_DEACTIVATED = "Account deactivated successfully."
ACCOUNT_REACTIVATED = "Account reactivated successfully."
ACCOUNT_DELETED = "EV owner deleted successfully."


@dataclass
class EVOwnerRegistration:
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    nic: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass
class EVOwnerProfileUpdate:
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


def owner_profile(owner: EVOwner) -> dict:
    user = owner.user
    return {
        "nic": owner.nic,
        "user_id": owner.user_id,
        "username": user.username if user else None,
        "email": user.email if user else None,
        "first_name": user.first_name if user else None,
        "last_name": user.last_name if user else None,
        "phone": owner.phone,
        "is_active": bool(owner.is_active),
        "created_at": owner.created_at.isoformat() if owner.created_at else None,
    }


class EVOwnerService:
    def __init__(self, repository: SQLRepository | None = None) -> None:
        self.repository = repository or SQLRepository()

    # -------------------------------------- registration --------------------------------------
    def register(self, payload: EVOwnerRegistration) -> OperationResult:
        username = clean_text(payload.username)
        email = clean_email(payload.email)
        nic = normalize_nic(payload.nic)
        phone = clean_text(payload.phone)
        missing = [
            name
            for name, value in (("username", username), ("email", email), ("nic", nic), ("phone", phone))
            if not value
        ]
        if missing:
            return OperationResult.failed(
                OperationStatus.VALIDATION_FAILED,
                f"Missing required fields: {', '.join(missing)}.",
                [f"{name}_required" for name in missing],
            )
        if len(payload.password or "") < MIN_PASSWORD_LENGTH:
            return OperationResult.failed(
                OperationStatus.VALIDATION_FAILED,
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
                ["password_too_short"],
            )
        try:
            conflict = self._registration_conflict(username, email, nic, phone)
            if conflict:
                return conflict
            owner = self.repository.create_ev_owner_account(
                username=username,
                email=email,
                password_hash=hash_password(payload.password),
                nic=nic,
                phone=phone,
                first_name=clean_text(payload.first_name),
                last_name=clean_text(payload.last_name),
            )
        except Exception:
            logger.exception("Failed to register EV owner")
            return OperationResult.failed(OperationStatus.INTERNAL)
        log_event(logger, "ev_owner_registered", f"EV owner {owner.nic} registered", nic=owner.nic, user_id=owner.user_id)
        return OperationResult.ok(REGISTERED, {"user_id": owner.user_id, "nic": owner.nic})

    def _registration_conflict(self, username: str, email: str, nic: str, phone: str) -> OperationResult | None:
        if self.repository.get_user_by_username(username):
            return OperationResult.failed(OperationStatus.USERNAME_EXISTS, "Username already exists.")
        if self.repository.get_user_by_email(email):
            return OperationResult.failed(OperationStatus.EMAIL_EXISTS, "Email already exists.")
        if self.repository.get_ev_owner_by_phone(phone):
            return OperationResult.failed(OperationStatus.PHONE_EXISTS, "Phone number already exists.")
        if self.repository.get_ev_owner_by_nic(nic):
            return OperationResult.failed(OperationStatus.NIC_EXISTS, "NIC already exists.")
        return None

    # -------------------------------------- profile --------------------------------------
    def get_profile(self, user_id: str) -> OperationResult:
        return self._load_profile(user_id=user_id)

    def get_profile_by_nic(self, nic: str) -> OperationResult:
        return self._load_profile(nic=normalize_nic(nic))

    def _load_profile(self, *, nic: str | None = None, user_id: str | None = None) -> OperationResult:
        try:
            owner = self.repository.get_ev_owner_with_user(nic=nic, user_id=user_id)
        except Exception:
            logger.exception("Failed to load EV owner profile")
            return OperationResult.failed(OperationStatus.INTERNAL)
        if not owner:
            return OperationResult.failed(OperationStatus.EV_OWNER_NOT_FOUND)
        return OperationResult.ok("Profile retrieved successfully.", owner_profile(owner))

    def update_profile(self, user_id: str, payload: EVOwnerProfileUpdate) -> OperationResult:
        try:
            owner = self.repository.get_ev_owner_with_user(user_id=user_id)
            if not owner:
                return OperationResult.failed(OperationStatus.EV_OWNER_NOT_FOUND)
            return self._apply_profile_update(owner, payload)
        except Exception:
            logger.exception("Failed to update EV owner profile for user %s", user_id)
            return OperationResult.failed(OperationStatus.INTERNAL)

    def admin_update_by_nic(self, nic: str, payload: EVOwnerProfileUpdate) -> OperationResult:
        try:
            owner = self.repository.get_ev_owner_with_user(nic=normalize_nic(nic))
            if not owner:
                return OperationResult.failed(OperationStatus.EV_OWNER_NOT_FOUND)
            return self._apply_profile_update(owner, payload)
        except Exception:
            logger.exception("Failed to update EV owner %s", nic)
            return OperationResult.failed(OperationStatus.INTERNAL)

    def _apply_profile_update(self, owner: EVOwner, payload: EVOwnerProfileUpdate) -> OperationResult:
        user_values: dict = {}
        owner_values: dict = {}
        email = clean_email(payload.email)
        if email and email != owner.user.email:
            existing = self.repository.get_user_by_email(email)
            if existing and existing.id != owner.user_id:
                return OperationResult.failed(OperationStatus.EMAIL_EXISTS, "Email already exists.")
            user_values["email"] = email
        phone = clean_text(payload.phone)
        if phone and phone != owner.phone:
            existing_owner = self.repository.get_ev_owner_by_phone(phone)
            if existing_owner and existing_owner.nic != owner.nic:
                return OperationResult.failed(OperationStatus.PHONE_EXISTS, "Phone number already exists.")
            owner_values["phone"] = phone
        for name in ("first_name", "last_name"):
            value = clean_text(getattr(payload, name))
            if value:
                user_values[name] = value
        if payload.password:
            if len(payload.password) < MIN_PASSWORD_LENGTH:
                return OperationResult.failed(
                    OperationStatus.VALIDATION_FAILED,
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
                    ["password_too_short"],
                )
            user_values["password_hash"] = hash_password(payload.password)
        self.repository.update_ev_owner_account(owner.nic, user_values, owner_values)
        log_event(
            logger,
            "ev_owner_updated",
            f"EV owner {owner.nic} updated",
            nic=owner.nic,
            fields=sorted(set(user_values) | set(owner_values)),
        )
        return OperationResult.ok(PROFILE_UPDATED)

    # -------------------------------------- activation --------------------------------------
    def deactivate_account(self, user_id: str) -> OperationResult:
        try:
            owner = self.repository.get_ev_owner_by_user_id(user_id)
        except Exception:
            logger.exception("Failed to load EV owner for user %s", user_id)
            return OperationResult.failed(OperationStatus.INTERNAL)
        return self._set_active(owner, False)

    def deactivate_by_nic(self, nic: str) -> OperationResult:
        try:
            owner = self.repository.get_ev_owner_by_nic(normalize_nic(nic))
        except Exception:
            logger.exception("Failed to load EV owner %s", nic)
            return OperationResult.failed(OperationStatus.INTERNAL)
        return self._set_active(owner, False)

    def reactivate_account(self, nic: str) -> OperationResult:
        try:
            owner = self.repository.get_ev_owner_by_nic(normalize_nic(nic))
        except Exception:
            logger.exception("Failed to load EV owner %s", nic)
            return OperationResult.failed(OperationStatus.INTERNAL)
        return self._set_active(owner, True)

    def _set_active(self, owner: EVOwner | None, is_active: bool) -> OperationResult:
        if not owner:
            return OperationResult.failed(OperationStatus.EV_OWNER_NOT_FOUND)
        if bool(owner.is_active) == is_active:
            if is_active:
                return OperationResult.failed(OperationStatus.ACCOUNT_ALREADY_ACTIVE, "Account is already active.")
            return OperationResult.failed(OperationStatus.ACCOUNT_ALREADY_DEACTIVATED, "Account is already deactivated.")
        try:
            self.repository.set_ev_owner_active(owner.nic, is_active)
        except Exception:
            logger.exception("Failed to change activation of EV owner %s", owner.nic)
            return OperationResult.failed(OperationStatus.INTERNAL)
        event = "ev_owner_reactivated" if is_active else "ev_owner_deactivated"
        log_event(logger, event, f"EV owner {owner.nic} {'reactivated' if is_active else 'deactivated'}", nic=owner.nic)
        return OperationResult.ok(ACCOUNT_REACTIVATED if is_active else ACCOUNT_DEACTIVATED)

    # -------------------------------------- admin --------------------------------------
    def list_ev_owners(self, is_active: bool | None = None) -> OperationResult:
        """All owners when is_active is None, otherwise only those in that state."""
        try:
            owners = self.repository.list_ev_owners(is_active)
        except Exception:
            logger.exception("Failed to list EV owners")
            return OperationResult.failed(OperationStatus.INTERNAL)
        return OperationResult.ok("EV owners retrieved successfully.", [owner_profile(o) for o in owners])

    def delete_ev_owner(self, nic: str) -> OperationResult:
        try:
            owner = self.repository.get_ev_owner_by_nic(normalize_nic(nic))
            if not owner:
                return OperationResult.failed(OperationStatus.EV_OWNER_NOT_FOUND)
            self.repository.delete_user(owner.user_id)
        except Exception:
            logger.exception("Failed to delete EV owner %s", nic)
            return OperationResult.failed(OperationStatus.INTERNAL)
        log_event(logger, "ev_owner_deleted", f"EV owner {owner.nic} deleted", nic=owner.nic)
        return OperationResult.ok(ACCOUNT_DELETED)
