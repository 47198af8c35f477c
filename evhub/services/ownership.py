"""
Ownership-scoped authorization.

An OwnershipEvaluator decides whether the acting principal may touch the
account referenced by the current request. Admins and station users have full
access; EV owners may only reach their own EV owner record; every other role
is refused. The evaluator is configured once with the name of the request value
that carries the resource reference (a NIC or a user id) and is then invoked
before each resource-scoped action.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Protocol

from evhub.core.logging_utils import log_event
from evhub.domain.owners import normalize_nic
from evhub.domain.roles import FULL_ACCESS_ROLES, Principal, Role
from evhub.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)

DEFAULT_NIC_KEY = "nic"


class RequestContext(Protocol):
    def lookup(self, name: str) -> Optional[str]:
        ...


class OwnerLookup(Protocol):
    def get_ev_owner_by_nic(self, nic: str): ...

    def get_ev_owner_by_user_id(self, user_id: str): ...


@dataclass(frozen=True)
class BoundValues:
    """Request values from two ordered sources: bound arguments, then route parameters."""

    arguments: Mapping[str, Any] = field(default_factory=dict)
    route: Mapping[str, Any] = field(default_factory=dict)

    def lookup(self, name: str) -> Optional[str]:
        for source in (self.arguments, self.route):
            if name in source:
                value = source[name]
                return None if value is None else str(value)
        return None


class AuthFailure(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    NOT_AUTHORIZED = "NotAuthorized"
    INTERNAL = "Internal"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    failure: Optional[AuthFailure] = None
    reason: str = ""

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, AuthFailure.NOT_AUTHORIZED, reason)

    @classmethod
    def unauthenticated(cls) -> "Decision":
        return cls(False, AuthFailure.UNAUTHENTICATED, "Unable to identify current user.")

    @classmethod
    def internal(cls) -> "Decision":
        return cls(False, AuthFailure.INTERNAL, "Error validating account ownership.")


class OwnershipEvaluator:
    """Per-route ownership gate; at most one owner lookup per decision."""

    def __init__(
        self,
        *,
        nic_key: str | None = None,
        user_id_key: str | None = None,
        repository: OwnerLookup | None = None,
    ) -> None:
        if nic_key and user_id_key:
            raise ValueError("Configure either a NIC key or a user id key, not both.")
        self.nic_key = nic_key or None
        self.user_id_key = user_id_key or None
        self.repository = repository or SQLRepository()

    @classmethod
    def by_nic(cls, key: str = DEFAULT_NIC_KEY, repository: OwnerLookup | None = None) -> "OwnershipEvaluator":
        return cls(nic_key=key, repository=repository)

    @classmethod
    def by_user_id(cls, key: str, repository: OwnerLookup | None = None) -> "OwnershipEvaluator":
        return cls(user_id_key=key, repository=repository)

    @classmethod
    def bare(cls, repository: OwnerLookup | None = None) -> "OwnershipEvaluator":
        return cls(repository=repository)

    def evaluate(self, principal: Principal | None, context: RequestContext | None = None) -> Decision:
        if principal is None or not principal.id:
            return Decision.unauthenticated()
        try:
            decision = self._decide(principal, context or BoundValues())
        except Exception:
            logger.exception("Ownership check failed for user %s", principal.id)
            return Decision.internal()
        if not decision.allowed:
            log_event(
                logger,
                "ownership_denied",
                f"Ownership check denied for user {principal.id}",
                user_id=principal.id,
                role=principal.role.value,
                nic_key=self.nic_key,
                user_id_key=self.user_id_key,
            )
        return decision

    def _decide(self, principal: Principal, context: RequestContext) -> Decision:
        role = principal.role
        if role in FULL_ACCESS_ROLES:
            return Decision.allow()
        if role is Role.EV_OWNER:
            if self._owns(principal, context):
                return Decision.allow()
            return Decision.deny("You can only access your own account.")
        return Decision.deny("You are not authorized to perform this operation.")

    def _owns(self, principal: Principal, context: RequestContext) -> bool:
        if self.nic_key:
            nic = normalize_nic(context.lookup(self.nic_key))
            if not nic:
                return self._has_owner_record(principal.id)
            owner = self.repository.get_ev_owner_by_nic(nic)
            return owner is not None and owner.user_id == principal.id
        if self.user_id_key:
            return context.lookup(self.user_id_key) == principal.id
        return self._has_owner_record(principal.id)

    def _has_owner_record(self, user_id: str) -> bool:
        return self.repository.get_ev_owner_by_user_id(user_id) is not None
