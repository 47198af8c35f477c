"""
Request dependencies shared by the routers: principal resolution, role and
ownership gates, and the status-to-HTTP mapping.
"""
from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request
from fastapi.dependencies.utils import get_flat_dependant
from fastapi.responses import JSONResponse

from evhub.domain.roles import Principal, Role
from evhub.services.identity import IdentityResolver
from evhub.services.ownership import AuthFailure, BoundValues, OwnershipEvaluator
from evhub.services.results import OperationResult, OperationStatus

_resolver = IdentityResolver()

_STATUS_CODES = {
    OperationStatus.SUCCESS: 200,
    OperationStatus.UNAUTHENTICATED: 401,
    OperationStatus.NOT_AUTHORIZED: 403,
    OperationStatus.VALIDATION_FAILED: 400,
    OperationStatus.STATION_NOT_FOUND: 404,
    OperationStatus.EV_OWNER_NOT_FOUND: 404,
    OperationStatus.USER_NOT_FOUND: 404,
    OperationStatus.ALREADY_IN_STATE: 409,
    OperationStatus.HAS_ACTIVE_BOOKINGS: 409,
    OperationStatus.USERNAME_EXISTS: 409,
    OperationStatus.EMAIL_EXISTS: 409,
    OperationStatus.PHONE_EXISTS: 409,
    OperationStatus.NIC_EXISTS: 409,
    OperationStatus.ACCOUNT_ALREADY_DEACTIVATED: 409,
    OperationStatus.ACCOUNT_ALREADY_ACTIVE: 409,
    OperationStatus.INTERNAL: 500,
}

_AUTH_FAILURE_CODES = {
    AuthFailure.UNAUTHENTICATED: 401,
    AuthFailure.NOT_AUTHORIZED: 403,
    AuthFailure.INTERNAL: 500,
}


def status_code_for(status: OperationStatus) -> int:
    return _STATUS_CODES.get(status, 400)


def result_response(result: OperationResult) -> JSONResponse:
    """Render an OperationResult as {"ok", "message", "data" | "error", "errors"}."""
    if result.success:
        body: dict[str, Any] = {"ok": True, "message": result.message}
        if result.data is not None:
            body["data"] = result.data
        return JSONResponse(body)
    body = {"ok": False, "error": result.status.value, "message": result.message}
    if result.errors:
        body["errors"] = list(result.errors)
    return JSONResponse(body, status_code=status_code_for(result.status))


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse({"ok": False, "error": error, "message": message}, status_code=status_code)


# -------------------------- principal --------------------------
def get_principal(request: Request) -> Principal | None:
    return _resolver.current_principal(request)


def require_principal(principal: Principal | None = Depends(get_principal)) -> Principal:
    if principal is None or not principal.is_authenticated:
        raise HTTPException(401, "Authentication required.")
    return principal


# -------------------------- gates --------------------------
def bound_values(request: Request) -> BoundValues:
    """Values the matched endpoint binds: its declared query parameters and the path parameters."""
    route = request.scope.get("route")
    dependant = getattr(route, "dependant", None)
    declared: set[str] = set()
    if dependant is not None:
        declared = {param.alias for param in get_flat_dependant(dependant).query_params}
    arguments = {name: request.query_params[name] for name in declared if name in request.query_params}
    return BoundValues(arguments=arguments, route=dict(request.path_params))


def require_access(*roles: Role, ownership: OwnershipEvaluator | None = None):
    """
    Dependency factory: the role gate runs first, then the optional ownership gate.

    With no roles every authenticated principal passes the role gate. The
    ownership gate reads the resource key from the query parameters the
    endpoint declares first, then from path parameters. Undeclared query
    parameters are ignored.
    """
    allowed = frozenset(roles)

    def dependency(request: Request, principal: Principal = Depends(require_principal)) -> Principal:
        if allowed and principal.role not in allowed:
            raise HTTPException(403, "You are not authorized to perform this operation.")
        if ownership is not None:
            context = bound_values(request)
            decision = ownership.evaluate(principal, context)
            if not decision.allowed:
                raise HTTPException(_AUTH_FAILURE_CODES.get(decision.failure, 403), decision.reason)
        return principal

    return dependency


def require_roles(*roles: Role):
    return require_access(*roles)
