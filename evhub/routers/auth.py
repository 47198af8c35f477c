from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from evhub.core.config import get_settings
from evhub.core.rate_limiter import rate_limit_ip
from evhub.domain.roles import Principal
from evhub.repositories.sql_repository import SQLRepository
from evhub.routers.deps import error_response, require_principal
from evhub.services.auth_service import AccountInactiveError, AuthService, InvalidCredentialsError
from evhub.services.session_service import clear_session_cookie, session_token, set_session_cookie

router = APIRouter(prefix="/auth", tags=["auth"])
auth_service = AuthService()
_sql_repo = SQLRepository()


@dataclass
class LoginRequest:
    identifier: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
def login(request: Request, payload: LoginRequest):
    rate_limit_ip(request, "auth:login", limit=get_settings().login_rate_limit)
    try:
        result = auth_service.login(payload.identifier or "", payload.password or "")
    except InvalidCredentialsError as exc:
        return error_response(401, "InvalidCredentials", str(exc))
    except AccountInactiveError as exc:
        return error_response(403, "AccountDeactivated", str(exc))
    response = JSONResponse(
        {
            "ok": True,
            "message": "Logged in successfully.",
            "data": {
                "user_id": result.user_id,
                "username": result.username,
                "role": result.role.value,
                "token": result.session_token,
            },
        }
    )
    set_session_cookie(response, result.session_token)
    return response


@router.post("/logout")
def logout(request: Request):
    auth_service.logout(session_token(request))
    response = JSONResponse({"ok": True, "message": "Logged out."})
    clear_session_cookie(response)
    return response


@router.get("/me")
def me(principal: Principal = Depends(require_principal)):
    user = _sql_repo.get_user(principal.id)
    if not user:
        return error_response(404, "UserNotFound", "User not found.")
    return {
        "ok": True,
        "data": {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "role": principal.role.value,
            "charging_station_id": user.charging_station_id,
        },
    }
