from __future__ import annotations

from fastapi import APIRouter, Depends

from evhub.domain.roles import Principal, Role
from evhub.routers.deps import require_access, require_roles, result_response
from evhub.services.ev_owner_service import EVOwnerProfileUpdate, EVOwnerRegistration, EVOwnerService
from evhub.services.ownership import OwnershipEvaluator

router = APIRouter(prefix="/api/evowners", tags=["ev-owners"])
ev_owner_service = EVOwnerService()

own_account = require_access(Role.EV_OWNER, ownership=OwnershipEvaluator.bare())
admin_only = require_roles(Role.ADMIN)


@router.post("/register")
def register(payload: EVOwnerRegistration):
    return result_response(ev_owner_service.register(payload))


@router.put("/update")
def update_profile(payload: EVOwnerProfileUpdate, principal: Principal = Depends(own_account)):
    return result_response(ev_owner_service.update_profile(principal.id, payload))


@router.put(
    "/reactivate/{nic}",
    dependencies=[Depends(require_access(Role.ADMIN, ownership=OwnershipEvaluator.by_nic("nic")))],
)
def reactivate_account(nic: str):
    return result_response(ev_owner_service.reactivate_account(nic))


@router.put("/deactivate")
def deactivate_account(principal: Principal = Depends(own_account)):
    return result_response(ev_owner_service.deactivate_account(principal.id))


@router.get(
    "/profile/{nic}",
    dependencies=[
        Depends(require_access(Role.ADMIN, Role.STATION_USER, ownership=OwnershipEvaluator.by_nic("nic")))
    ],
)
def get_profile_by_nic(nic: str):
    return result_response(ev_owner_service.get_profile_by_nic(nic))


@router.get("/profile")
def get_profile(principal: Principal = Depends(own_account)):
    return result_response(ev_owner_service.get_profile(principal.id))


@router.get("/all", dependencies=[Depends(admin_only)])
def list_all_owners():
    return result_response(ev_owner_service.list_ev_owners())


@router.get("/deactivated", dependencies=[Depends(admin_only)])
def list_deactivated_owners():
    return result_response(ev_owner_service.list_ev_owners(is_active=False))


@router.delete("/delete/{nic}", dependencies=[Depends(admin_only)])
def delete_owner(nic: str):
    return result_response(ev_owner_service.delete_ev_owner(nic))


@router.post("/admin/create", dependencies=[Depends(admin_only)])
def admin_create_owner(payload: EVOwnerRegistration):
    return result_response(ev_owner_service.register(payload))


@router.put("/admin/update/{nic}", dependencies=[Depends(admin_only)])
def admin_update_owner(nic: str, payload: EVOwnerProfileUpdate):
    return result_response(ev_owner_service.admin_update_by_nic(nic, payload))


@router.put("/admin/deactivate/{nic}", dependencies=[Depends(admin_only)])
def admin_deactivate_owner(nic: str):
    return result_response(ev_owner_service.deactivate_by_nic(nic))
