from __future__ import annotations

from types import SimpleNamespace

import pytest

from evhub.domain.owners import normalize_nic
from evhub.domain.roles import Principal, Role
from evhub.services.ownership import AuthFailure, BoundValues, OwnershipEvaluator


class FakeOwners:
    """In-memory owner lookup that counts calls."""

    def __init__(self, owners=None, fail=False):
        self.owners = {o.nic: o for o in (owners or [])}
        self.fail = fail
        self.calls = 0

    def get_ev_owner_by_nic(self, nic):
        self.calls += 1
        if self.fail:
            raise RuntimeError("store unavailable")
        return self.owners.get(nic)

    def get_ev_owner_by_user_id(self, user_id):
        self.calls += 1
        if self.fail:
            raise RuntimeError("store unavailable")
        return next((o for o in self.owners.values() if o.user_id == user_id), None)


def _owners():
    return FakeOwners(
        [
            SimpleNamespace(nic="NIC1", user_id="U1"),
            SimpleNamespace(nic="NIC2", user_id="U2"),
        ]
    )


def test_owner_cannot_reach_another_owners_nic():
    evaluator = OwnershipEvaluator.by_nic("nic", repository=_owners())
    decision = evaluator.evaluate(Principal("U1", Role.EV_OWNER), BoundValues(route={"nic": "NIC2"}))
    assert not decision.allowed
    assert decision.failure is AuthFailure.NOT_AUTHORIZED


def test_owner_reaches_own_nic():
    owners = _owners()
    evaluator = OwnershipEvaluator.by_nic("nic", repository=owners)
    decision = evaluator.evaluate(Principal("U1", Role.EV_OWNER), BoundValues(route={"nic": "NIC1"}))
    assert decision.allowed
    assert owners.calls == 1


def test_unknown_nic_is_denied():
    evaluator = OwnershipEvaluator.by_nic(repository=_owners())
    decision = evaluator.evaluate(Principal("U1", Role.EV_OWNER), BoundValues(route={"nic": "NOPE"}))
    assert decision.failure is AuthFailure.NOT_AUTHORIZED


@pytest.mark.parametrize("role", [Role.ADMIN, Role.STATION_USER])
def test_full_access_roles_skip_the_lookup(role):
    owners = _owners()
    evaluator = OwnershipEvaluator.by_nic(repository=owners)
    decision = evaluator.evaluate(Principal("A1", role), BoundValues(route={"nic": "NIC2"}))
    assert decision.allowed
    assert owners.calls == 0


def test_other_roles_are_refused():
    evaluator = OwnershipEvaluator.by_nic(repository=_owners())
    decision = evaluator.evaluate(Principal("X1", Role.parse("Auditor")), BoundValues(route={"nic": "NIC1"}))
    assert decision.failure is AuthFailure.NOT_AUTHORIZED
    assert "not authorized" in decision.reason


def test_missing_principal_is_unauthenticated():
    evaluator = OwnershipEvaluator.bare(repository=_owners())
    assert evaluator.evaluate(None).failure is AuthFailure.UNAUTHENTICATED
    assert evaluator.evaluate(Principal("", Role.ADMIN)).failure is AuthFailure.UNAUTHENTICATED


def test_nic_key_without_value_falls_back_to_owner_record():
    evaluator = OwnershipEvaluator.by_nic(repository=_owners())
    assert evaluator.evaluate(Principal("U2", Role.EV_OWNER), BoundValues()).allowed
    assert not evaluator.evaluate(Principal("U9", Role.EV_OWNER), BoundValues()).allowed


def test_user_id_key_compares_without_lookup():
    owners = _owners()
    evaluator = OwnershipEvaluator.by_user_id("userId", repository=owners)
    assert evaluator.evaluate(Principal("U1", Role.EV_OWNER), BoundValues(route={"userId": "U1"})).allowed
    assert not evaluator.evaluate(Principal("U1", Role.EV_OWNER), BoundValues(route={"userId": "U2"})).allowed
    assert owners.calls == 0


def test_bare_evaluator_requires_an_owner_record():
    evaluator = OwnershipEvaluator.bare(repository=_owners())
    assert evaluator.evaluate(Principal("U1", Role.EV_OWNER)).allowed
    assert not evaluator.evaluate(Principal("U3", Role.EV_OWNER)).allowed


def test_lookup_failure_becomes_internal():
    evaluator = OwnershipEvaluator.by_nic(repository=FakeOwners(fail=True))
    decision = evaluator.evaluate(Principal("U1", Role.EV_OWNER), BoundValues(route={"nic": "NIC1"}))
    assert decision.failure is AuthFailure.INTERNAL
    assert decision.reason == "Error validating account ownership."


def test_both_keys_are_rejected():
    with pytest.raises(ValueError):
        OwnershipEvaluator(nic_key="nic", user_id_key="userId", repository=_owners())


def test_arguments_take_precedence_over_route():
    context = BoundValues(arguments={"nic": "NIC1"}, route={"nic": "NIC2"})
    assert context.lookup("nic") == "NIC1"
    assert BoundValues(route={"nic": "NIC2"}).lookup("nic") == "NIC2"
    assert BoundValues(arguments={"n": 5}).lookup("n") == "5"
    assert BoundValues().lookup("nic") is None

    evaluator = OwnershipEvaluator.by_nic(repository=_owners())
    assert evaluator.evaluate(Principal("U1", Role.EV_OWNER), context).allowed


def test_role_parse_is_closed():
    assert Role.parse("admin") is Role.ADMIN
    assert Role.parse("StationUser") is Role.STATION_USER
    assert Role.parse("EVOwner") is Role.EV_OWNER
    assert Role.parse(None) is Role.OTHER


def test_nic_normalization():
    assert normalize_nic("  199012345678v ") == "199012345678V"
    assert normalize_nic("   ") is None
    assert normalize_nic(None) is None


def test_owner_reaches_own_nic_in_any_case():
    owners = _owners()
    evaluator = OwnershipEvaluator.by_nic("nic", repository=owners)
    assert evaluator.evaluate(Principal("U1", Role.EV_OWNER), BoundValues(route={"nic": " nic1 "})).allowed
    assert not evaluator.evaluate(Principal("U1", Role.EV_OWNER), BoundValues(route={"nic": "nic2"})).allowed


def test_lowercase_nic_matches_stored_owner(repo):
    from evhub.services.ev_owner_service import EVOwnerRegistration, EVOwnerService

    registered = EVOwnerService(repo).register(
        EVOwnerRegistration(
            username="kamal",
            email="kamal@example.com",
            password="password123",
            nic="199012345678v",
            phone="0771234567",
        )
    )
    assert registered.data["nic"] == "199012345678V"

    evaluator = OwnershipEvaluator.by_nic(repository=repo)
    principal = Principal(registered.data["user_id"], Role.EV_OWNER)
    assert evaluator.evaluate(principal, BoundValues(route={"nic": "199012345678v"})).allowed
