"""Policy administration HTTP API."""

import pytest
from httpx import AsyncClient

from gatepass.domain.entities.policy import UnitPolicy

BASE = "/api/v1/projects/proj-1"
AS_ADMIN = {"X-User-ID": "admin-1"}
AS_U1 = {"X-User-ID": "u1"}


@pytest.fixture(autouse=True)
def project_admin(harness) -> None:
    harness.users.add("admin-1", unit="", role="admin")


async def test_project_policy_update(client: AsyncClient, harness) -> None:
    response = await client.put(
        f"{BASE}/policy",
        json={"block_family_members": True, "monthly_limit": 12},
        headers=AS_ADMIN,
    )
    assert response.status_code == 204
    policy = harness.policies.projects["proj-1"]
    assert policy.block_family_members is True
    assert policy.monthly_limit == 12
    assert policy.block_all_users is False


async def test_project_policy_rejects_zero_validity(client: AsyncClient) -> None:
    response = await client.put(
        f"{BASE}/policy", json={"validity_duration_hours": 0}, headers=AS_ADMIN
    )
    assert response.status_code == 422


async def test_unit_block_with_reason(client: AsyncClient, harness) -> None:
    response = await client.put(
        f"{BASE}/units/A-101/policy",
        json={"blocked": True, "blocked_reason": "unpaid dues"},
        headers=AS_ADMIN,
    )
    assert response.status_code == 204
    unit = harness.policies.units[("proj-1", "A-101")]
    assert unit.blocked is True
    assert unit.blocked_reason == "unpaid dues"


async def test_unit_reason_without_block_rejected(client: AsyncClient) -> None:
    response = await client.put(
        f"{BASE}/units/A-101/policy",
        json={"blocked_reason": "why"},
        headers=AS_ADMIN,
    )
    assert response.status_code == 422


async def test_explicit_null_clears_unit_limit(client: AsyncClient, harness) -> None:
    await client.put(f"{BASE}/units/A-101/policy", json={"monthly_limit": 2}, headers=AS_ADMIN)
    assert harness.policies.units[("proj-1", "A-101")].monthly_limit == 2

    response = await client.put(
        f"{BASE}/units/A-101/policy", json={"monthly_limit": None}, headers=AS_ADMIN
    )
    assert response.status_code == 204
    assert harness.policies.units[("proj-1", "A-101")].monthly_limit is None


async def test_omitted_limit_is_unchanged(client: AsyncClient, harness) -> None:
    await client.put(f"{BASE}/units/A-101/policy", json={"monthly_limit": 2}, headers=AS_ADMIN)
    await client.put(f"{BASE}/units/A-101/policy", json={"blocked": False}, headers=AS_ADMIN)
    assert harness.policies.units[("proj-1", "A-101")].monthly_limit == 2


async def test_reconcile_unit_usage(client: AsyncClient, harness) -> None:
    harness.make_pass("GP-1")
    harness.make_pass("GP-2", user_id="u2")
    response = await client.post(f"{BASE}/units/A-101/usage/reconcile", headers=AS_ADMIN)
    assert response.status_code == 200
    assert response.json() == {"unit": "A-101", "used_this_month": 2}
    assert harness.policies.units[("proj-1", "A-101")].used_this_month == 2


async def test_resident_cannot_unblock_own_unit(client: AsyncClient, harness) -> None:
    harness.policies.units[("proj-1", "A-101")] = UnitPolicy(unit="A-101", blocked=True)

    response = await client.put(
        f"{BASE}/units/A-101/policy",
        json={"blocked": False, "monthly_limit": 1000},
        headers=AS_U1,
    )

    assert response.status_code == 403
    assert response.json()["error"] == "FORBIDDEN"
    assert response.json()["details"]["reason"] == "admin_required"
    unit = harness.policies.units[("proj-1", "A-101")]
    assert unit.blocked is True
    assert unit.monthly_limit is None
    eligibility = await client.get(f"{BASE}/eligibility", headers=AS_U1)
    assert eligibility.json()["reason_code"] == "unit_blocked"


async def test_resident_cannot_change_project_policy(client: AsyncClient, harness) -> None:
    response = await client.put(f"{BASE}/policy", json={"monthly_limit": 500}, headers=AS_U1)
    assert response.status_code == 403
    assert "proj-1" not in harness.policies.projects


async def test_resident_cannot_reconcile(client: AsyncClient) -> None:
    response = await client.post(f"{BASE}/units/A-101/usage/reconcile", headers=AS_U1)
    assert response.status_code == 403


async def test_policy_change_requires_user_header(client: AsyncClient) -> None:
    response = await client.put(f"{BASE}/policy", json={"monthly_limit": 5})
    assert response.status_code == 401
