"""Guest pass HTTP API: status mapping, error envelope and token hygiene."""

from datetime import timedelta

from httpx import AsyncClient

from gatepass.domain.entities.policy import ProjectPolicy, UnitPolicy

BASE = "/api/v1/projects/proj-1"
AS_U1 = {"X-User-ID": "u1"}


async def test_eligibility_ok(client: AsyncClient, harness) -> None:
    response = await client.get(f"{BASE}/eligibility", headers=AS_U1)
    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is True
    assert data["reason_code"] == "eligible"
    assert data["remaining_quota"] == 30


async def test_blocked_eligibility_is_200_with_reason(client: AsyncClient, harness) -> None:
    harness.policies.projects["proj-1"] = ProjectPolicy(block_all_users=True)
    response = await client.get(f"{BASE}/eligibility", headers=AS_U1)
    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is False
    assert data["reason_code"] == "project_blocked"
    assert data["used_this_month"] is None


async def test_missing_user_header_is_401(client: AsyncClient) -> None:
    response = await client.get(f"{BASE}/eligibility")
    assert response.status_code == 401
    assert response.json()["error"] == "HTTP_ERROR"


async def test_unknown_user_is_404(client: AsyncClient) -> None:
    response = await client.get(f"{BASE}/eligibility", headers={"X-User-ID": "ghost"})
    assert response.status_code == 404
    assert response.json()["error"] == "USER_NOT_FOUND"


async def test_non_member_is_403(client: AsyncClient, harness) -> None:
    harness.users.add("outsider", project_id="elsewhere")
    response = await client.get(f"{BASE}/status", headers={"X-User-ID": "outsider"})
    assert response.status_code == 403
    assert response.json()["details"]["reason"] == "not_in_project"


async def test_issue_returns_201_without_token(client: AsyncClient, harness) -> None:
    response = await client.post(
        f"{BASE}/guest-passes",
        json={"guest_name": "Alice", "purpose": "Dinner"},
        headers=AS_U1,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["pass_id"].startswith("GP-")
    assert data["credential_locator"].startswith("mem://guestPasses/proj-1/")
    assert data["guest_pass"]["guest_name"] == "Alice"
    assert "verification_token" not in data["guest_pass"]
    assert "verification_token" not in response.text


async def test_issue_denied_is_403_with_reason(client: AsyncClient, harness) -> None:
    harness.policies.units[("proj-1", "A-101")] = UnitPolicy(unit="A-101", blocked=True)
    response = await client.post(
        f"{BASE}/guest-passes",
        json={"guest_name": "Alice", "purpose": "Dinner"},
        headers=AS_U1,
    )
    assert response.status_code == 403
    body = response.json()
    assert body["error"] == "ELIGIBILITY_DENIED"
    assert body["details"]["reason"] == "unit_blocked"
    assert body["message"] == "Guest pass generation is blocked for your unit"


async def test_issue_blank_guest_name_is_422(client: AsyncClient) -> None:
    response = await client.post(
        f"{BASE}/guest-passes",
        json={"guest_name": "   ", "purpose": "Dinner"},
        headers=AS_U1,
    )
    assert response.status_code == 422


async def test_get_list_and_mark_sent(client: AsyncClient, harness) -> None:
    harness.make_pass("GP-1")
    harness.make_pass("GP-2", created_at=harness.clock.now() - timedelta(hours=1))

    listed = await client.get(f"{BASE}/guest-passes", headers=AS_U1)
    assert listed.status_code == 200
    assert [p["id"] for p in listed.json()["items"]] == ["GP-1", "GP-2"]

    one = await client.get(f"{BASE}/guest-passes/GP-1", headers=AS_U1)
    assert one.status_code == 200
    assert one.json()["sent_status"] is False

    sent = await client.post(f"{BASE}/guest-passes/GP-1/sent", headers=AS_U1)
    assert sent.status_code == 200
    assert sent.json() == {"pass_id": "GP-1", "sent": True}
    assert harness.passes.records[("proj-1", "GP-1")].sent_status is True


async def test_unknown_pass_is_404(client: AsyncClient) -> None:
    response = await client.get(f"{BASE}/guest-passes/GP-NOPE", headers=AS_U1)
    assert response.status_code == 404
    assert response.json()["error"] == "PASS_NOT_FOUND"
    sent = await client.post(f"{BASE}/guest-passes/GP-NOPE/sent", headers=AS_U1)
    assert sent.status_code == 404


class TestRedeem:
    async def test_success_then_already_used(self, client: AsyncClient, harness) -> None:
        gp = harness.make_pass("GP-1")
        url = f"{BASE}/guest-passes/GP-1/redeem"

        first = await client.post(url, json={"verification_token": gp.verification_token})
        second = await client.post(url, json={"verification_token": gp.verification_token})

        assert first.status_code == 200
        assert first.json()["success"] is True
        assert first.json()["reason_code"] == "redeemed"
        assert first.json()["guest_name"] == "Alice"
        assert second.status_code == 409
        assert second.json()["reason_code"] == "already_used"

    async def test_wrong_token_is_403(self, client: AsyncClient, harness) -> None:
        harness.make_pass("GP-1")
        response = await client.post(
            f"{BASE}/guest-passes/GP-1/redeem", json={"verification_token": "nope"}
        )
        assert response.status_code == 403
        assert response.json()["reason_code"] == "invalid_token"

    async def test_empty_token_is_403(self, client: AsyncClient, harness) -> None:
        harness.make_pass("GP-1")
        response = await client.post(
            f"{BASE}/guest-passes/GP-1/redeem", json={"verification_token": ""}
        )
        assert response.status_code == 403
        assert response.json()["reason_code"] == "invalid_token"

    async def test_expired_is_410(self, client: AsyncClient, harness) -> None:
        gp = harness.make_pass("GP-1")
        harness.clock.advance(hours=3)
        response = await client.post(
            f"{BASE}/guest-passes/GP-1/redeem",
            json={"verification_token": gp.verification_token},
        )
        assert response.status_code == 410
        assert response.json()["reason_code"] == "expired"

    async def test_unknown_pass_is_404(self, client: AsyncClient) -> None:
        response = await client.post(
            f"{BASE}/guest-passes/GP-NOPE/redeem", json={"verification_token": "x"}
        )
        assert response.status_code == 404
        assert response.json()["reason_code"] == "not_found"


async def test_user_status(client: AsyncClient, harness) -> None:
    harness.make_pass("GP-1")
    response = await client.get(f"{BASE}/status", headers=AS_U1)
    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "u1"
    assert data["used_this_month"] == 1
    assert data["remaining_quota"] == 29
    assert data["blocked"] is False


async def test_request_id_echoed(client: AsyncClient) -> None:
    response = await client.get(
        f"{BASE}/eligibility", headers={**AS_U1, "X-Request-ID": "trace-1"}
    )
    assert response.headers["X-Request-ID"] == "trace-1"
