"""
Integration tests for admin user management, stats and notifications.

Tests token revocation on deactivation, self-protection rules and the
notification inbox endpoints.
"""

import pytest

from carmarket.app.models.enums import UserRole


@pytest.mark.asyncio
async def test_deactivated_user_loses_access_immediately(client, admin_headers, create_user, headers_for):
    """A deactivated user gets 401 right away, not after token expiry."""
    user = await create_user()
    user_headers = headers_for(user)
    assert (await client.get("/v1/auth/me", headers=user_headers)).status_code == 200

    response = await client.put(f"/v1/admin/users/{user.id}", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await client.get("/v1/auth/me", headers=user_headers)
    assert response.status_code == 401

    response = await client.get("/v1/admin/audit-logs", params={"user_id": user.id}, headers=admin_headers)
    assert [log["action"] for log in response.json()["logs"]] == ["USER_DEACTIVATED"]


@pytest.mark.asyncio
async def test_reactivation_restores_access(client, admin_headers, create_user, headers_for):
    user = await create_user()
    await client.put(f"/v1/admin/users/{user.id}", json={"is_active": False}, headers=admin_headers)

    await client.put(f"/v1/admin/users/{user.id}", json={"is_active": True}, headers=admin_headers)

    response = await client.get("/v1/auth/me", headers=headers_for(user))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_cannot_deactivate_or_delete_self(client, admin, admin_headers):
    response = await client.put(f"/v1/admin/users/{admin.id}", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.delete(f"/v1/admin/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_changes_role(client, admin_headers, create_user):
    user = await create_user()

    response = await client.put(f"/v1/admin/users/{user.id}", json={"role": "dealer"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["role"] == "dealer"


@pytest.mark.asyncio
async def test_delete_user(client, admin_headers, create_user):
    user = await create_user()

    response = await client.delete(f"/v1/admin/users/{user.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["action"] == "USER_DELETED"

    response = await client.get(f"/v1/admin/users/{user.id}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_users_filters(client, admin_headers, create_user):
    await create_user(UserRole.DEALER, first_name="Dana")
    await create_user(UserRole.USER, first_name="Uma")

    response = await client.get("/v1/admin/users", params={"role": "dealer"}, headers=admin_headers)
    data = response.json()
    assert data["total"] == 1
    assert data["users"][0]["first_name"] == "Dana"

    response = await client.get("/v1/admin/users", params={"search": "uma"}, headers=admin_headers)
    assert response.json()["total"] == 1


@pytest.mark.asyncio
async def test_admin_routes_require_admin(client, owner_headers):
    for path in ("/v1/admin/users", "/v1/admin/stats", "/v1/admin/cars", "/v1/admin/audit-logs"):
        response = await client.get(path, headers=owner_headers)
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_stats(client, owner_headers, admin_headers, car_payload):
    await client.post("/v1/cars", json=car_payload, headers=owner_headers)

    response = await client.get("/v1/admin/stats", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["users"]["total"] == 2
    assert data["users"]["admins"] == 1
    assert data["cars"]["pending"] == 1
    assert data["pending_approval_notifications"] == 1


# --- Notifications inbox ---

@pytest.mark.asyncio
async def test_mark_read_and_unread_count(client, owner_headers, admin_headers, car_payload):
    await client.post("/v1/cars", json=car_payload, headers=owner_headers)

    response = await client.get("/v1/notifications/unread-count", headers=admin_headers)
    assert response.json() == {"count": 1}

    notification_id = (await client.get("/v1/notifications", headers=admin_headers)).json()["notifications"][0]["id"]

    # Someone else's notification is not found
    response = await client.patch(f"/v1/notifications/{notification_id}/read", headers=owner_headers)
    assert response.status_code == 404

    response = await client.patch(f"/v1/notifications/{notification_id}/read", headers=admin_headers)
    assert response.status_code == 200

    response = await client.get("/v1/notifications/unread-count", headers=admin_headers)
    assert response.json() == {"count": 0}

    # Reading an approval request does not retire it
    response = await client.get("/v1/notifications/admin/pending", headers=admin_headers)
    assert response.json()["count"] == 1


@pytest.mark.asyncio
async def test_mark_all_read(client, owner_headers, admin_headers, car_payload):
    for title in ("2020 Civic", "2019 Accord"):
        await client.post("/v1/cars", json={**car_payload, "title": title}, headers=owner_headers)

    response = await client.patch("/v1/notifications/read-all", headers=admin_headers)
    assert response.json() == {"status": "success", "count": 2}

    response = await client.get("/v1/notifications", params={"unread_only": True}, headers=admin_headers)
    assert response.json()["count"] == 0


@pytest.mark.asyncio
async def test_pending_approvals_admin_only(client, owner_headers):
    response = await client.get("/v1/notifications/admin/pending", headers=owner_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_health_and_correlation_id(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})

    assert response.status_code == 200
    assert response.json()["redis"] == "connected"
    assert response.headers["X-Correlation-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers
