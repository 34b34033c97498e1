"""
Integration tests for the authentication flow.

Verifies Register -> Login -> Me -> Logout and the profile endpoints.
"""

import pytest

from carmarket.app.models.enums import UserRole

# Password of every user made by the create_user fixture
TEST_PASSWORD = "password123"


REGISTRATION = {
    "email": "Sam.Seller@carmarket.com",
    "password": "password123",
    "first_name": "Sam",
    "last_name": "Seller",
    "phone": "+1 (512) 555-0100",
}


@pytest.mark.asyncio
async def test_admin_registration_blocked(client):
    """ADMIN role cannot be created via API."""
    response = await client.post("/v1/auth/register", json={**REGISTRATION, "role": "admin"})

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_FORBIDDEN"


@pytest.mark.asyncio
async def test_register_login_me(client):
    response = await client.post("/v1/auth/register", json=REGISTRATION)
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "sam.seller@carmarket.com"
    assert data["role"] == "user"
    assert data["full_name"] == "Sam Seller"

    response = await client.post("/v1/auth/login", json={
        "email": "sam.seller@carmarket.com",
        "password": "password123"
    })
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    me = response.json()
    assert me["email"] == "sam.seller@carmarket.com"
    assert me["last_login"] is not None


@pytest.mark.asyncio
async def test_dealer_registration(client):
    response = await client.post("/v1/auth/register", json={
        **REGISTRATION, "role": "dealer", "business_name": "Sam's Autos"
    })

    assert response.status_code == 201
    assert response.json()["role"] == "dealer"


@pytest.mark.asyncio
async def test_duplicate_email_rejected(client):
    await client.post("/v1/auth/register", json=REGISTRATION)

    response = await client.post("/v1/auth/register", json={**REGISTRATION, "email": "sam.seller@CARMARKET.com"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_bad_credentials(client, owner):
    response = await client.post("/v1/auth/login", json={"email": owner.email, "password": "wrong-password"})
    assert response.status_code == 401

    response = await client.post("/v1/auth/login", json={"email": "nobody@carmarket.com", "password": "x"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_cannot_login(client, create_user):
    user = await create_user(is_active=False)

    response = await client.post("/v1/auth/login", json={"email": user.email, "password": TEST_PASSWORD})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_logout_revokes_token(client, owner, mock_redis):
    response = await client.post("/v1/auth/login", json={"email": owner.email, "password": TEST_PASSWORD})
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    response = await client.post("/v1/auth/logout", headers=headers)
    assert response.status_code == 200

    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_token(client):
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_profile_update(client, owner_headers):
    response = await client.put(
        "/v1/users/profile", json={"first_name": "Janet", "phone": "555-0101"}, headers=owner_headers
    )

    assert response.status_code == 200
    assert response.json()["full_name"] == "Janet Doe"
    assert response.json()["phone"] == "555-0101"


@pytest.mark.asyncio
async def test_change_password(client, owner, owner_headers):
    response = await client.put(
        "/v1/users/change-password",
        json={"current_password": "wrong-password", "new_password": "newpass123"},
        headers=owner_headers
    )
    assert response.status_code == 400

    response = await client.put(
        "/v1/users/change-password",
        json={"current_password": TEST_PASSWORD, "new_password": "newpass123"},
        headers=owner_headers
    )
    assert response.status_code == 200

    response = await client.post("/v1/auth/login", json={"email": owner.email, "password": "newpass123"})
    assert response.status_code == 200


DEALER_INFO = {
    "business_name": "Dana's Motors",
    "business_license": "TX-DLR-40213",
    "business_address": {"street": "100 Congress Ave", "city": "Austin", "state": "TX"},
    "website": "https://danas-motors.example.com",
    "description": "Family-run used car dealership since 1998.",
}


@pytest.mark.asyncio
async def test_dealer_info_update(client, create_user, headers_for):
    dealer = await create_user(UserRole.DEALER)

    response = await client.put("/v1/users/dealer-info", json=DEALER_INFO, headers=headers_for(dealer))

    assert response.status_code == 200
    data = response.json()
    assert data["business_name"] == "Dana's Motors"
    assert data["business_license"] == "TX-DLR-40213"
    assert data["business_address"]["city"] == "Austin"
    assert data["website"].startswith("https://danas-motors.example.com")
    assert data["description"] == "Family-run used car dealership since 1998."

    response = await client.get("/v1/users/profile", headers=headers_for(dealer))
    assert response.json()["business_name"] == "Dana's Motors"


@pytest.mark.asyncio
async def test_dealer_info_is_dealer_only(client, owner_headers):
    response = await client.put("/v1/users/dealer-info", json=DEALER_INFO, headers=owner_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_dealer_info_validation(client, create_user, headers_for):
    dealer = await create_user(UserRole.DEALER)

    response = await client.put(
        "/v1/users/dealer-info",
        json={**DEALER_INFO, "website": "not a url", "business_name": "D"},
        headers=headers_for(dealer)
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_account(client, owner, owner_headers):
    email = owner.email

    response = await client.request(
        "DELETE", "/v1/users/account", json={"password": "wrong-password"}, headers=owner_headers
    )
    assert response.status_code == 400

    response = await client.request(
        "DELETE", "/v1/users/account", json={"password": TEST_PASSWORD}, headers=owner_headers
    )
    assert response.status_code == 200

    # Existing tokens stop working immediately
    response = await client.get("/v1/auth/me", headers=owner_headers)
    assert response.status_code == 401

    response = await client.post("/v1/auth/login", json={"email": email, "password": TEST_PASSWORD})
    assert response.status_code == 401

    # The email is free to register again
    response = await client.post("/v1/auth/register", json={**REGISTRATION, "email": email})
    assert response.status_code == 201
