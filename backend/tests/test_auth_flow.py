import pytest
from httpx import AsyncClient

STUDENT_PASSWORD = "password123"


@pytest.mark.asyncio
async def test_register_verify_login_logout(client: AsyncClient, program, mock_email):
    """A new student registers, verifies the emailed link, logs in and out"""
    registration = {
        "nim": "211524010",
        "name": "Andi Pratama",
        "email": "andi.pratama@polban.ac.id",
        "password": "rahasia123",
        "password_confirmation": "rahasia123",
    }

    response = await client.post("/api/v1/auth/register", json=registration)
    assert response.status_code == 201
    assert response.json()["student"]["program_code"] == "1524"

    # Unverified students cannot log in yet
    response = await client.post(
        "/api/v1/auth/login",
        json={"nim": registration["nim"], "password": registration["password"]}
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "EMAIL_NOT_VERIFIED"

    token = mock_email["verification"].call_args.kwargs["verification_token"]
    response = await client.get("/api/v1/auth/verify-email", params={"token": token})
    assert response.status_code == 200
    assert response.json()["already_verified"] is False

    response = await client.post(
        "/api/v1/auth/login",
        json={"nim": registration["nim"], "password": registration["password"]}
    )
    assert response.status_code == 200
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

    response = await client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 200
    assert response.json()["nim"] == registration["nim"]

    response = await client.post("/api/v1/auth/logout", headers=headers)
    assert response.status_code == 200

    # The revoked token no longer authenticates
    response = await client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_forgot_password_flow(client: AsyncClient, test_student, mock_email):
    """OTP by email, exchange for a reset token, set a new password"""
    email = "budi.santoso@polban.ac.id"

    response = await client.post("/api/v1/auth/forgot-password", json={"email": email})
    assert response.status_code == 200
    otp = mock_email["otp"].call_args.args[2]

    response = await client.post("/api/v1/auth/verify-otp", json={"email": email, "otp": otp})
    assert response.status_code == 200
    reset_token = response.json()["reset_token"]

    response = await client.post(
        "/api/v1/auth/reset-password",
        json={
            "token": reset_token,
            "email": email,
            "password": "newpassword456",
            "password_confirmation": "newpassword456",
        }
    )
    assert response.status_code == 200
    mock_email["password_changed"].assert_awaited_once()

    response = await client.post(
        "/api/v1/auth/login",
        json={"nim": "211524001", "password": STUDENT_PASSWORD}
    )
    assert response.status_code == 401

    response = await client.post(
        "/api/v1/auth/login",
        json={"nim": "211524001", "password": "newpassword456"}
    )
    assert response.status_code == 200

    # The reset token and the OTP are single use
    response = await client.post(
        "/api/v1/auth/reset-password",
        json={
            "token": reset_token,
            "email": email,
            "password": "another789",
            "password_confirmation": "another789",
        }
    )
    assert response.status_code == 400
    response = await client.post("/api/v1/auth/verify-otp", json={"email": email, "otp": otp})
    assert response.status_code == 404
