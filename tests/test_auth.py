import pytest
from fastapi.testclient import TestClient
from httpx import Response

from app.core.config import get_settings
from app.main import app
from app.services.security_utils import create_access_token, hash_password, verify_password
from app.services.user_store import create_user_store


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _register(client: TestClient, *, email: str, role: str | None = None) -> Response:
    payload: dict[str, object] = {
        "full_name": "Test User",
        "email": email,
        "password": "password123",
    }
    if role is not None:
        payload["role"] = role
    return client.post("/api/auth/register", json=payload)


def test_register_login_and_me_flow(client: TestClient) -> None:
    register_response = _register(client, email="Patient@Example.com")

    assert register_response.status_code == 200
    register_payload = register_response.json()
    assert register_payload["access_token"]
    assert register_payload["user"]["email"] == "patient@example.com"
    assert register_payload["user"]["role"] == "PATIENT"

    login_response = client.post(
        "/api/auth/login",
        json={"email": "patient@example.com", "password": "password123"},
    )
    assert login_response.status_code == 200
    token = login_response.json()["access_token"]

    me_response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me_response.status_code == 200
    me_payload = me_response.json()
    assert me_payload["email"] == "patient@example.com"
    assert me_payload["role"] == "PATIENT"
    assert me_payload["status"] == "ACTIVE"


def test_register_doctor_role(client: TestClient) -> None:
    response = _register(client, email="doctor@example.com", role="doctor")

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "DOCTOR"


def test_register_rejects_admin_role(client: TestClient) -> None:
    response = _register(client, email="sneaky@example.com", role="ADMIN")

    assert response.status_code == 403


def test_register_rejects_duplicate_email(client: TestClient) -> None:
    assert _register(client, email="twice@example.com").status_code == 200

    response = _register(client, email="TWICE@example.com")

    assert response.status_code == 409


def test_login_fails_with_invalid_credentials(client: TestClient) -> None:
    _register(client, email="patient@example.com")

    response = client.post(
        "/api/auth/login",
        json={"email": "patient@example.com", "password": "wrong-password"},
    )
    assert response.status_code == 401


def test_me_requires_authentication(client: TestClient) -> None:
    response = client.get("/api/auth/me")
    assert response.status_code == 401


def test_me_rejects_garbage_token(client: TestClient) -> None:
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid access token."


def test_me_rejects_expired_token(client: TestClient) -> None:
    user = _register(client, email="patient@example.com").json()["user"]
    settings = get_settings()
    token, _ = create_access_token(
        claims={"sub": user["id"]},
        secret_key=settings.auth_secret_key,
        algorithm=settings.auth_token_algorithm,
        ttl_minutes=-5,
    )

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired."


def test_me_rejects_blocked_user(client: TestClient) -> None:
    payload = _register(client, email="blocked@example.com").json()
    create_user_store(get_settings()).set_user_status(payload["user"]["id"], "blocked")

    response = client.get(
        "/api/auth/me",
        headers={"Authorization": f"Bearer {payload['access_token']}"},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "User account is blocked or rejected."


def test_password_hash_round_trip() -> None:
    stored_hash = hash_password("s3cret")

    assert stored_hash.startswith("pbkdf2_sha256$")
    assert verify_password("s3cret", stored_hash)
    assert not verify_password("other", stored_hash)
    assert not verify_password("s3cret", "md5$abc")


def _admin_token(client: TestClient) -> str:
    response = client.post("/api/auth/login", json={"email": "admin", "password": "admin"})
    assert response.status_code == 200
    return response.json()["access_token"]


def test_startup_creates_default_admin() -> None:
    with TestClient(app) as client:
        response = client.post("/api/auth/login", json={"email": "admin", "password": "admin"})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "ADMIN"
    assert response.json()["user"]["full_name"] == "Administrator"


def test_admin_blocks_user_account() -> None:
    with TestClient(app) as client:
        doctor = _register(client, email="doctor@example.com", role="DOCTOR").json()
        admin_headers = {"Authorization": f"Bearer {_admin_token(client)}"}

        status_response = client.put(
            f"/api/v1/users/{doctor['user']['id']}/status",
            json={"status": "blocked"},
            headers=admin_headers,
        )
        me_response = client.get(
            "/api/auth/me",
            headers={"Authorization": f"Bearer {doctor['access_token']}"},
        )
        missing_response = client.put(
            "/api/users/999/status",
            json={"status": "ACTIVE"},
            headers=admin_headers,
        )

    assert status_response.status_code == 200
    assert status_response.json()["status"] == "BLOCKED"
    assert me_response.status_code == 401
    assert missing_response.status_code == 404
    assert missing_response.json()["detail"] == "User not found."


def test_user_status_update_requires_admin(client: TestClient) -> None:
    patient = _register(client, email="patient@example.com").json()

    response = client.put(
        f"/api/users/{patient['user']['id']}/status",
        json={"status": "BLOCKED"},
        headers={"Authorization": f"Bearer {patient['access_token']}"},
    )

    assert response.status_code == 403
