from sqlalchemy.orm import Session

from biva.core.security import create_access_token
from biva.repositories.user import get_user_by_email
from conftest import auth_headers


# ============================================================================
# LOGIN TESTS
# ============================================================================


def test_login_success(client, db: Session, admin_user: dict):
    """Successful login returns an access token and user info with roles."""
    response = client.post(
        "/api/v1/auth/login",
        data={"username": admin_user["email"], "password": admin_user["password"]},
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == admin_user["email"]
    assert [role["name"] for role in data["user"]["roles"]] == ["admin"]


def test_login_invalid_email(client, db: Session):
    response = client.post(
        "/api/v1/auth/login",
        data={"username": "nonexistent@example.com", "password": "Password123!"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect email or password"
    assert response.json()["code"] == "UNAUTHORIZED"


def test_login_wrong_password(client, db: Session, admin_user: dict):
    response = client.post(
        "/api/v1/auth/login",
        data={"username": admin_user["email"], "password": "WrongPassword123!"},
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect email or password"


def test_login_token_works_for_me(client, db: Session, owner_user: dict):
    login = client.post(
        "/api/v1/auth/login",
        data={"username": owner_user["email"], "password": owner_user["password"]},
    )
    assert login.status_code == 200

    response = client.get("/api/v1/auth/me", headers=auth_headers(login.json()["access_token"]))
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == owner_user["id"]
    assert data["phone"] == "+244912345678"
    assert data["id_document"] == "123"
    assert "password_hash" not in data


# ============================================================================
# REGISTRATION TESTS
# ============================================================================


def test_register_defaults_to_client_role(client, db: Session):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "novo@example.com",
            "full_name": "Novo Utilizador",
            "password": "NovoPass123!",
            "phone": "923 111 222",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "novo@example.com"
    assert [role["name"] for role in data["roles"]] == ["client"]
    assert data["phone"] == "923111222"  # punctuation stripped


def test_register_client_and_owner(client, db: Session):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "ambos@example.com",
            "full_name": "Ambos Papéis",
            "password": "AmbosPass123!",
            "roles": ["client", "owner"],
        },
    )
    assert response.status_code == 201
    assert {role["name"] for role in response.json()["roles"]} == {"client", "owner"}

    user = get_user_by_email(db, "ambos@example.com")
    assert user.role_names == {"client", "owner"}


def test_register_cannot_pick_admin_role(client, db: Session):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "sneaky@example.com",
            "full_name": "Sneaky",
            "password": "SneakyPass123!",
            "roles": ["admin"],
        },
    )
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"
    assert get_user_by_email(db, "sneaky@example.com") is None


def test_register_duplicate_email(client, db: Session, client_user: dict):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": client_user["email"],
            "full_name": "Duplicate",
            "password": "DuplicatePass123!",
        },
    )
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESOURCE"


def test_register_duplicate_phone_ignores_punctuation(
    client, db: Session, client_user: dict
):
    """Phones are compared after stripping punctuation only."""
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "other@example.com",
            "full_name": "Other",
            "password": "OtherPass123!",
            "phone": "923-456-789",
        },
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Phone already registered"


def test_register_weak_password(client, db: Session):
    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "weak@example.com",
            "full_name": "Weak",
            "password": "weakpassword",
        },
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert "uppercase" in response.json()["detail"]


def test_register_invalid_email(client, db: Session):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "not-an-email", "full_name": "X", "password": "ValidPass123!"},
    )
    assert response.status_code == 422


# ============================================================================
# TOKEN TESTS
# ============================================================================


def test_me_without_token(client, db: Session):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401


def test_me_with_garbage_token(client, db: Session):
    response = client.get("/api/v1/auth/me", headers=auth_headers("not-a-jwt"))
    assert response.status_code == 401


def test_me_with_token_for_missing_user(client, db: Session):
    token = create_access_token(data={"sub": 99999})
    response = client.get("/api/v1/auth/me", headers=auth_headers(token))
    assert response.status_code == 401
    assert response.json()["detail"] == "User not found"
