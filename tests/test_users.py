from sqlalchemy.orm import Session

from biva.repositories.user import get_user_by_id
from conftest import auth_headers


# ============================================================================
# ADMIN USER MANAGEMENT
# ============================================================================


def test_admin_creates_broker(client, db: Session, admin_token: str):
    response = client.post(
        "/api/v1/users",
        json={
            "email": "broker@example.com",
            "full_name": "Novo Mediador",
            "password": "BrokerPass123!",
            "roles": ["broker"],
        },
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 201
    assert [role["name"] for role in response.json()["roles"]] == ["broker"]


def test_non_admin_cannot_create_users(client, db: Session, client_user: dict):
    response = client.post(
        "/api/v1/users",
        json={"email": "x@example.com", "full_name": "X", "password": "XPassword123!"},
        headers=auth_headers(client_user["token"]),
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Not enough permissions"


def test_admin_lists_users_with_name_filter(
    client, db: Session, admin_token: str, client_user: dict, owner_user: dict
):
    response = client.get("/api/v1/users?name=bruno", headers=auth_headers(admin_token))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == client_user["id"]


def test_list_users_pagination(client, db: Session, admin_token: str, client_user, owner_user):
    response = client.get("/api/v1/users?page=1&page_size=2", headers=auth_headers(admin_token))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert len(data["items"]) == 2
    assert data["has_next"] is True
    assert data["page_size"] == 2


def test_get_self(client, db: Session, client_user: dict):
    response = client.get(f"/api/v1/users/{client_user['id']}", headers=auth_headers(client_user["token"]))
    assert response.status_code == 200
    assert response.json()["email"] == client_user["email"]


def test_get_other_user_forbidden(client, db: Session, client_user: dict, owner_user: dict):
    response = client.get(f"/api/v1/users/{owner_user['id']}", headers=auth_headers(client_user["token"]))
    assert response.status_code == 403
    assert response.json()["detail"] == "You can only access your own user information"


def test_admin_gets_any_user(client, db: Session, admin_token: str, owner_user: dict):
    response = client.get(f"/api/v1/users/{owner_user['id']}", headers=auth_headers(admin_token))
    assert response.status_code == 200


def test_get_missing_user(client, db: Session, admin_token: str):
    response = client.get("/api/v1/users/99999", headers=auth_headers(admin_token))
    assert response.status_code == 404


# ============================================================================
# PROFILE
# ============================================================================


def test_update_profile_sets_id_document_once(client, db: Session, client_user: dict):
    headers = auth_headers(client_user["token"])

    response = client.put("/api/v1/users/me", json={"id_document": " 004567890la041 "}, headers=headers)
    assert response.status_code == 200
    assert response.json()["id_document"] == "004567890LA041"

    # Same number again, in a different spelling, is accepted
    response = client.put("/api/v1/users/me", json={"id_document": "004567890La041"}, headers=headers)
    assert response.status_code == 200

    response = client.put("/api/v1/users/me", json={"id_document": "999999999LA999"}, headers=headers)
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert get_user_by_id(db, client_user["id"]).id_document == "004567890LA041"


def test_update_profile_fields(client, db: Session, client_user: dict):
    response = client.put(
        "/api/v1/users/me",
        json={"full_name": "Bruno Actualizado", "address": "Rua 21 de Janeiro, Luanda", "phone": "(923) 000-111"},
        headers=auth_headers(client_user["token"]),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["full_name"] == "Bruno Actualizado"
    assert data["address"] == "Rua 21 de Janeiro, Luanda"
    assert data["phone"] == "923000111"


def test_update_profile_phone_taken(client, db: Session, client_user: dict, other_client_user: dict):
    response = client.put(
        "/api/v1/users/me",
        json={"phone": other_client_user["phone"]},
        headers=auth_headers(client_user["token"]),
    )
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESOURCE"


def test_update_profile_email_taken(client, db: Session, client_user: dict, owner_user: dict):
    response = client.put(
        "/api/v1/users/me",
        json={"email": owner_user["email"]},
        headers=auth_headers(client_user["token"]),
    )
    assert response.status_code == 409


# ============================================================================
# ROLES
# ============================================================================


def test_admin_sets_roles(client, db: Session, admin_token: str, client_user: dict):
    response = client.put(
        f"/api/v1/users/{client_user['id']}/roles",
        json={"roles": ["client", "owner"]},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 200
    assert {role["name"] for role in response.json()["roles"]} == {"client", "owner"}
    assert get_user_by_id(db, client_user["id"]).role_names == {"client", "owner"}


def test_admin_cannot_change_own_roles(client, db: Session, admin_user: dict):
    response = client.put(
        f"/api/v1/users/{admin_user['id']}/roles",
        json={"roles": ["client"]},
        headers=auth_headers(admin_user["token"]),
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "You cannot change your own roles"


def test_non_admin_cannot_set_roles(client, db: Session, broker_user: dict, client_user: dict):
    response = client.put(
        f"/api/v1/users/{client_user['id']}/roles",
        json={"roles": ["admin"]},
        headers=auth_headers(broker_user["token"]),
    )
    assert response.status_code == 403


def test_set_roles_rejects_empty_list(client, db: Session, admin_token: str, client_user: dict):
    response = client.put(
        f"/api/v1/users/{client_user['id']}/roles",
        json={"roles": []},
        headers=auth_headers(admin_token),
    )
    assert response.status_code == 422
