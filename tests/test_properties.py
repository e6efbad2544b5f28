from sqlalchemy.orm import Session

from biva.db.models.property import Property as PropertyModel
from conftest import auth_headers

PROPERTY_PAYLOAD = {
    "title": "Vivenda V4 em Talatona",
    "listing_type": "sale",
    "category": "vivenda",
    "price": 85000000,
    "bairro": "Talatona",
    "municipio": "Talatona",
    "provincia": "Luanda",
    "area": 320.5,
    "bedrooms": 4,
    "bathrooms": 3,
}


def test_owner_lists_property(client, db: Session, owner_user: dict):
    response = client.post(
        "/api/v1/properties", json=PROPERTY_PAYLOAD, headers=auth_headers(owner_user["token"])
    )
    assert response.status_code == 201
    data = response.json()
    assert data["owner_id"] == owner_user["id"]
    assert data["status"] == "available"
    assert data["listing_type"] == "sale"


def test_client_cannot_list_property(client, db: Session, client_user: dict):
    response = client.post(
        "/api/v1/properties", json=PROPERTY_PAYLOAD, headers=auth_headers(client_user["token"])
    )
    assert response.status_code == 403


def test_broker_lists_on_behalf_of_owner(client, db: Session, broker_user: dict, owner_user: dict):
    response = client.post(
        "/api/v1/properties",
        json={**PROPERTY_PAYLOAD, "owner_id": owner_user["id"]},
        headers=auth_headers(broker_user["token"]),
    )
    assert response.status_code == 201
    assert response.json()["owner_id"] == owner_user["id"]


def test_owner_cannot_list_for_someone_else(client, db: Session, owner_user: dict, client_user: dict):
    response = client.post(
        "/api/v1/properties",
        json={**PROPERTY_PAYLOAD, "owner_id": client_user["id"]},
        headers=auth_headers(owner_user["token"]),
    )
    assert response.status_code == 403


def test_property_price_must_be_positive(client, db: Session, owner_user: dict):
    response = client.post(
        "/api/v1/properties",
        json={**PROPERTY_PAYLOAD, "price": 0},
        headers=auth_headers(owner_user["token"]),
    )
    assert response.status_code == 422


def test_browse_shows_only_available(client, db: Session, client_user: dict, owner_user: dict, listed_property):
    rented = client.post(
        "/api/v1/properties", json=PROPERTY_PAYLOAD, headers=auth_headers(owner_user["token"])
    ).json()
    db.query(PropertyModel).filter(PropertyModel.id == rented["id"]).update({"status": "rented"})
    db.commit()

    response = client.get("/api/v1/properties", headers=auth_headers(client_user["token"]))
    assert response.status_code == 200
    ids = [item["id"] for item in response.json()["items"]]
    assert ids == [listed_property.id]

    response = client.get("/api/v1/properties?mine=true", headers=auth_headers(owner_user["token"]))
    assert response.json()["total"] == 2


def test_get_unavailable_property_hidden_from_others(client, db: Session, client_user: dict, owner_user: dict, listed_property):
    listed_property.status = "unavailable"
    db.commit()

    response = client.get(f"/api/v1/properties/{listed_property.id}", headers=auth_headers(client_user["token"]))
    assert response.status_code == 403

    response = client.get(f"/api/v1/properties/{listed_property.id}", headers=auth_headers(owner_user["token"]))
    assert response.status_code == 200


def test_get_missing_property(client, db: Session, client_user: dict):
    response = client.get("/api/v1/properties/99999", headers=auth_headers(client_user["token"]))
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
