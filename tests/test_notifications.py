from unittest.mock import patch

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from biva.db.models.notification import Notification as NotificationModel
from biva.repositories.notification import create_notification
from biva.services.notification import NotificationKind, notify
from conftest import auth_headers


def _seed(db: Session, user_id: int, count: int = 3):
    return [
        create_notification(
            db,
            user_id=user_id,
            kind=NotificationKind.VISIT_REQUESTED.value,
            title=f"Notification {i}",
            message="Something happened",
            related_id=i,
        )
        for i in range(count)
    ]


def test_list_own_notifications(client, db: Session, client_user: dict, owner_user: dict):
    _seed(db, client_user["id"], 3)
    _seed(db, owner_user["id"], 1)

    response = client.get("/api/v1/notifications", headers=auth_headers(client_user["token"]))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert all(item["is_read"] is False for item in data["items"])


def test_mark_one_read_and_filter_unread(client, db: Session, client_user: dict):
    first, *_ = _seed(db, client_user["id"], 3)
    headers = auth_headers(client_user["token"])

    response = client.post(f"/api/v1/notifications/{first.id}/read", headers=headers)
    assert response.status_code == 200
    assert response.json()["is_read"] is True

    response = client.get("/api/v1/notifications?unread_only=true", headers=headers)
    assert response.json()["total"] == 2


def test_mark_all_read(client, db: Session, client_user: dict, owner_user: dict):
    _seed(db, client_user["id"], 3)
    _seed(db, owner_user["id"], 2)

    response = client.post("/api/v1/notifications/read-all", headers=auth_headers(client_user["token"]))
    assert response.status_code == 200
    assert response.json() == {"updated": 3}

    response = client.get("/api/v1/notifications?unread_only=true", headers=auth_headers(owner_user["token"]))
    assert response.json()["total"] == 2


def test_cannot_read_someone_elses_notification(client, db: Session, client_user: dict, owner_user: dict):
    (notification,) = _seed(db, owner_user["id"], 1)
    response = client.post(
        f"/api/v1/notifications/{notification.id}/read", headers=auth_headers(client_user["token"])
    )
    assert response.status_code == 403


def test_mark_missing_notification(client, db: Session, client_user: dict):
    response = client.post("/api/v1/notifications/99999/read", headers=auth_headers(client_user["token"]))
    assert response.status_code == 404


def test_notify_failure_is_swallowed(db: Session, client_user: dict):
    with patch(
        "biva.repositories.notification.create_notification",
        side_effect=OperationalError("INSERT", {}, Exception("database is locked")),
    ):
        notify(db, client_user["id"], NotificationKind.CONTRACT_SIGNED, "Title", "Message", 1)

    # The session is still usable afterwards
    notify(db, client_user["id"], NotificationKind.CONTRACT_SIGNED, "Title", "Message", 1)
    assert db.query(NotificationModel).filter(NotificationModel.user_id == client_user["id"]).count() == 1


def test_notify_swallows_non_database_errors(db: Session, client_user: dict):
    notify(db, client_user["id"], "not-a-kind", "Title", "Message", 1)

    with patch(
        "biva.repositories.notification.create_notification",
        side_effect=TypeError("unexpected keyword"),
    ):
        notify(db, client_user["id"], NotificationKind.VISIT_REQUESTED, "Title", "Message", 1)

    assert db.query(NotificationModel).filter(NotificationModel.user_id == client_user["id"]).count() == 0
