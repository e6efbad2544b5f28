from sqlalchemy.orm import Session

from biva.db.models.notification import Notification as NotificationModel
from biva.errors import NotFoundError


def get_notification_by_id(db: Session, notification_id: int) -> NotificationModel | None:
    """Get a notification by ID."""
    return db.query(NotificationModel).filter(NotificationModel.id == notification_id).first()


def create_notification(
    db: Session,
    user_id: int,
    kind: str,
    title: str,
    message: str,
    related_id: int | None = None,
) -> NotificationModel:
    """Create a new notification in the database. Pure data access - no business logic."""
    db_notification = NotificationModel(
        user_id=user_id,
        kind=kind,
        title=title,
        message=message,
        related_id=related_id,
    )
    db.add(db_notification)
    db.commit()
    db.refresh(db_notification)
    return db_notification


def get_notifications_paginated(
    db: Session,
    user_id: int,
    page: int = 1,
    page_size: int = 100,
    unread_only: bool = False,
) -> tuple[list[NotificationModel], int]:
    """Get a user's notifications with pagination, newest first."""
    query = db.query(NotificationModel).filter(NotificationModel.user_id == user_id)
    if unread_only:
        query = query.filter(NotificationModel.is_read.is_(False))

    total = query.count()
    skip = (page - 1) * page_size
    notifications = (
        query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return notifications, total


def mark_as_read(db: Session, notification_id: int) -> NotificationModel:
    notification = get_notification_by_id(db, notification_id)
    if not notification:
        raise NotFoundError("Notification not found")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user_id: int) -> int:
    """Mark every unread notification of the user as read. Returns how many changed."""
    updated = (
        db.query(NotificationModel)
        .filter(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
        .update({NotificationModel.is_read: True}, synchronize_session="fetch")
    )
    db.commit()
    return updated
