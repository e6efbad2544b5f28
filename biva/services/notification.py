"""Notification sink: records user-facing events for later display."""

import logging
from enum import Enum

from sqlalchemy.orm import Session

import biva.repositories.notification as notification_repo
from biva.db.models.notification import Notification as NotificationModel
from biva.domain.authorization import AuthContext
from biva.errors import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    VISIT_REQUESTED = "visit_requested"
    VISIT_PROPOSED = "visit_proposed"
    VISIT_SCHEDULED = "visit_scheduled"
    VISIT_DECLINED = "visit_declined"
    VISIT_CANCELLED = "visit_cancelled"
    CONTRACT_CREATED = "contract_created"
    CONTRACT_SIGNED = "contract_signed"
    CONTRACT_CONFIRMED = "contract_confirmed"
    CONTRACT_ACTIVATED = "contract_activated"
    CONTRACT_CANCELLED = "contract_cancelled"


def notify(
    db: Session,
    user_id: int,
    kind: NotificationKind,
    title: str,
    message: str,
    related_id: int | None = None,
) -> None:
    """
    Fire-and-forget: store a notification for ``user_id``.

    Called after the triggering operation has committed. A failure here is
    logged and rolled back, never raised to the caller.
    """
    try:
        notification_repo.create_notification(
            db,
            user_id=user_id,
            kind=kind.value,
            title=title,
            message=message,
            related_id=related_id,
        )
    except Exception:
        db.rollback()
        logger.exception("Failed to notify user %s (%s, related %s)", user_id, kind, related_id)


def list_notifications(
    db: Session, auth: AuthContext, page: int = 1, page_size: int = 100, unread_only: bool = False
) -> tuple[list[NotificationModel], int]:
    return notification_repo.get_notifications_paginated(
        db, auth.actor_id, page=page, page_size=page_size, unread_only=unread_only
    )


def mark_notification_read(db: Session, notification_id: int, auth: AuthContext) -> NotificationModel:
    """
    Mark one of the actor's notifications as read.

    Raises:
        NotFoundError: If the notification doesn't exist
        ForbiddenError: If it belongs to someone else
    """
    notification = notification_repo.get_notification_by_id(db, notification_id)
    if not notification:
        raise NotFoundError("Notification not found")
    if notification.user_id != auth.actor_id:
        raise ForbiddenError("You can only manage your own notifications")
    return notification_repo.mark_as_read(db, notification_id)


def mark_all_notifications_read(db: Session, auth: AuthContext) -> int:
    return notification_repo.mark_all_as_read(db, auth.actor_id)
