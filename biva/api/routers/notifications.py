from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from biva.api.deps import get_auth_context, get_db
from biva.domain.authorization import AuthContext
from biva.schemas.notification import MarkedRead, Notification
from biva.schemas.pagination import PaginatedResponse
from biva.services import notification as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=PaginatedResponse[Notification])
def list_notifications(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    unread_only: bool = Query(False, description="Only unread notifications"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    notifications, total = notification_service.list_notifications(
        db, auth, page=page, page_size=page_size, unread_only=unread_only
    )
    return PaginatedResponse(
        items=[Notification.model_validate(n) for n in notifications],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/read-all", response_model=MarkedRead)
def mark_all_read(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    return MarkedRead(updated=notification_service.mark_all_notifications_read(db, auth))


@router.post("/{notification_id}/read", response_model=Notification)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    notification = notification_service.mark_notification_read(db, notification_id, auth)
    return Notification.model_validate(notification)
