from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from biva.core.clock import utcnow
from biva.db.models.property import Property as PropertyModel
from biva.db.models.visit import Visit as VisitModel
from biva.domain.visit_negotiation import ACTIVE_STATUSES, AutoCompletionPolicy, VisitStatus
from biva.errors import ConflictError, NotFoundError

VISIT_FIELDS = (
    "status",
    "last_action_by",
    "requested_date_time",
    "owner_proposed_date_time",
    "client_proposed_date_time",
    "scheduled_date_time",
    "client_message",
    "owner_message",
)


def get_visit_by_id(db: Session, visit_id: int) -> VisitModel | None:
    """Get a visit by ID."""
    return db.query(VisitModel).filter(VisitModel.id == visit_id).first()


def get_active_visit(db: Session, client_id: int, property_id: int) -> VisitModel | None:
    """Get the client's visit on a property that is still pending or scheduled."""
    return (
        db.query(VisitModel)
        .filter(
            VisitModel.client_id == client_id,
            VisitModel.property_id == property_id,
            VisitModel.status.in_([s.value for s in ACTIVE_STATUSES]),
        )
        .first()
    )


def create_visit(
    db: Session,
    property_id: int,
    client_id: int,
    requested_date_time: datetime,
    client_message: str | None = None,
) -> VisitModel:
    """
    Create a new visit in the database.

    The partial unique index on (client_id, property_id) for active visits is
    the final guard against concurrent duplicate requests.
    """
    db_visit = VisitModel(
        property_id=property_id,
        client_id=client_id,
        requested_date_time=requested_date_time,
        status=VisitStatus.PENDING_OWNER.value,
        last_action_by="client",
        client_message=client_message,
    )
    db.add(db_visit)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("You already have an active visit request for this property") from exc
    db.refresh(db_visit)
    return db_visit


def update_visit(db: Session, visit_id: int, **kwargs) -> VisitModel:
    """
    Update a visit. Only updates fields that are explicitly provided.

    To clear a field (set to None), explicitly pass it with None value.
    """
    visit = get_visit_by_id(db, visit_id)
    if not visit:
        raise NotFoundError("Visit not found")

    for field in VISIT_FIELDS:
        if field in kwargs:
            setattr(visit, field, kwargs[field])
    visit.updated_at = utcnow()

    db.commit()
    db.refresh(visit)
    return visit


def complete_due_visits(db: Session, policy: AutoCompletionPolicy) -> list[int]:
    """Flip every scheduled visit the policy considers due to completed. Returns their ids."""
    due = (
        db.query(VisitModel)
        .filter(
            policy.sqlalchemy_due_predicate(
                status_col=VisitModel.status,
                scheduled_col=VisitModel.scheduled_date_time,
            )
        )
        .all()
    )
    if not due:
        return []

    for visit in due:
        visit.status = VisitStatus.COMPLETED.value
        visit.updated_at = policy.as_of
    db.commit()
    return [visit.id for visit in due]


def get_visits_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    user_id: int | None = None,
    as_role: str | None = None,
    status: str | None = None,
) -> tuple[list[VisitModel], int]:
    """
    Get visits with pagination and optional filters.

    Args:
        user_id: Restrict to visits the user takes part in. None means all visits.
        as_role: "client" keeps visits the user requested, "owner" keeps visits on
                 properties the user owns; None keeps both.
        status: Optional exact status filter

    Returns:
        Tuple of (list of visits, total count)
    """
    query = db.query(VisitModel).join(PropertyModel, VisitModel.property_id == PropertyModel.id)

    if user_id is not None:
        if as_role == "client":
            query = query.filter(VisitModel.client_id == user_id)
        elif as_role == "owner":
            query = query.filter(PropertyModel.owner_id == user_id)
        else:
            query = query.filter(
                or_(VisitModel.client_id == user_id, PropertyModel.owner_id == user_id)
            )

    if status is not None:
        query = query.filter(VisitModel.status == status)

    total = query.count()
    skip = (page - 1) * page_size
    visits = (
        query.order_by(VisitModel.created_at.desc(), VisitModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return visits, total
