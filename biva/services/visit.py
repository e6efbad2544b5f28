"""Visit negotiation between a requesting client and the property owner.

Turn-based: the owner answers while a visit is ``pending_owner``, the client
answers while it is ``pending_client``. Either side accepts, declines or
counter-proposes; either side can cancel until the visit ends.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

import biva.repositories.visit as visit_repo
from biva.core.clock import as_naive_utc, utcnow
from biva.core.config import settings
from biva.db.models.property import Property as PropertyModel
from biva.db.models.visit import Visit as VisitModel
from biva.domain.authorization import AuthContext, Role
from biva.domain.contract_lifecycle import PropertyStatus
from biva.domain.visit_negotiation import (
    TERMINAL_STATUSES,
    AutoCompletionPolicy,
    ClientAction,
    OwnerAction,
    VisitParty,
    VisitStatus,
    can_transition,
    current_date_time,
)
from biva.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    InvalidActionError,
    InvariantViolationError,
    NotActionableError,
    NotFoundError,
)
from biva.services.notification import NotificationKind, notify
from biva.services.property import get_property_or_404

logger = logging.getLogger(__name__)


def _get_visit_or_404(db: Session, visit_id: int) -> VisitModel:
    visit = visit_repo.get_visit_by_id(db, visit_id)
    if not visit:
        raise NotFoundError("Visit not found")
    return visit


def _ensure_turn(visit: VisitModel, expected: VisitStatus) -> None:
    """Raise NotActionableError unless the visit is waiting on ``expected``."""
    status = VisitStatus(visit.status)
    if status == expected:
        return
    if status in TERMINAL_STATUSES:
        raise NotActionableError(f"This visit is no longer negotiable (status: {status.value})")
    if status == VisitStatus.SCHEDULED:
        raise NotActionableError("This visit is already scheduled")
    waiting_on = "owner" if status == VisitStatus.PENDING_OWNER else "client"
    raise NotActionableError(f"This visit is waiting for the {waiting_on}'s response")


def _ensure_transition(visit: VisitModel, target: VisitStatus) -> None:
    if not can_transition(visit.status, target.value):
        raise InvariantViolationError(
            f"Visit {visit.id} cannot move from {visit.status} to {target.value}"
        )


def _future_date(value: datetime | None, now: datetime) -> datetime:
    if value is None:
        raise DomainValidationError("A proposed date and time is required")
    value = as_naive_utc(value)
    if value <= now:
        raise DomainValidationError("The proposed date and time must be in the future")
    return value


def _when(value: datetime | None) -> str:
    return value.strftime("%d/%m/%Y %H:%M") if value else "-"


def _completion_policy(now: datetime | None) -> AutoCompletionPolicy:
    return AutoCompletionPolicy(
        as_of=now or utcnow(),
        grace=timedelta(hours=settings.visit_auto_complete_hours),
    )


def request_visit(
    db: Session,
    auth: AuthContext,
    property_id: int,
    requested_date_time: datetime,
    message: str | None = None,
    now: datetime | None = None,
) -> VisitModel:
    """
    Request a visit to a property. The new visit waits on the owner.

    Raises:
        ForbiddenError: If the actor lacks the client role
        NotFoundError: If the property doesn't exist
        DomainValidationError: If the date is not in the future, the property is not
                               available, or the actor owns the property
        ConflictError: If the actor already has an active visit on the property
    """
    now = now or utcnow()
    if not (auth.has_role(Role.CLIENT) or auth.is_elevated):
        raise ForbiddenError("Only clients can request visits")

    property_ = get_property_or_404(db, property_id)
    if auth.is_owner_of(property_):
        raise DomainValidationError("You cannot request a visit to your own property")
    if property_.status != PropertyStatus.AVAILABLE.value:
        raise DomainValidationError("This property is not available for visits")

    requested = _future_date(requested_date_time, now)

    if visit_repo.get_active_visit(db, auth.actor_id, property_id):
        raise ConflictError("You already have an active visit request for this property")

    visit = visit_repo.create_visit(
        db,
        property_id=property_id,
        client_id=auth.actor_id,
        requested_date_time=requested,
        client_message=message,
    )
    logger.info("Visit %s requested by client %s on property %s", visit.id, auth.actor_id, property_id)

    notify(
        db,
        property_.owner_id,
        NotificationKind.VISIT_REQUESTED,
        "New visit request",
        f"A client asked to visit '{property_.title}' on {_when(requested)}.",
        visit.id,
    )
    return visit


def owner_respond(
    db: Session,
    visit_id: int,
    auth: AuthContext,
    action: str,
    proposed_date_time: datetime | None = None,
    message: str | None = None,
    now: datetime | None = None,
) -> VisitModel:
    """
    Owner's answer to a visit waiting on them: accept, decline or propose another date.

    Raises:
        NotFoundError: If the visit doesn't exist
        ForbiddenError: If the actor is not the property owner (brokers/admins bypass)
        NotActionableError: If the visit is not waiting on the owner
        InvalidActionError: If ``action`` is not accept/decline/propose
        DomainValidationError: If a proposed date is missing or not in the future
        InvariantViolationError: If accepting with no date on the table
    """
    now = now or utcnow()
    visit = _get_visit_or_404(db, visit_id)
    property_: PropertyModel = visit.property
    if not auth.can_manage_property(property_):
        raise ForbiddenError("Only the property owner can answer this visit request")

    _ensure_turn(visit, VisitStatus.PENDING_OWNER)

    try:
        owner_action = OwnerAction(action)
    except ValueError:
        raise InvalidActionError(f"Unknown owner action: {action!r}") from None

    if owner_action == OwnerAction.ACCEPT:
        agreed = current_date_time(visit)
        if agreed is None:
            raise InvariantViolationError(f"Visit {visit.id} has no date to accept")
        _ensure_transition(visit, VisitStatus.SCHEDULED)
        visit = visit_repo.update_visit(
            db,
            visit.id,
            status=VisitStatus.SCHEDULED.value,
            scheduled_date_time=agreed,
            last_action_by=VisitParty.OWNER.value,
            owner_message=message,
        )
        kind, title = NotificationKind.VISIT_SCHEDULED, "Visit confirmed"
        text = f"Your visit to '{property_.title}' is confirmed for {_when(agreed)}."

    elif owner_action == OwnerAction.DECLINE:
        _ensure_transition(visit, VisitStatus.DECLINED)
        visit = visit_repo.update_visit(
            db,
            visit.id,
            status=VisitStatus.DECLINED.value,
            last_action_by=VisitParty.OWNER.value,
            owner_message=message,
        )
        kind, title = NotificationKind.VISIT_DECLINED, "Visit declined"
        text = f"The owner declined your visit request for '{property_.title}'."

    else:
        proposed = _future_date(proposed_date_time, now)
        _ensure_transition(visit, VisitStatus.PENDING_CLIENT)
        visit = visit_repo.update_visit(
            db,
            visit.id,
            status=VisitStatus.PENDING_CLIENT.value,
            owner_proposed_date_time=proposed,
            last_action_by=VisitParty.OWNER.value,
            owner_message=message,
        )
        kind, title = NotificationKind.VISIT_PROPOSED, "New date proposed"
        text = f"The owner of '{property_.title}' proposed {_when(proposed)} for your visit."

    logger.info("Visit %s: owner %s -> %s", visit.id, owner_action.value, visit.status)
    notify(db, visit.client_id, kind, title, text, visit.id)
    return visit


def client_respond(
    db: Session,
    visit_id: int,
    auth: AuthContext,
    action: str,
    proposed_date_time: datetime | None = None,
    message: str | None = None,
    now: datetime | None = None,
) -> VisitModel:
    """
    Client's answer to the owner's proposal: accept, reject or counter-propose.

    A counter-proposal is stored in ``client_proposed_date_time`` and hands the
    turn back to the owner.

    Raises:
        NotFoundError: If the visit doesn't exist
        ForbiddenError: If the actor is not the requesting client (brokers/admins bypass)
        NotActionableError: If the visit is not waiting on the client
        InvalidActionError: If ``action`` is not accept/reject/propose
        DomainValidationError: If a proposed date is missing or not in the future
        InvariantViolationError: If accepting while the owner's proposal is missing
    """
    now = now or utcnow()
    visit = _get_visit_or_404(db, visit_id)
    property_: PropertyModel = visit.property
    if visit.client_id != auth.actor_id and not auth.is_elevated:
        raise ForbiddenError("Only the client who requested this visit can answer")

    _ensure_turn(visit, VisitStatus.PENDING_CLIENT)

    try:
        client_action = ClientAction(action)
    except ValueError:
        raise InvalidActionError(f"Unknown client action: {action!r}") from None

    if client_action == ClientAction.ACCEPT:
        if visit.owner_proposed_date_time is None:
            raise InvariantViolationError(f"Visit {visit.id} has no owner proposal to accept")
        _ensure_transition(visit, VisitStatus.SCHEDULED)
        visit = visit_repo.update_visit(
            db,
            visit.id,
            status=VisitStatus.SCHEDULED.value,
            scheduled_date_time=visit.owner_proposed_date_time,
            last_action_by=VisitParty.CLIENT.value,
            client_message=message,
        )
        kind, title = NotificationKind.VISIT_SCHEDULED, "Visit confirmed"
        text = (
            f"The client accepted your proposal: visit to '{property_.title}' "
            f"on {_when(visit.scheduled_date_time)}."
        )

    elif client_action == ClientAction.REJECT:
        _ensure_transition(visit, VisitStatus.DECLINED)
        visit = visit_repo.update_visit(
            db,
            visit.id,
            status=VisitStatus.DECLINED.value,
            last_action_by=VisitParty.CLIENT.value,
            client_message=message,
        )
        kind, title = NotificationKind.VISIT_DECLINED, "Proposal rejected"
        text = f"The client rejected your proposed date for '{property_.title}'."

    else:
        proposed = _future_date(proposed_date_time, now)
        _ensure_transition(visit, VisitStatus.PENDING_OWNER)
        visit = visit_repo.update_visit(
            db,
            visit.id,
            status=VisitStatus.PENDING_OWNER.value,
            client_proposed_date_time=proposed,
            last_action_by=VisitParty.CLIENT.value,
            client_message=message,
        )
        kind, title = NotificationKind.VISIT_PROPOSED, "New date proposed"
        text = f"The client proposed {_when(proposed)} to visit '{property_.title}'."

    logger.info("Visit %s: client %s -> %s", visit.id, client_action.value, visit.status)
    notify(db, property_.owner_id, kind, title, text, visit.id)
    return visit


def cancel_visit(
    db: Session, visit_id: int, auth: AuthContext, now: datetime | None = None
) -> VisitModel:
    """
    Cancel a visit that has not ended yet. Either party (or a broker/admin) may cancel.

    A scheduled visit already due for completion counts as ended even if no
    read has swept it yet.

    Raises:
        NotFoundError: If the visit doesn't exist
        ForbiddenError: If the actor is neither the client nor the property owner
        NotActionableError: If the visit is already completed, declined or cancelled
    """
    policy = _completion_policy(now)
    visit = _get_visit_or_404(db, visit_id)
    property_: PropertyModel = visit.property

    is_client = visit.client_id == auth.actor_id
    is_owner = auth.is_owner_of(property_)
    if not (is_client or is_owner or auth.is_elevated):
        raise ForbiddenError("Only the client or the property owner can cancel this visit")

    if VisitStatus(visit.status) in TERMINAL_STATUSES:
        raise NotActionableError(f"This visit is no longer negotiable (status: {visit.status})")
    if policy.is_due(status=visit.status, scheduled_date_time=visit.scheduled_date_time):
        raise NotActionableError("This visit has already taken place")
    _ensure_transition(visit, VisitStatus.CANCELLED)

    fields = {"status": VisitStatus.CANCELLED.value}
    if is_client:
        fields["last_action_by"] = VisitParty.CLIENT.value
    elif is_owner:
        fields["last_action_by"] = VisitParty.OWNER.value
    visit = visit_repo.update_visit(db, visit.id, **fields)
    logger.info("Visit %s cancelled by %s", visit.id, auth.actor_id)

    recipients = {visit.client_id, property_.owner_id} - {auth.actor_id}
    for user_id in sorted(recipients):
        notify(
            db,
            user_id,
            NotificationKind.VISIT_CANCELLED,
            "Visit cancelled",
            f"The visit to '{property_.title}' was cancelled.",
            visit.id,
        )
    return visit


def sweep_auto_complete(db: Session, now: datetime | None = None) -> list[int]:
    """
    Mark scheduled visits as completed once their date is more than the
    configured number of hours in the past.

    Runs lazily on visit reads rather than on a timer, so a visit nobody reads
    stays "scheduled" until the next read.
    """
    policy = _completion_policy(now)
    completed = visit_repo.complete_due_visits(db, policy)
    if completed:
        logger.info("Auto-completed %d visit(s): %s", len(completed), completed)
    return completed


def list_visits(
    db: Session,
    auth: AuthContext,
    page: int = 1,
    page_size: int = 100,
    as_role: VisitParty | None = None,
    status: VisitStatus | None = None,
    now: datetime | None = None,
) -> tuple[list[VisitModel], int]:
    """
    List visits the actor takes part in (all visits for brokers/admins unless
    ``as_role`` narrows it). Runs the completion sweep first.
    """
    sweep_auto_complete(db, now=now)

    user_id = None if (auth.is_elevated and as_role is None) else auth.actor_id
    return visit_repo.get_visits_paginated(
        db,
        page=page,
        page_size=page_size,
        user_id=user_id,
        as_role=as_role.value if as_role else None,
        status=status.value if status else None,
    )


def get_visit(db: Session, visit_id: int, auth: AuthContext, now: datetime | None = None) -> VisitModel:
    """Get a visit the actor takes part in. Runs the completion sweep first."""
    sweep_auto_complete(db, now=now)
    visit = _get_visit_or_404(db, visit_id)
    if not (
        visit.client_id == auth.actor_id
        or auth.is_owner_of(visit.property)
        or auth.is_elevated
    ):
        raise ForbiddenError("You are not a party to this visit")
    return visit
