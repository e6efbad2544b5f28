from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class VisitStatus(str, Enum):
    PENDING_OWNER = "pending_owner"
    PENDING_CLIENT = "pending_client"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class VisitParty(str, Enum):
    CLIENT = "client"
    OWNER = "owner"


class OwnerAction(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    PROPOSE = "propose"


class ClientAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    PROPOSE = "propose"


ACTIVE_STATUSES = frozenset(
    {VisitStatus.PENDING_OWNER, VisitStatus.PENDING_CLIENT, VisitStatus.SCHEDULED}
)
TERMINAL_STATUSES = frozenset(
    {VisitStatus.COMPLETED, VisitStatus.DECLINED, VisitStatus.CANCELLED}
)

TRANSITIONS: dict[VisitStatus, frozenset[VisitStatus]] = {
    VisitStatus.PENDING_OWNER: frozenset(
        {VisitStatus.PENDING_CLIENT, VisitStatus.SCHEDULED, VisitStatus.DECLINED, VisitStatus.CANCELLED}
    ),
    VisitStatus.PENDING_CLIENT: frozenset(
        {VisitStatus.SCHEDULED, VisitStatus.DECLINED, VisitStatus.PENDING_OWNER, VisitStatus.CANCELLED}
    ),
    VisitStatus.SCHEDULED: frozenset({VisitStatus.COMPLETED, VisitStatus.CANCELLED}),
    VisitStatus.COMPLETED: frozenset(),
    VisitStatus.DECLINED: frozenset(),
    VisitStatus.CANCELLED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    return VisitStatus(target) in TRANSITIONS[VisitStatus(current)]


def current_date_time(visit) -> datetime | None:
    """The date on the table for a visit, depending on whose turn it is.

    - pending_owner: the client's latest counter-proposal, else the original request
    - pending_client: the owner's proposal
    - scheduled / completed: the agreed date
    - declined / cancelled: whatever was last on the table
    """
    status = VisitStatus(visit.status)
    if status == VisitStatus.PENDING_OWNER:
        return visit.client_proposed_date_time or visit.requested_date_time
    if status == VisitStatus.PENDING_CLIENT:
        return visit.owner_proposed_date_time
    if status in (VisitStatus.SCHEDULED, VisitStatus.COMPLETED):
        return visit.scheduled_date_time
    return (
        visit.scheduled_date_time
        or visit.owner_proposed_date_time
        or visit.client_proposed_date_time
        or visit.requested_date_time
    )


@dataclass(frozen=True, slots=True)
class AutoCompletionPolicy:
    """Defines when a scheduled visit is considered done.

    A visit is due for completion once its scheduled date is strictly more
    than ``grace`` before ``as_of``. Exactly ``grace`` ago is not yet due.
    """

    as_of: datetime
    grace: timedelta = timedelta(hours=24)

    @property
    def cutoff(self) -> datetime:
        return self.as_of - self.grace

    def is_due(self, *, status: str, scheduled_date_time: datetime | None) -> bool:
        return (
            status == VisitStatus.SCHEDULED.value
            and scheduled_date_time is not None
            and scheduled_date_time < self.cutoff
        )

    def sqlalchemy_due_predicate(self, *, status_col, scheduled_col):
        from sqlalchemy import and_

        return and_(
            status_col == VisitStatus.SCHEDULED.value,
            scheduled_col.isnot(None),
            scheduled_col < self.cutoff,
        )
