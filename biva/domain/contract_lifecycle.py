from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class ContractKind(str, Enum):
    RENTAL = "rental"
    SALE = "sale"


class ContractStatus(str, Enum):
    PENDING_SIGNATURES = "pending_signatures"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class ContractParty(str, Enum):
    OWNER = "owner"
    COUNTERPARTY = "counterparty"


class PropertyStatus(str, Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    SOLD = "sold"
    UNAVAILABLE = "unavailable"


# Statuses that hold a property: a contract in one of these blocks new ones.
BINDING_STATUSES = frozenset({ContractStatus.PENDING_SIGNATURES, ContractStatus.ACTIVE})

# Property status written when a contract of the given kind becomes active.
ACTIVATION_PROPERTY_STATUS = {
    ContractKind.RENTAL: PropertyStatus.RENTED,
    ContractKind.SALE: PropertyStatus.SOLD,
}


def party_of(contract, user_id: int) -> ContractParty | None:
    """Which side of the contract ``user_id`` is on, or None for outsiders."""
    if contract.owner_user_id == user_id:
        return ContractParty.OWNER
    if contract.counterparty_user_id == user_id:
        return ContractParty.COUNTERPARTY
    return None


def other_party_id(contract, party: ContractParty) -> int:
    if party == ContractParty.OWNER:
        return contract.counterparty_user_id
    return contract.owner_user_id


def signed_at(contract, party: ContractParty):
    return getattr(contract, f"{party.value}_signed_at")


def confirmed_at(contract, party: ContractParty):
    return getattr(contract, f"{party.value}_confirmed_at")


def is_fully_confirmed(contract) -> bool:
    """A contract may become active if and only if both parties confirmed."""
    return contract.owner_confirmed_at is not None and contract.counterparty_confirmed_at is not None


@dataclass(frozen=True, slots=True)
class RentalOccupancyPolicy:
    """Defines when an existing rental contract still occupies a property "as of" a date.

    Semantics:
    - status is pending_signatures or active
    - AND end_date is strictly after as_of

    A rental ending today no longer blocks a new contract starting today.
    """

    as_of: date

    def sqlalchemy_occupying_predicate(self, *, status_col, end_col):
        """Build a SQLAlchemy predicate implementing the occupancy rule."""
        from sqlalchemy import and_, or_

        return and_(
            status_col.in_([s.value for s in BINDING_STATUSES]),
            or_(end_col.is_(None), end_col > self.as_of),
        )
