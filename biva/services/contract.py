"""Two-party contract lifecycle: create, sign, confirm, activate or cancel.

Each party signs, then confirms, independently. The confirmation that
completes the pair activates the contract and commits the property side
effect (status, and ownership for a sale) in the same transaction.
"""

import base64
import binascii
import logging
import re
from datetime import date, datetime

from sqlalchemy.orm import Session

import biva.repositories.contract as contract_repo
import biva.repositories.user as user_repo
from biva.core.clock import utcnow
from biva.db.models.contract import Contract as ContractModel
from biva.domain.authorization import AuthContext
from biva.domain.contract_lifecycle import (
    ACTIVATION_PROPERTY_STATUS,
    BINDING_STATUSES,
    ContractKind,
    ContractParty,
    ContractStatus,
    RentalOccupancyPolicy,
    confirmed_at,
    is_fully_confirmed,
    other_party_id,
    party_of,
    signed_at,
)
from biva.errors import (
    ConflictError,
    DomainValidationError,
    ForbiddenError,
    InvariantViolationError,
    NotActionableError,
    NotFoundError,
    PreconditionError,
)
from biva.services.contract_text import generate_rental_contract, generate_sale_contract
from biva.services.notification import NotificationKind, notify
from biva.services.property import get_property_or_404
from biva.services.user import find_user_by_contact_identifier, normalize_id_document

logger = logging.getLogger(__name__)

_SIGNATURE_DATA_URL = re.compile(
    r"^data:image/(png|jpeg|jpg|gif|webp|svg\+xml);base64,([A-Za-z0-9+/=\s]+)$"
)

_KIND_LABEL = {ContractKind.RENTAL: "rental", ContractKind.SALE: "sale"}


def _get_contract_or_404(db: Session, contract_id: int, for_update: bool = False) -> ContractModel:
    contract = contract_repo.get_contract_by_id(db, contract_id, for_update=for_update)
    if not contract:
        raise NotFoundError("Contract not found")
    return contract


def _require_party(contract: ContractModel, auth: AuthContext) -> ContractParty:
    party = party_of(contract, auth.actor_id)
    if party is None:
        raise ForbiddenError("You are not a party to this contract")
    return party


def _ensure_pending(contract: ContractModel) -> None:
    if contract.status != ContractStatus.PENDING_SIGNATURES.value:
        raise NotActionableError(
            f"This contract is no longer open for signatures (status: {contract.status})"
        )


def _ensure_property_still_transferable(
    db: Session, contract: ContractModel, kind: ContractKind
) -> None:
    """Refuse to activate a contract whose property changed hands after it was drafted."""
    property_ = get_property_or_404(db, contract.property_id)
    if property_.owner_id != contract.owner_user_id:
        raise ConflictError(
            "The property no longer belongs to the owner named in this contract"
        )
    if kind == ContractKind.RENTAL and contract_repo.get_sale_with_status(
        db, contract.property_id, [ContractStatus.ACTIVE.value]
    ):
        raise ConflictError("This property has already been sold")


def validate_signature_image(signature_image: str) -> str:
    """
    Accept only base64 image data URLs (data:image/png;base64,...).

    Raises:
        DomainValidationError: If the payload is not an image or not valid base64
    """
    match = _SIGNATURE_DATA_URL.match(signature_image.strip())
    if not match:
        raise DomainValidationError("The signature must be a base64-encoded image")
    try:
        decoded = base64.b64decode(re.sub(r"\s", "", match.group(2)), validate=True)
    except (binascii.Error, ValueError):
        raise DomainValidationError("The signature image is not valid base64") from None
    if not decoded:
        raise DomainValidationError("The signature image is empty")
    return signature_image.strip()


def create_contract(
    db: Session,
    auth: AuthContext,
    property_id: int,
    kind: ContractKind,
    counterparty_identifier: str,
    amount: int,
    start_date: date,
    end_date: date | None = None,
    today: date | None = None,
) -> ContractModel:
    """
    Create a rental or sale contract for a property, pending both signatures.

    - The property owner creates it (brokers/admins may create it for the owner)
    - The counterparty is resolved from a phone-like contact identifier
    - The owner must have an identity document on file for the legal text
    - A rental needs an end date after its start; a sale has no end date

    Raises:
        ForbiddenError: If the actor cannot manage the property
        NotFoundError: If the property or the counterparty cannot be found
        DomainValidationError: If the dates are inconsistent or owner and counterparty coincide
        PreconditionError: If the owner has no identity document on file
        ConflictError: If a rental still occupies the property, or a sale is
                       already pending or completed on it
    """
    today = today or date.today()
    kind = ContractKind(kind)

    if kind == ContractKind.RENTAL:
        if end_date is None:
            raise DomainValidationError("A rental contract requires an end date")
        if end_date <= start_date:
            raise DomainValidationError(
                f"End date ({end_date}) must be after start date ({start_date})"
            )
    elif end_date is not None:
        raise DomainValidationError("A sale contract has no end date")

    property_ = get_property_or_404(db, property_id)
    if not auth.can_manage_property(property_):
        raise ForbiddenError("Only the property owner can create contracts for this property")

    owner = property_.owner
    counterparty = find_user_by_contact_identifier(db, counterparty_identifier)
    if counterparty.id == owner.id:
        raise DomainValidationError("The owner cannot be the counterparty of their own contract")

    if not owner.id_document:
        raise PreconditionError(
            "The owner must register an identity document before creating a contract"
        )

    if contract_repo.get_sale_with_status(db, property_id, [ContractStatus.ACTIVE.value]):
        raise ConflictError("This property has already been sold")

    if kind == ContractKind.RENTAL:
        occupying = contract_repo.get_occupying_rental(
            db, property_id, RentalOccupancyPolicy(as_of=today)
        )
        if occupying:
            raise ConflictError(
                f"Property {property_id} already has a rental contract "
                f"({occupying.status}) until {occupying.end_date}"
            )
        text = generate_rental_contract(
            property_, owner, counterparty, amount, start_date, end_date, issued_on=today
        )
    else:
        binding_sale = contract_repo.get_sale_with_status(
            db, property_id, [s.value for s in BINDING_STATUSES]
        )
        if binding_sale:
            raise ConflictError(f"Property {property_id} already has a sale contract in progress")
        text = generate_sale_contract(
            property_, owner, counterparty, amount, start_date, issued_on=today
        )

    contract = contract_repo.create_contract(
        db,
        property_id=property_id,
        owner_user_id=owner.id,
        counterparty_user_id=counterparty.id,
        created_by_id=auth.actor_id,
        kind=kind.value,
        amount=amount,
        start_date=start_date,
        end_date=end_date,
        contract_text=text,
    )
    logger.info(
        "Contract %s (%s) created on property %s by %s for owner %s and counterparty %s",
        contract.id,
        kind.value,
        property_id,
        auth.actor_id,
        owner.id,
        counterparty.id,
    )

    recipients = {owner.id, counterparty.id} - {auth.actor_id}
    for user_id in sorted(recipients):
        notify(
            db,
            user_id,
            NotificationKind.CONTRACT_CREATED,
            "New contract to sign",
            f"A {_KIND_LABEL[kind]} contract for '{property_.title}' is waiting for your signature.",
            contract.id,
        )
    return contract


def sign_contract(
    db: Session,
    contract_id: int,
    auth: AuthContext,
    id_number: str,
    signature_image: str,
    now: datetime | None = None,
) -> ContractModel:
    """
    Record the actor's signature.

    The first signature of a user stores their identity document number on
    their profile; later signatures must repeat the same number.

    Raises:
        NotFoundError: If the contract doesn't exist
        ForbiddenError: If the actor is not a party
        NotActionableError: If the contract is no longer pending signatures
        DomainValidationError: If the image is not an image or the id number mismatches
        ConflictError: If the actor already signed
    """
    now = now or utcnow()
    contract = _get_contract_or_404(db, contract_id, for_update=True)
    party = _require_party(contract, auth)
    _ensure_pending(contract)
    if signed_at(contract, party) is not None:
        raise ConflictError("You have already signed this contract")

    image = validate_signature_image(signature_image)

    document = normalize_id_document(id_number)
    if not document:
        raise DomainValidationError("An identity document number is required to sign")

    signer = user_repo.get_user_by_id(db, auth.actor_id)
    if signer.id_document and signer.id_document != document:
        raise DomainValidationError(
            "The identity document does not match the one registered on your profile"
        )

    contract = contract_repo.record_signature(
        db,
        contract.id,
        party,
        signed_at=now,
        signature_image=image,
        signer=signer if not signer.id_document else None,
        id_document=document if not signer.id_document else None,
    )
    logger.info("Contract %s signed by %s (%s)", contract.id, auth.actor_id, party.value)

    notify(
        db,
        other_party_id(contract, party),
        NotificationKind.CONTRACT_SIGNED,
        "Contract signed",
        f"The {party.value} signed contract #{contract.id}.",
        contract.id,
    )
    return contract


def confirm_contract(
    db: Session,
    contract_id: int,
    auth: AuthContext,
    now: datetime | None = None,
) -> ContractModel:
    """
    Record the actor's confirmation of their signature.

    When the other party has already confirmed, the contract becomes active
    and the property is marked rented or sold (a sale also transfers
    ownership to the counterparty), all in one transaction.

    Raises:
        NotFoundError: If the contract doesn't exist
        ForbiddenError: If the actor is not a party
        NotActionableError: If the contract is no longer pending signatures
        PreconditionError: If the actor has not signed yet
        ConflictError: If the actor already confirmed, or the property was sold or
                       changed owner since the contract was drafted
    """
    now = now or utcnow()
    contract = _get_contract_or_404(db, contract_id, for_update=True)
    party = _require_party(contract, auth)
    _ensure_pending(contract)

    if signed_at(contract, party) is None:
        raise PreconditionError("You must sign the contract before confirming it")
    if confirmed_at(contract, party) is not None:
        raise ConflictError("You have already confirmed this contract")

    other = ContractParty.COUNTERPARTY if party == ContractParty.OWNER else ContractParty.OWNER
    activates = confirmed_at(contract, other) is not None

    kind = ContractKind(contract.kind)
    if activates:
        _ensure_property_still_transferable(db, contract, kind)

    property_status = ACTIVATION_PROPERTY_STATUS[kind].value if activates else None
    new_owner_id = contract.counterparty_user_id if activates and kind == ContractKind.SALE else None

    contract = contract_repo.record_confirmation(
        db,
        contract.id,
        party,
        confirmed_at=now,
        activation_property_status=property_status,
        new_owner_id=new_owner_id,
    )

    if (contract.status == ContractStatus.ACTIVE.value) != is_fully_confirmed(contract):
        raise InvariantViolationError(
            f"Contract {contract.id} status {contract.status} disagrees with its confirmations"
        )

    if not activates:
        logger.info("Contract %s confirmed by %s (%s)", contract.id, auth.actor_id, party.value)
        notify(
            db,
            other_party_id(contract, party),
            NotificationKind.CONTRACT_CONFIRMED,
            "Contract confirmed",
            f"The {party.value} confirmed contract #{contract.id}. Your confirmation is pending.",
            contract.id,
        )
        return contract

    logger.info(
        "Contract %s activated; property %s is now %s%s",
        contract.id,
        contract.property_id,
        property_status,
        f" and owned by {new_owner_id}" if new_owner_id else "",
    )
    for user_id in (contract.owner_user_id, contract.counterparty_user_id):
        notify(
            db,
            user_id,
            NotificationKind.CONTRACT_ACTIVATED,
            "Contract active",
            f"Contract #{contract.id} is now active.",
            contract.id,
        )
    return contract


def cancel_contract(
    db: Session,
    contract_id: int,
    auth: AuthContext,
    now: datetime | None = None,
) -> ContractModel:
    """
    Cancel a contract that is still pending signatures.

    Raises:
        NotFoundError: If the contract doesn't exist
        ForbiddenError: If the actor is neither a party nor a broker/admin
        NotActionableError: If the contract is already active or cancelled
    """
    now = now or utcnow()
    contract = _get_contract_or_404(db, contract_id, for_update=True)
    if party_of(contract, auth.actor_id) is None and not auth.is_elevated:
        raise ForbiddenError("You are not a party to this contract")

    if contract.status == ContractStatus.ACTIVE.value:
        raise NotActionableError("An active contract cannot be cancelled")
    if contract.status == ContractStatus.CANCELLED.value:
        raise NotActionableError("This contract is already cancelled")

    contract = contract_repo.cancel_contract(db, contract.id, cancelled_at=now)
    logger.info("Contract %s cancelled by %s", contract.id, auth.actor_id)

    recipients = {contract.owner_user_id, contract.counterparty_user_id} - {auth.actor_id}
    for user_id in sorted(recipients):
        notify(
            db,
            user_id,
            NotificationKind.CONTRACT_CANCELLED,
            "Contract cancelled",
            f"Contract #{contract.id} was cancelled.",
            contract.id,
        )
    return contract


def get_contract(db: Session, contract_id: int, auth: AuthContext) -> ContractModel:
    """Get a contract. Parties and brokers/admins only."""
    contract = _get_contract_or_404(db, contract_id)
    if party_of(contract, auth.actor_id) is None and not auth.is_elevated:
        raise ForbiddenError("You are not a party to this contract")
    return contract


def list_contracts(
    db: Session,
    auth: AuthContext,
    page: int = 1,
    page_size: int = 100,
    status: ContractStatus | None = None,
    property_id: int | None = None,
) -> tuple[list[ContractModel], int]:
    """List the actor's contracts; brokers/admins see every contract."""
    return contract_repo.get_contracts_paginated(
        db,
        page=page,
        page_size=page_size,
        user_id=None if auth.is_elevated else auth.actor_id,
        property_id=property_id,
        status=status.value if status else None,
    )
