from datetime import date, datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from biva.db.models.contract import Contract as ContractModel
from biva.db.models.property import Property as PropertyModel
from biva.db.models.user import User as UserModel
from biva.domain.contract_lifecycle import (
    ContractKind,
    ContractParty,
    ContractStatus,
    RentalOccupancyPolicy,
)
from biva.errors import ConflictError, NotFoundError


def get_contract_by_id(
    db: Session, contract_id: int, for_update: bool = False
) -> ContractModel | None:
    """Get a contract by ID. ``for_update`` locks the row until the next commit."""
    query = db.query(ContractModel).filter(ContractModel.id == contract_id)
    if for_update:
        query = query.with_for_update()
    return query.first()


def get_occupying_rental(
    db: Session, property_id: int, policy: RentalOccupancyPolicy
) -> ContractModel | None:
    """Get a rental on the property that still occupies it under the given policy."""
    return (
        db.query(ContractModel)
        .filter(
            ContractModel.property_id == property_id,
            ContractModel.kind == ContractKind.RENTAL.value,
            policy.sqlalchemy_occupying_predicate(
                status_col=ContractModel.status,
                end_col=ContractModel.end_date,
            ),
        )
        .first()
    )


def get_sale_with_status(
    db: Session, property_id: int, statuses: list[str]
) -> ContractModel | None:
    """Get a sale contract on the property in one of ``statuses``."""
    return (
        db.query(ContractModel)
        .filter(
            ContractModel.property_id == property_id,
            ContractModel.kind == ContractKind.SALE.value,
            ContractModel.status.in_(statuses),
        )
        .first()
    )


def create_contract(
    db: Session,
    property_id: int,
    owner_user_id: int,
    counterparty_user_id: int,
    created_by_id: int,
    kind: str,
    amount: int,
    start_date: date,
    end_date: date | None,
    contract_text: str,
) -> ContractModel:
    """
    Create a new contract in the database in pending_signatures.

    The partial unique index on binding sales is the final guard against two
    concurrent sale contracts on one property.
    """
    db_contract = ContractModel(
        property_id=property_id,
        owner_user_id=owner_user_id,
        counterparty_user_id=counterparty_user_id,
        created_by_id=created_by_id,
        kind=kind,
        amount=amount,
        start_date=start_date,
        end_date=end_date,
        status=ContractStatus.PENDING_SIGNATURES.value,
        contract_text=contract_text,
    )
    db.add(db_contract)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("A sale contract is already in progress for this property") from exc
    db.refresh(db_contract)
    return db_contract


def record_signature(
    db: Session,
    contract_id: int,
    party: ContractParty,
    signed_at: datetime,
    signature_image: str,
    signer: UserModel | None = None,
    id_document: str | None = None,
) -> ContractModel:
    """
    Record one party's signature. When ``signer`` and ``id_document`` are given the
    signer's profile document number is stored in the same commit.
    """
    contract = get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")

    setattr(contract, f"{party.value}_signed_at", signed_at)
    setattr(contract, f"{party.value}_signature_image", signature_image)
    if signer is not None and id_document is not None:
        signer.id_document = id_document

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(contract)
    return contract


def record_confirmation(
    db: Session,
    contract_id: int,
    party: ContractParty,
    confirmed_at: datetime,
    activation_property_status: str | None = None,
    new_owner_id: int | None = None,
) -> ContractModel:
    """
    Record one party's confirmation and, when ``activation_property_status`` is
    given, activate the contract and update the property in the same transaction.

    Contract row, property status and ownership transfer are committed together
    or not at all.
    """
    contract = get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")

    try:
        setattr(contract, f"{party.value}_confirmed_at", confirmed_at)

        if activation_property_status is not None:
            property_ = (
                db.query(PropertyModel)
                .filter(PropertyModel.id == contract.property_id)
                .first()
            )
            if not property_:
                raise NotFoundError("Property not found")

            contract.status = ContractStatus.ACTIVE.value
            contract.activated_at = confirmed_at
            property_.status = activation_property_status
            property_.updated_at = confirmed_at
            if new_owner_id is not None:
                property_.owner_id = new_owner_id

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(contract)
    return contract


def cancel_contract(db: Session, contract_id: int, cancelled_at: datetime) -> ContractModel:
    """Mark a contract as cancelled."""
    contract = get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")

    contract.status = ContractStatus.CANCELLED.value
    contract.cancelled_at = cancelled_at
    db.commit()
    db.refresh(contract)
    return contract


def get_contracts_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    user_id: int | None = None,
    property_id: int | None = None,
    status: str | None = None,
) -> tuple[list[ContractModel], int]:
    """
    Get contracts with pagination and optional filters.

    Args:
        user_id: Restrict to contracts where the user is owner or counterparty
        property_id: Optional filter by property
        status: Optional exact status filter

    Returns:
        Tuple of (list of contracts, total count)
    """
    query = db.query(ContractModel)

    if user_id is not None:
        query = query.filter(
            or_(
                ContractModel.owner_user_id == user_id,
                ContractModel.counterparty_user_id == user_id,
            )
        )
    if property_id is not None:
        query = query.filter(ContractModel.property_id == property_id)
    if status is not None:
        query = query.filter(ContractModel.status == status)

    total = query.count()
    skip = (page - 1) * page_size
    contracts = (
        query.order_by(ContractModel.created_at.desc(), ContractModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return contracts, total

