from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from biva.api.deps import get_auth_context, get_db
from biva.domain.authorization import AuthContext
from biva.domain.contract_lifecycle import ContractStatus
from biva.schemas.contract import Contract, ContractCreate, ContractSign
from biva.schemas.pagination import PaginatedResponse
from biva.services import contract as contract_service

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.post("", response_model=Contract, status_code=status.HTTP_201_CREATED)
def create_contract(
    contract_data: ContractCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Create a rental or sale contract. The counterparty is looked up by phone number.

    A rental needs an end_date after start_date; a sale has none.
    """
    contract = contract_service.create_contract(
        db,
        auth,
        property_id=contract_data.property_id,
        kind=contract_data.kind,
        counterparty_identifier=contract_data.counterparty_identifier,
        amount=contract_data.amount,
        start_date=contract_data.start_date,
        end_date=contract_data.end_date,
    )
    return Contract.model_validate(contract)


@router.get("", response_model=PaginatedResponse[Contract])
def list_contracts(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    status: ContractStatus | None = Query(None, description="Filter by contract status"),
    property_id: int | None = Query(None, description="Filter by property"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    List contracts you are a party to. Brokers and admins see every contract.
    """
    contracts, total = contract_service.list_contracts(
        db, auth, page=page, page_size=page_size, status=status, property_id=property_id
    )
    return PaginatedResponse(
        items=[Contract.model_validate(c) for c in contracts],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{contract_id}", response_model=Contract)
def get_contract(
    contract_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    contract = contract_service.get_contract(db, contract_id, auth)
    return Contract.model_validate(contract)


@router.post("/{contract_id}/sign", response_model=Contract)
def sign_contract(
    contract_id: int,
    signature: ContractSign,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Sign with your identity document number and a base64 image of your signature.
    """
    contract = contract_service.sign_contract(
        db,
        contract_id,
        auth,
        id_number=signature.id_number,
        signature_image=signature.signature_image,
    )
    return Contract.model_validate(contract)


@router.post("/{contract_id}/confirm", response_model=Contract)
def confirm_contract(
    contract_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Confirm your signature. The second confirmation activates the contract.
    """
    contract = contract_service.confirm_contract(db, contract_id, auth)
    return Contract.model_validate(contract)


@router.post("/{contract_id}/cancel", response_model=Contract)
def cancel_contract(
    contract_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    contract = contract_service.cancel_contract(db, contract_id, auth)
    return Contract.model_validate(contract)
