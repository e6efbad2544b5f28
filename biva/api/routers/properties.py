from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from biva.api.deps import get_auth_context, get_db
from biva.domain.authorization import AuthContext
from biva.domain.contract_lifecycle import PropertyStatus
from biva.schemas.pagination import PaginatedResponse
from biva.schemas.property import Property, PropertyCreate
from biva.services import property as property_service

router = APIRouter(prefix="/properties", tags=["properties"])


@router.post("", response_model=Property, status_code=status.HTTP_201_CREATED)
def create_property(
    property_data: PropertyCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    List a new property. Owners list their own; brokers and admins may set owner_id.
    """
    property_ = property_service.create_property(db, auth, property_data)
    return Property.model_validate(property_)


@router.get("", response_model=PaginatedResponse[Property])
def list_properties(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    mine: bool = Query(False, description="Only properties owned by the current user"),
    status: PropertyStatus | None = Query(None, description="Filter by property status"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Browse available properties, or your own listings with mine=true.
    """
    properties, total = property_service.list_properties(
        db, auth, page=page, page_size=page_size, mine=mine, status=status
    )
    return PaginatedResponse(
        items=[Property.model_validate(p) for p in properties],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{property_id}", response_model=Property)
def get_property(
    property_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    property_ = property_service.get_property(db, property_id, auth)
    return Property.model_validate(property_)
