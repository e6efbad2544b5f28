from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from biva.api.deps import get_auth_context, get_db
from biva.domain.authorization import AuthContext
from biva.domain.visit_negotiation import VisitParty, VisitStatus
from biva.schemas.pagination import PaginatedResponse
from biva.schemas.visit import Visit, VisitCreate, VisitResponse
from biva.services import visit as visit_service

router = APIRouter(prefix="/visits", tags=["visits"])


@router.post("", response_model=Visit, status_code=status.HTTP_201_CREATED)
def request_visit(
    visit_data: VisitCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Ask to visit a property. The request waits for the owner's answer.
    """
    visit = visit_service.request_visit(
        db,
        auth,
        property_id=visit_data.property_id,
        requested_date_time=visit_data.requested_date_time,
        message=visit_data.message,
    )
    return Visit.model_validate(visit)


@router.get("", response_model=PaginatedResponse[Visit])
def list_visits(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    as_role: VisitParty | None = Query(
        None, description="client: visits you requested; owner: visits to your properties"
    ),
    status: VisitStatus | None = Query(None, description="Filter by visit status"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    List visits. Scheduled visits more than a day in the past are marked completed first.
    """
    visits, total = visit_service.list_visits(
        db, auth, page=page, page_size=page_size, as_role=as_role, status=status
    )
    return PaginatedResponse(
        items=[Visit.model_validate(v) for v in visits],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{visit_id}", response_model=Visit)
def get_visit(
    visit_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    visit = visit_service.get_visit(db, visit_id, auth)
    return Visit.model_validate(visit)


@router.post("/{visit_id}/owner-response", response_model=Visit)
def owner_response(
    visit_id: int,
    response: VisitResponse,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Owner answers a pending request: accept, decline or propose (with proposed_date_time).
    """
    visit = visit_service.owner_respond(
        db,
        visit_id,
        auth,
        action=response.action,
        proposed_date_time=response.proposed_date_time,
        message=response.message,
    )
    return Visit.model_validate(visit)


@router.post("/{visit_id}/client-response", response_model=Visit)
def client_response(
    visit_id: int,
    response: VisitResponse,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Client answers the owner's proposal: accept, reject or propose another date.
    """
    visit = visit_service.client_respond(
        db,
        visit_id,
        auth,
        action=response.action,
        proposed_date_time=response.proposed_date_time,
        message=response.message,
    )
    return Visit.model_validate(visit)


@router.post("/{visit_id}/cancel", response_model=Visit)
def cancel_visit(
    visit_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    visit = visit_service.cancel_visit(db, visit_id, auth)
    return Visit.model_validate(visit)
