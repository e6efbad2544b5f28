import logging

from sqlalchemy.orm import Session

import biva.repositories.property as property_repo
import biva.repositories.user as user_repo
from biva.db.models.property import Property as PropertyModel
from biva.domain.authorization import AuthContext, Role
from biva.domain.contract_lifecycle import PropertyStatus
from biva.errors import DomainValidationError, ForbiddenError, NotFoundError
from biva.schemas.property import PropertyCreate

logger = logging.getLogger(__name__)


def get_property_or_404(db: Session, property_id: int) -> PropertyModel:
    property_ = property_repo.get_property_by_id(db, property_id)
    if not property_:
        raise NotFoundError("Property not found")
    return property_


def create_property(db: Session, auth: AuthContext, property_data: PropertyCreate) -> PropertyModel:
    """
    List a new property.

    - Owners list their own properties
    - Brokers and admins may list on behalf of another user via owner_id

    Raises:
        ForbiddenError: If the actor holds neither owner nor an elevated role,
                        or a plain owner tries to list for someone else
        NotFoundError: If owner_id does not exist
    """
    if not (auth.has_role(Role.OWNER) or auth.is_elevated):
        raise ForbiddenError("Only owners, brokers and admins can list properties")

    owner_id = property_data.owner_id if property_data.owner_id is not None else auth.actor_id
    if owner_id != auth.actor_id:
        if not auth.is_elevated:
            raise ForbiddenError("You can only list your own properties")
        if not user_repo.get_user_by_id(db, owner_id):
            raise NotFoundError(f"User with id {owner_id} not found")

    fields = property_data.model_dump(exclude={"owner_id"})
    fields["listing_type"] = property_data.listing_type.value
    fields["status"] = PropertyStatus.AVAILABLE.value
    property_ = property_repo.create_property(db, owner_id=owner_id, **fields)
    logger.info("Property %s listed for owner %s by %s", property_.id, owner_id, auth.actor_id)
    return property_


def list_properties(
    db: Session,
    auth: AuthContext,
    page: int = 1,
    page_size: int = 100,
    mine: bool = False,
    status: PropertyStatus | None = None,
) -> tuple[list[PropertyModel], int]:
    """
    List properties. ``mine`` restricts to the actor's own listings; otherwise
    only available properties are shown unless the actor is elevated.
    """
    if mine:
        return property_repo.get_properties_paginated(
            db,
            page=page,
            page_size=page_size,
            owner_id=auth.actor_id,
            status=status.value if status else None,
        )

    if status is not None and status != PropertyStatus.AVAILABLE and not auth.is_elevated:
        raise DomainValidationError("Only available properties can be browsed")
    effective_status = status or (None if auth.is_elevated else PropertyStatus.AVAILABLE)
    return property_repo.get_properties_paginated(
        db,
        page=page,
        page_size=page_size,
        status=effective_status.value if effective_status else None,
    )


def get_property(db: Session, property_id: int, auth: AuthContext) -> PropertyModel:
    """
    Get a property. Listings that are not available are only visible to
    their owner and elevated roles.
    """
    property_ = get_property_or_404(db, property_id)
    if property_.status != PropertyStatus.AVAILABLE.value and not auth.can_manage_property(property_):
        raise ForbiddenError("This property is not available")
    return property_
