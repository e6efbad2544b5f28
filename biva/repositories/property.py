from sqlalchemy.orm import Session

from biva.db.models.property import Property as PropertyModel


def get_property_by_id(db: Session, property_id: int) -> PropertyModel | None:
    """Get a property by ID."""
    return db.query(PropertyModel).filter(PropertyModel.id == property_id).first()


def create_property(db: Session, **fields) -> PropertyModel:
    """Create a new property in the database. Pure data access - no business logic."""
    db_property = PropertyModel(**fields)
    db.add(db_property)
    db.commit()
    db.refresh(db_property)
    return db_property


def get_properties_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    owner_id: int | None = None,
    status: str | None = None,
) -> tuple[list[PropertyModel], int]:
    """Get properties with pagination, newest first."""
    query = db.query(PropertyModel)
    if owner_id is not None:
        query = query.filter(PropertyModel.owner_id == owner_id)
    if status is not None:
        query = query.filter(PropertyModel.status == status)

    total = query.count()
    skip = (page - 1) * page_size
    properties = (
        query.order_by(PropertyModel.created_at.desc(), PropertyModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return properties, total
