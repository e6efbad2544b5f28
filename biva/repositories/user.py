from sqlalchemy.orm import Session

from biva.db.models.role import Role as RoleModel
from biva.db.models.user import User as UserModel
from biva.errors import NotFoundError


def get_user_by_email(db: Session, email: str) -> UserModel | None:
    """Get a user by email."""
    return db.query(UserModel).filter(UserModel.email == email).first()


def get_user_by_id(db: Session, user_id: int) -> UserModel | None:
    """Get a user by ID."""
    return db.query(UserModel).filter(UserModel.id == user_id).first()


def get_user_by_phone(db: Session, phone: str) -> UserModel | None:
    """Get a user by exact stored phone value."""
    return db.query(UserModel).filter(UserModel.phone == phone).first()


def get_first_user_by_phones(db: Session, candidates: list[str]) -> UserModel | None:
    """Return the user matching the earliest candidate in ``candidates``, if any."""
    if not candidates:
        return None
    matches = db.query(UserModel).filter(UserModel.phone.in_(candidates)).all()
    by_phone = {user.phone: user for user in matches}
    for candidate in candidates:
        if candidate in by_phone:
            return by_phone[candidate]
    return None


def create_user(
    db: Session,
    email: str,
    full_name: str,
    password_hash: str,
    roles: list[RoleModel],
    phone: str | None = None,
    id_document: str | None = None,
    address: str | None = None,
) -> UserModel:
    """Create a new user in the database. Pure data access - no business logic."""
    db_user = UserModel(
        email=email,
        full_name=full_name,
        password_hash=password_hash,
        phone=phone,
        id_document=id_document,
        address=address,
    )
    db_user.roles = list(roles)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, user_id: int, **kwargs) -> UserModel:
    """
    Update user profile fields. Only updates fields that are explicitly provided.

    To clear a nullable field, explicitly pass it with None value.
    """
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    for field in ("email", "full_name", "phone", "id_document", "address"):
        if field in kwargs:
            setattr(user, field, kwargs[field])

    db.commit()
    db.refresh(user)
    return user


def set_user_roles(db: Session, user_id: int, roles: list[RoleModel]) -> UserModel:
    """Replace the role set of a user."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    user.roles = list(roles)
    db.commit()
    db.refresh(user)
    return user


def get_all_users_paginated(
    db: Session, page: int = 1, page_size: int = 100, name: str | None = None
) -> tuple[list[UserModel], int]:
    """
    Get all users with pagination, sorted by name for stable pagination.

    Args:
        page: Page number (1-indexed)
        page_size: Number of items per page
        name: Optional case-insensitive partial match on full name

    Returns:
        Tuple of (list of users, total count)
    """
    query = db.query(UserModel)
    if name:
        query = query.filter(UserModel.full_name.ilike(f"%{name}%"))
    total = query.count()
    skip = (page - 1) * page_size
    users = query.order_by(UserModel.full_name, UserModel.id).offset(skip).limit(page_size).all()
    return users, total
