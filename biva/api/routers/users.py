from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from biva.api.deps import get_auth_context, get_db, require_roles
from biva.db.models.user import User as UserModel
from biva.domain.authorization import AuthContext
from biva.schemas.pagination import PaginatedResponse
from biva.schemas.user import RolesUpdate, User, UserCreate, UserUpdate
from biva.services.user import create_user, get_all_users, get_user, set_user_roles, update_profile

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=User, status_code=status.HTTP_201_CREATED)
def create_new_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Create a new user with any roles. Only admin users can create users.

    If no role is provided, the user will be assigned the "client" role by default.
    """
    user = create_user(db, user_data, allow_any_role=True)
    return User.model_validate(user)


@router.get("", response_model=PaginatedResponse[User])
def get_all_users_paginated(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    name: str | None = Query(None, description="Filter users by full name (partial match)"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_roles("admin")),
):
    """
    Get all users with pagination. Only admin users can access this endpoint.
    """
    users, total = get_all_users(db, page=page, page_size=page_size, name=name)
    return PaginatedResponse(
        items=[User.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.put("/me", response_model=User)
def update_my_profile(
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Update the current user's profile (name, email, phone, address, identity document).

    The identity document can be set once and never changed afterwards.
    """
    user = update_profile(db, auth, user_data)
    return User.model_validate(user)


@router.get("/{user_id}", response_model=User)
def get_user_by_id(
    user_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Get a user by ID.

    - Admin can get any user
    - Everyone else can only get themselves
    """
    user = get_user(db, user_id, auth)
    return User.model_validate(user)


@router.put("/{user_id}/roles", response_model=User)
def update_user_roles(
    user_id: int,
    roles_data: RolesUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """
    Replace a user's roles. Admin only; admins cannot change their own roles.
    """
    user = set_user_roles(db, user_id, roles_data.roles, auth)
    return User.model_validate(user)
