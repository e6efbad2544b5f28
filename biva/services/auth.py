"""Auth service: login and self-registration."""

import logging

from sqlalchemy.orm import Session

from biva.core.security import create_access_token, verify_password
from biva.db.models.user import User as UserModel
from biva.errors import UnauthorizedError
from biva.repositories.user import get_user_by_email
from biva.schemas.user import Token, User, UserCreate
from biva.services.user import create_user

logger = logging.getLogger(__name__)


def login(db: Session, email: str, password: str) -> Token:
    """
    Authenticate user by email and password, return JWT access token.

    Raises:
        UnauthorizedError: If email not found or password incorrect.
    """
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Incorrect email or password")

    access_token = create_access_token(data={"sub": user.id})
    return Token(
        access_token=access_token,
        token_type="bearer",
        user=User.model_validate(user),
    )


def register(db: Session, user_data: UserCreate) -> UserModel:
    """
    Self-registration. Only the client and owner roles can be picked here.

    Raises:
        DuplicateResourceError: If email or phone is already registered
        DomainValidationError: If the password is too weak
        ForbiddenError: If an elevated role is requested
    """
    user = create_user(db, user_data, allow_any_role=False)
    logger.info("Registered user %s with roles %s", user.id, sorted(user.role_names))
    return user
