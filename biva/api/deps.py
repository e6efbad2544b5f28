from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from biva.core.security import decode_token
from biva.db.base import SessionLocal
from biva.db.models.user import User
from biva.domain.authorization import AuthContext

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Get the current authenticated user from JWT token."""
    payload = decode_token(token)
    if payload is None:
        raise _credentials_exception()

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise _credentials_exception() from None

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _credentials_exception("User not found")

    return user


def get_auth_context(current_user: User = Depends(get_current_user)) -> AuthContext:
    """Resolve the acting user and their roles once per request."""
    return AuthContext.for_user(current_user)


def require_roles(*role_names: str):
    """
    Create a dependency that requires the current user to hold at least one
    of the specified roles.

    Example:
        Depends(require_roles("admin"))
        Depends(require_roles("admin", "broker"))
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role_names.isdisjoint(role_names):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return role_checker
