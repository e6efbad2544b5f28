from fastapi import APIRouter, Depends, Form, status
from sqlalchemy.orm import Session

from biva.api.deps import get_current_user, get_db
from biva.db.models.user import User as UserModel
from biva.schemas.user import Token, User, UserCreate
from biva.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
def login(
    username: str = Form(...),  # OAuth2 uses "username", but we treat it as email
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    """
    Login endpoint - returns JWT token.
    Uses form data for OAuth2 compatibility (Swagger UI authorization).
    The 'username' field should contain the user's email address.
    """
    return auth_service.login(db, username, password)


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Self-registration. Pick "client", "owner" or both; defaults to "client".
    """
    user = auth_service.register(db, user_data)
    return User.model_validate(user)


@router.get("/me", response_model=User)
def get_current_user_info(current_user: UserModel = Depends(get_current_user)):
    """Get current authenticated user information."""
    return User.model_validate(current_user)
