import re

from sqlalchemy.orm import Session

import biva.repositories.role as role_repo
import biva.repositories.user as user_repo
from biva.core.config import settings
from biva.core.security import get_password_hash, validate_password
from biva.db.models.user import User as UserModel
from biva.domain.authorization import SELF_ASSIGNABLE_ROLES, AuthContext, Role
from biva.errors import DomainValidationError, DuplicateResourceError, ForbiddenError, NotFoundError
from biva.schemas.user import UserCreate, UserUpdate

_PHONE_PUNCTUATION = re.compile(r"[\s\-\.\(\)]")


def clean_phone(raw: str) -> str:
    """Strip spaces, dashes, dots and parentheses from a phone number."""
    return _PHONE_PUNCTUATION.sub("", raw.strip())


def normalize_id_document(raw: str) -> str:
    return re.sub(r"\s", "", raw).upper()


def contact_identifier_candidates(raw: str, country_code: str | None = None) -> list[str]:
    """
    Phone spellings to try, in order, for a contact identifier typed by a user.

    "923 456 789" with country code 244 yields the raw text, "923456789",
    "+244923456789" and "244923456789"; "+244 923-456-789" also yields the
    local "923456789".
    """
    country_code = country_code if country_code is not None else settings.default_country_code
    stripped = raw.strip()
    cleaned = clean_phone(stripped)
    digits = cleaned.lstrip("+")

    attempts = [stripped, cleaned, digits]
    if digits:
        if digits.startswith(country_code) and len(digits) > len(country_code):
            local = digits[len(country_code):]
            attempts += [f"+{digits}", local]
        else:
            attempts += [f"+{country_code}{digits}", f"{country_code}{digits}"]

    candidates: list[str] = []
    for attempt in attempts:
        if attempt and attempt not in candidates:
            candidates.append(attempt)
    return candidates


def find_user_by_contact_identifier(db: Session, raw: str) -> UserModel:
    """
    Resolve a user by phone, trying several normalizations of ``raw``.

    Raises:
        NotFoundError: If no spelling matches a registered phone
    """
    user = user_repo.get_first_user_by_phones(db, contact_identifier_candidates(raw))
    if not user:
        raise NotFoundError(f"No user registered with contact {raw.strip()!r}")
    return user


def _ensure_phone_available(db: Session, phone: str, exclude_user_id: int | None = None) -> None:
    existing = user_repo.get_user_by_phone(db, phone)
    if existing and existing.id != exclude_user_id:
        raise DuplicateResourceError("Phone already registered")


def create_user(db: Session, user_data: UserCreate, allow_any_role: bool = False) -> UserModel:
    """
    Create a new user with business logic validation.

    - Validates email and phone uniqueness
    - Validates password requirements
    - Self-registration may only pick client/owner; admins may assign any role
    - Defaults to the "client" role when no role is given
    """
    if user_repo.get_user_by_email(db, user_data.email):
        raise DuplicateResourceError("Email already registered")

    phone = clean_phone(user_data.phone) if user_data.phone else None
    if phone:
        _ensure_phone_available(db, phone)

    is_valid, error_message = validate_password(user_data.password)
    if not is_valid:
        raise DomainValidationError(error_message)

    requested = set(user_data.roles) or {Role.CLIENT}
    if not allow_any_role and not requested <= SELF_ASSIGNABLE_ROLES:
        raise ForbiddenError("Only client and owner roles can be self-assigned")

    roles = role_repo.get_roles_by_names(db, [role.value for role in requested])
    if len(roles) != len(requested):
        raise NotFoundError("Role not found")

    return user_repo.create_user(
        db,
        email=user_data.email,
        full_name=user_data.full_name,
        password_hash=get_password_hash(user_data.password),
        roles=roles,
        phone=phone,
        id_document=normalize_id_document(user_data.id_document) if user_data.id_document else None,
        address=user_data.address,
    )


def get_user(db: Session, user_id: int, auth: AuthContext) -> UserModel:
    """
    Get a user by ID with authorization checks.

    - Admin can get any user
    - Everyone else can only get themselves
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    if not auth.is_admin and auth.actor_id != user_id:
        raise ForbiddenError("You can only access your own user information")

    return user


def update_profile(db: Session, auth: AuthContext, user_data: UserUpdate) -> UserModel:
    """
    Update the actor's own profile.

    The identity document can be recorded once; afterwards only the same
    number is accepted since it already appears in generated contracts.

    Raises:
        DuplicateResourceError: If email or phone is already taken by another user
        DomainValidationError: If a different identity document is already on file
    """
    user = user_repo.get_user_by_id(db, auth.actor_id)
    if not user:
        raise NotFoundError("User not found")

    fields = user_data.model_dump(exclude_unset=True)

    if fields.get("email") is not None and fields["email"] != user.email:
        if user_repo.get_user_by_email(db, fields["email"]):
            raise DuplicateResourceError("Email already registered")
    elif "email" in fields and fields["email"] is None:
        del fields["email"]

    if fields.get("phone"):
        fields["phone"] = clean_phone(fields["phone"])
        _ensure_phone_available(db, fields["phone"], exclude_user_id=user.id)

    if "id_document" in fields:
        if not fields["id_document"]:
            raise DomainValidationError("The identity document cannot be removed")
        new_document = normalize_id_document(fields["id_document"])
        if user.id_document and user.id_document != new_document:
            raise DomainValidationError(
                "The identity document on file does not match the one provided"
            )
        fields["id_document"] = new_document

    if "full_name" in fields and not fields["full_name"]:
        del fields["full_name"]

    return user_repo.update_user(db, user.id, **fields)


def set_user_roles(db: Session, user_id: int, roles: list[Role], auth: AuthContext) -> UserModel:
    """
    Replace a user's roles. Admin only; nobody can change their own roles.
    """
    if not auth.is_admin:
        raise ForbiddenError("Not enough permissions")
    if auth.actor_id == user_id:
        raise ForbiddenError("You cannot change your own roles")

    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    wanted = {role.value for role in roles}
    if not wanted:
        raise DomainValidationError("A user needs at least one role")
    role_models = role_repo.get_roles_by_names(db, sorted(wanted))
    if len(role_models) != len(wanted):
        raise NotFoundError("Role not found")

    return user_repo.set_user_roles(db, user_id, role_models)


def get_all_users(
    db: Session, page: int = 1, page_size: int = 100, name: str | None = None
) -> tuple[list[UserModel], int]:
    """
    Get all users with pagination.

    This is admin-only functionality; authorization is handled at the controller level.
    """
    return user_repo.get_all_users_paginated(db, page=page, page_size=page_size, name=name)
