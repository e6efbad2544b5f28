from pydantic import BaseModel, ConfigDict, EmailStr, Field

from biva.domain.authorization import Role as RoleName
from biva.schemas.role import Role


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    phone: str | None = None
    id_document: str | None = None
    address: str | None = None
    roles: list[Role] = []


class UserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8)
    phone: str | None = Field(None, max_length=32)
    id_document: str | None = Field(None, max_length=64)
    address: str | None = Field(None, max_length=500)
    roles: list[RoleName] = []  # If empty, defaults to "client"


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    full_name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)
    id_document: str | None = Field(None, max_length=64)
    address: str | None = Field(None, max_length=500)


class RolesUpdate(BaseModel):
    roles: list[RoleName] = Field(..., min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: User
