from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ListingType(str, Enum):
    RENT = "rent"
    SALE = "sale"


class Property(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    title: str
    listing_type: str
    category: str
    price: int
    bairro: str
    municipio: str
    provincia: str
    area: float | None = None
    bedrooms: int
    bathrooms: int
    description: str | None = None
    status: str
    created_at: datetime


class PropertyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    listing_type: ListingType
    category: str = Field(..., min_length=1, max_length=64, description="e.g. apartamento, vivenda")
    price: int = Field(..., gt=0, description="Price in Kwanza (must be > 0)")
    bairro: str = Field(..., min_length=1, max_length=255)
    municipio: str = Field(..., min_length=1, max_length=255)
    provincia: str = Field(..., min_length=1, max_length=255)
    area: float | None = Field(None, gt=0, description="Area in square meters")
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(0, ge=0)
    description: str | None = None
    owner_id: int | None = Field(None, description="Brokers and admins may list on behalf of an owner")
