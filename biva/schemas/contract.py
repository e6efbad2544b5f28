from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from biva.domain.contract_lifecycle import ContractKind


class Contract(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    owner_user_id: int
    counterparty_user_id: int
    created_by_id: int
    kind: str
    amount: int
    start_date: date
    end_date: date | None = None
    status: str
    contract_text: str
    owner_signed_at: datetime | None = None
    counterparty_signed_at: datetime | None = None
    owner_confirmed_at: datetime | None = None
    counterparty_confirmed_at: datetime | None = None
    activated_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime


class ContractCreate(BaseModel):
    kind: ContractKind
    property_id: int
    counterparty_identifier: str = Field(
        ..., min_length=1, max_length=64, description="Counterparty phone number, any common spelling"
    )
    amount: int = Field(..., gt=0, description="Monthly rent or sale price in Kwanza (must be > 0)")
    start_date: date
    end_date: date | None = None


class ContractSign(BaseModel):
    id_number: str = Field(..., min_length=1, max_length=64, description="BI or passport number")
    signature_image: str = Field(..., description="data:image/...;base64,... URL")
