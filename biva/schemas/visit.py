from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from biva.domain.visit_negotiation import current_date_time as date_on_table


class Visit(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    client_id: int
    status: str
    requested_date_time: datetime
    owner_proposed_date_time: datetime | None = None
    client_proposed_date_time: datetime | None = None
    scheduled_date_time: datetime | None = None
    last_action_by: str | None = None
    client_message: str | None = None
    owner_message: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def current_date_time(self) -> datetime | None:
        """The date currently on the table for this visit."""
        return date_on_table(self)


class VisitCreate(BaseModel):
    property_id: int
    requested_date_time: datetime
    message: str | None = Field(None, max_length=2000)


class VisitResponse(BaseModel):
    action: str = Field(..., description="Owner: accept/decline/propose. Client: accept/reject/propose")
    proposed_date_time: datetime | None = Field(None, description="Required when action is propose")
    message: str | None = Field(None, max_length=2000)
