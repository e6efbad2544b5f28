from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Notification(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: str
    title: str
    message: str
    related_id: int | None = None
    is_read: bool
    created_at: datetime


class MarkedRead(BaseModel):
    updated: int
