"""Error body returned for every domain exception."""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"detail": "This contract is already cancelled", "code": "NOT_ACTIONABLE"}
            ]
        }
    )

    detail: str = Field(..., description="Human-readable error message")
    code: str = Field(
        ...,
        description="Stable error code, e.g. VALIDATION_ERROR, CONFLICT, PRECONDITION_FAILED",
    )
