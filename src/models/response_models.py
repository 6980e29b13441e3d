from pydantic import BaseModel, Field

from src.models.records import GeoRecord


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    status: str


class LookupPayload(BaseModel):
    """Body of a lookup response.

    Exactly one of `data` and `error` is set. On the wire the fields are named
    `Data` and `Error` and omitted when empty, e.g. `{"Data":{"country":"US"}}`.
    """

    data: GeoRecord | None = Field(default=None, serialization_alias="Data")
    error: str | None = Field(default=None, serialization_alias="Error")
