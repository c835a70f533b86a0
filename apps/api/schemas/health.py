"""Health check response schemas."""

from pydantic import BaseModel, ConfigDict


class HealthResponse(BaseModel):
    """Health check response. Public: no tenant, no site data."""

    model_config = ConfigDict(extra="forbid")

    ok: bool
    service: str
    version: str
    time: str
    block_types: int
