from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base model with ORM support and camelCase wire names."""

    model_config = ConfigDict(
        from_attributes=True,
        protected_namespaces=(),
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ErrorResponse(APIModel):
    """Standard error response payload."""

    success: bool = False
    error: str
    code: str


class SuccessResponse(APIModel):
    """Bare acknowledgement."""

    success: bool = True


class HealthResponse(APIModel):
    """Service and database health."""

    status: str
    timestamp: str
    database: str
    version: str
