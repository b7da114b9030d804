"""Response envelope shared by every endpoint."""

from __future__ import annotations

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Serialises as camelCase; accepts camelCase or snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class HealthChecks(CamelModel):
    database: bool
    redis: bool


class HealthResponse(CamelModel):
    success: bool = True
    message: str
    timestamp: datetime
    checks: HealthChecks
