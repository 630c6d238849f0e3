"""Response envelopes shared by all endpoints."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str
    data: T | None = None


class ErrorResponse(CamelModel):
    success: bool = False
    code: str
    message: str
    errors: dict[str, str] | None = None
