"""
Common Schemas

Response envelope shared by all endpoints.
"""

from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel


DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Success envelope: {"status": "success", "data": ...}."""

    status: Literal["success"] = "success"
    message: Optional[str] = None
    results: Optional[int] = None
    data: Optional[DataT] = None


class ErrorEnvelope(BaseModel):
    """Failure envelope rendered by the exception handlers."""

    status: Literal["fail"] = "fail"
    error: object
