"""Response envelope models for the Stock Watch API."""

from datetime import UTC, datetime
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer

T = TypeVar("T")


class BaseResponse(BaseModel):
    """Fields shared by every envelope."""

    success: bool = Field(..., description="Whether the request was successful")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Response timestamp"
    )
    request_id: Optional[str] = Field(
        None, description="Unique request identifier for tracking"
    )

    model_config = ConfigDict(use_enum_values=True)

    @field_serializer("timestamp")
    def serialize_timestamp(self, dt: datetime) -> str:
        return dt.isoformat()


class SuccessResponse(BaseResponse, Generic[T]):
    """Success envelope with typed data."""

    success: bool = Field(True, description="Always true for success responses")
    data: Optional[T] = Field(None, description="Response data")
    message: Optional[str] = Field(None, description="Optional success message")


class ErrorResponse(BaseResponse):
    """Error envelope: a human-readable error and optional field details."""

    success: bool = Field(False, description="Always false for error responses")
    error: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Error details")


class StatusResponse(SuccessResponse[Dict[str, Any]]):
    """Generic success envelope around a dict payload."""

    @classmethod
    def create(
        cls,
        data: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> "StatusResponse":
        """Create a status response."""
        return cls(success=True, data=data, message=message, request_id=request_id)


class MessageResponse(SuccessResponse[Dict[str, Any]]):
    """Success envelope that only carries a message."""

    @classmethod
    def create(cls, message: str, request_id: Optional[str] = None) -> "MessageResponse":
        return cls(success=True, message=message, request_id=request_id)
