"""API Models package for request/response schemas."""

from .requests import AddPositionRequest
from .responses import (
    BaseResponse,
    ErrorResponse,
    MessageResponse,
    StatusResponse,
    SuccessResponse,
)

__all__ = [
    # Response models
    "BaseResponse",
    "ErrorResponse",
    "MessageResponse",
    "StatusResponse",
    "SuccessResponse",
    # Request models
    "AddPositionRequest",
]
