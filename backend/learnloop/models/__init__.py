"""Pydantic models for the application."""

from learnloop.models.base import ErrorDetail, StrictRequest, StrictResponse, SuccessResponse

__all__ = [
    "ErrorDetail",
    "StrictRequest",
    "StrictResponse",
    "SuccessResponse",
]
