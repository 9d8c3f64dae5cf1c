"""
Response schemas for API endpoints.

This module defines the unified response format for all API endpoints:
- BaseResponse: Common fields for all responses
- SuccessResponse: Generic successful response wrapper
- ErrorResponse: Error response with error details
- FieldError: One entry of a per-field validation error list
"""

from typing import TypeVar, Generic, List, Optional
from pydantic import BaseModel, Field


T = TypeVar('T')


class BaseResponse(BaseModel):
    """Base response model with common fields."""

    success: bool = Field(..., description="Indicates whether the request was successful")
    message: Optional[str] = Field(None, description="Optional message for additional context")


class SuccessResponse(BaseResponse, Generic[T]):
    """Generic successful response wrapper.

    Example:
        SuccessResponse[UserOut] for single user response
        SuccessResponse[list[OrderOut]] for order list
    """

    success: bool = Field(True, description="Always true for successful responses")
    data: T = Field(..., description="Response data")


class FieldError(BaseModel):
    """Validation failure of a single request field."""

    field: str = Field(..., description="Dotted path of the offending field")
    message: str = Field(..., description="Why the value was rejected")


class ErrorResponse(BaseResponse):
    """Error response with detailed error information."""

    success: bool = Field(False, description="Always false for error responses")
    data: None = Field(None, description="Always null for error responses")
    error: Optional[dict] = Field(
        None,
        description="Error details including code and optional extra fields",
        examples=[
            {"code": "NOT_FOUND"},
            {"code": "INSUFFICIENT_ROLE", "required_roles": ["admin"]},
        ]
    )
    errors: Optional[List[FieldError]] = Field(
        None,
        description="Per-field validation errors (validation failures only)",
    )


class EmailVerificationStatus(BaseModel):
    """Advisory verification status of the calling user."""

    verified: bool = Field(..., description="Whether the caller's email is verified")
    warning: Optional[str] = Field(None, description="Reminder shown while unverified")


class VerifiedSuccessResponse(SuccessResponse[T], Generic[T]):
    """Successful response annotated with the caller's email verification status.

    Used on routes where verification is advisory rather than required.
    """

    email_verification_status: EmailVerificationStatus
