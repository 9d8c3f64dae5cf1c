"""Authentication-related schemas for API input/output"""

from datetime import datetime
from typing import Annotated, Any, Optional
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    model_validator,
)

from ..enum import UserRole


EMAIL_MAX_LENGTH = 100


def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


def _normalize_email(v: str) -> str:
    if len(v) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must be at most {EMAIL_MAX_LENGTH} characters")
    return v.lower()


# Emails are trimmed, validated and lower-cased before any lookup
NormalizedEmail = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(_normalize_email)]
Username = Annotated[
    str,
    BeforeValidator(_strip),
    Field(min_length=3, max_length=30, pattern=r'^[a-zA-Z0-9_]+$'),
]
Password = Annotated[str, Field(min_length=6, max_length=100)]


# ==================== Input Schemas ====================

class RegisterRequest(BaseModel):
    """User registration request"""

    username: Username = Field(
        ...,
        description="Username (3-30 chars, letters/numbers/underscores)",
        examples=["alice"]
    )
    email: NormalizedEmail = Field(
        ...,
        description="Email address (stored lower-cased)",
        examples=["alice@example.com"]
    )
    password: Password = Field(
        ...,
        description="Password (6-100 characters)",
        examples=["secret1"]
    )


class LoginRequest(BaseModel):
    """User login request"""

    email: NormalizedEmail = Field(..., description="Email address", examples=["alice@example.com"])
    password: str = Field(..., min_length=1, description="Password", examples=["secret1"])


class RefreshRequest(BaseModel):
    """Token refresh request

    A missing token is reported by the workflow (400 MISSING_TOKEN) rather
    than by schema validation.
    """

    refresh_token: Optional[str] = Field(None, description="Refresh token from login/register")


class ForgotPasswordRequest(BaseModel):
    """Password reset request"""

    email: NormalizedEmail = Field(..., description="Email address of the account")


class ResetPasswordRequest(BaseModel):
    """Password reset confirmation"""

    token: Optional[str] = Field(None, description="Reset token received by email")
    new_password: Password = Field(..., description="New password (6-100 characters)")


class UpdateProfileRequest(BaseModel):
    """Profile patch; only the fields that are sent are applied"""

    model_config = ConfigDict(extra='forbid')

    username: Optional[Username] = None
    email: Optional[NormalizedEmail] = None

    @model_validator(mode='after')
    def reject_null_values(self) -> 'UpdateProfileRequest':
        """Fields may be omitted but not explicitly set to null"""
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


# ==================== Output Schemas ====================

class UserOut(BaseModel):
    """User output schema (safe for API responses, excludes sensitive fields)"""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="User role")
    email_verified: bool = Field(..., description="Whether the email address is verified")
    created_at: datetime = Field(..., description="Account creation time")
    updated_at: datetime = Field(..., description="Last modification time")


class TokenOut(BaseModel):
    """Token pair returned to clients"""

    model_config = ConfigDict(from_attributes=True)

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer')")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class AuthResponse(BaseModel):
    """Authentication response (for register/login)"""

    user: UserOut = Field(..., description="User information")
    tokens: TokenOut = Field(..., description="Issued token pair")
