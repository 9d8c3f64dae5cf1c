"""User data model"""
from datetime import datetime
from sqlalchemy import Column, String
from sqlmodel import Field
from .base import BaseModel
from ..enum import UserRole


class User(BaseModel, table=True):
    """User account table

    ``email`` is stored lower-cased. ``username`` keeps its casing but is
    unique case-insensitively (NOCASE collation), matching the duplicate
    pre-checks. The verification token is set only while the address is
    unverified and is cleared together with setting ``email_verified``.
    """

    __tablename__ = "users"

    username: str = Field(
        max_length=30,
        sa_column=Column(String(30, collation="NOCASE"), unique=True, index=True, nullable=False),
    )
    email: str = Field(max_length=100, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    role: UserRole = Field(default=UserRole.USER)
    email_verified: bool = Field(default=False)
    email_verification_token: str | None = Field(default=None, max_length=64, index=True)
    email_verification_token_expires_at: datetime | None = Field(default=None)
