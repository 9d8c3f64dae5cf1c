"""Authentication API endpoints"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from ..schema.response import SuccessResponse
from ..schema.auth import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
    AuthResponse,
    TokenOut,
    UserOut,
)
from ..dep import SessionDep, IdentityDep, get_auth_service
from ..service import AuthService

logger = logging.getLogger(__name__)

# Router configuration
router = APIRouter(prefix="/auth", tags=["Authentication"])


# ==================== Type Aliases ====================

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


def _auth_response(user, pair) -> AuthResponse:
    return AuthResponse(
        user=UserOut.model_validate(user),
        tokens=TokenOut.model_validate(pair),
    )


# ==================== Registration & Login ====================

@router.post(
    "/register",
    response_model=SuccessResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
    description="""
    Register a new user account and send an email verification link.

    **Flow:**
    1. Normalize email (trim, lower-case) and username (trim)
    2. Reject duplicate email, then duplicate username
    3. Send verification email (no account is created if sending fails)
    4. Create user with hashed password
    5. Return user info and a token pair

    **Errors:**
    - 400 DUPLICATE_EMAIL / DUPLICATE_USERNAME
    - 400 VALIDATION_ERROR: Malformed input
    - 500 EMAIL_DELIVERY_FAILED: Verification email could not be sent
    """
)
async def register(
    request: RegisterRequest,
    session: SessionDep,
    auth_service: AuthServiceDep,
):
    """Register a new user"""
    user, pair = await auth_service.register(session, request)
    return SuccessResponse(
        data=_auth_response(user, pair),
        message="Registration successful. Please check your email to verify your account",
    )


@router.post(
    "/login",
    response_model=SuccessResponse[AuthResponse],
    summary="User login",
    description="""
    Authenticate with email and password.

    Unknown email and wrong password return the same error.
    Email verification is not required to log in.

    **Errors:**
    - 401 INVALID_CREDENTIALS
    """
)
async def login(
    request: LoginRequest,
    session: SessionDep,
    auth_service: AuthServiceDep,
):
    """Log in and receive a token pair"""
    user, pair = await auth_service.login(session, request.email, request.password)
    return SuccessResponse(data=_auth_response(user, pair), message="Login successful")


@router.post(
    "/refresh",
    response_model=SuccessResponse[TokenOut],
    summary="Refresh tokens",
    description="""
    Exchange a refresh token for a new token pair built from the current
    user record.

    **Errors:**
    - 400 MISSING_TOKEN
    - 401 INVALID_TOKEN / WRONG_TOKEN_TYPE / USER_NOT_FOUND
    """
)
async def refresh(
    request: RefreshRequest,
    session: SessionDep,
    auth_service: AuthServiceDep,
):
    """Refresh the token pair"""
    pair = await auth_service.refresh(session, request.refresh_token)
    return SuccessResponse(data=TokenOut.model_validate(pair), message="Tokens refreshed")


@router.post(
    "/logout",
    response_model=SuccessResponse[None],
    summary="User logout",
    description="""
    Logout current user (stateless, mainly for client-side cleanup).

    Refresh tokens are not stored on the server, so they stay valid until
    they expire; the client is expected to discard both tokens.
    """
)
async def logout(
    identity: IdentityDep,
    auth_service: AuthServiceDep,
):
    """User logout"""
    await auth_service.logout(identity.user_id)
    return SuccessResponse(data=None, message="Logout successful")


# ==================== Profile ====================

@router.get(
    "/profile",
    response_model=SuccessResponse[UserOut],
    summary="Get current user profile",
)
async def get_profile(
    identity: IdentityDep,
    session: SessionDep,
    auth_service: AuthServiceDep,
):
    """Get the caller's profile"""
    user = await auth_service.get_profile(session, identity.user_id)
    return SuccessResponse(data=UserOut.model_validate(user))


@router.patch(
    "/profile",
    response_model=SuccessResponse[UserOut],
    summary="Update current user profile",
    description="""
    Update username and/or email. Only the fields sent are changed.

    **Errors:**
    - 400 EMPTY_PATCH: No fields sent
    - 400 DUPLICATE_EMAIL / DUPLICATE_USERNAME
    - 404 USER_NOT_FOUND
    """
)
async def update_profile(
    request: UpdateProfileRequest,
    identity: IdentityDep,
    session: SessionDep,
    auth_service: AuthServiceDep,
):
    """Update the caller's profile"""
    user = await auth_service.update_profile(session, identity.user_id, request)
    return SuccessResponse(data=UserOut.model_validate(user), message="Profile updated")


# ==================== Email Verification ====================

@router.get(
    "/verify-email",
    response_model=SuccessResponse[UserOut],
    summary="Verify email address",
    description="""
    Consume the verification token sent by email (the link points here).

    **Errors:**
    - 400 MISSING_TOKEN / INVALID_TOKEN / ALREADY_VERIFIED
    """
)
async def verify_email(
    session: SessionDep,
    auth_service: AuthServiceDep,
    token: Annotated[str | None, Query(description="Verification token")] = None,
):
    """Verify an email address"""
    user = await auth_service.verify_email(session, token)
    return SuccessResponse(data=UserOut.model_validate(user), message="Email verified successfully")


@router.post(
    "/resend-verification",
    response_model=SuccessResponse[None],
    summary="Resend verification email",
    description="""
    Generate a new verification token and email it again.

    **Errors:**
    - 400 ALREADY_VERIFIED
    - 404 USER_NOT_FOUND
    - 500 EMAIL_DELIVERY_FAILED
    """
)
async def resend_verification(
    identity: IdentityDep,
    session: SessionDep,
    auth_service: AuthServiceDep,
):
    """Resend the verification email"""
    await auth_service.resend_verification(session, identity.user_id)
    return SuccessResponse(data=None, message="Verification email sent")


# ==================== Password Reset ====================

@router.post(
    "/forgot-password",
    response_model=SuccessResponse[None],
    summary="Request password reset",
    description="""
    Email a password reset link. The response is identical whether or not
    the email is registered.
    """
)
async def forgot_password(
    request: ForgotPasswordRequest,
    session: SessionDep,
    auth_service: AuthServiceDep,
):
    """Request a password reset email"""
    message = await auth_service.forgot_password(session, request.email)
    return SuccessResponse(data=None, message=message)


@router.post(
    "/reset-password",
    response_model=SuccessResponse[None],
    summary="Reset password",
    description="""
    Set a new password with the token from the reset email.

    **Errors:**
    - 400 MISSING_TOKEN / INVALID_TOKEN / WRONG_TOKEN_TYPE / EMAIL_MISMATCH
    - 404 USER_NOT_FOUND
    """
)
async def reset_password(
    request: ResetPasswordRequest,
    session: SessionDep,
    auth_service: AuthServiceDep,
):
    """Reset the password"""
    await auth_service.reset_password(session, request.token, request.new_password)
    return SuccessResponse(data=None, message="Password has been reset successfully")
