"""Dependency injection functions for FastAPI routes

Access control is a chain of dependencies, each one short-circuiting the
request with an exception:

    get_current_identity      bearer token -> Identity (401 missing, 403 invalid)
    require_verified_email    403 EMAIL_NOT_VERIFIED
    require_roles(...)        403 INSUFFICIENT_ROLE
    ensure_owner(...)         403 FORBIDDEN (called from the route body)
"""

import logging
from dataclasses import dataclass
from typing import Annotated, AsyncGenerator, Callable, TypeVar

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .enum import UserRole
from .exception import AuthenticationError, AuthorizationError
from .model import User
from .schema.response import EmailVerificationStatus, VerifiedSuccessResponse
from .security import TokenError, TokenService
from .service import AuthService, OrderService

logger = logging.getLogger(__name__)

T = TypeVar("T")

# HTTP Bearer token scheme; a missing header is reported by get_current_identity
bearer_scheme = HTTPBearer(auto_error=False)

UNVERIFIED_WARNING = "Please verify your email address to place orders"


@dataclass(frozen=True)
class Identity:
    """Caller identity resolved from a verified access token"""

    user_id: int
    username: str
    email: str
    role: str


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get async database session from app state

    This dependency provides a database session to route handlers.
    The session is automatically committed on success or rolled back on exception.

    Yields:
        AsyncSession: Database session for this request
    """
    async_session_factory = request.app.state.async_session_factory

    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> Identity:
    """Authenticate the request from its ``Authorization: Bearer`` header

    Raises:
        AuthenticationError: 401 MISSING_TOKEN when no bearer token is sent,
            403 INVALID_TOKEN when the token fails verification
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token is required", code="MISSING_TOKEN")

    token = credentials.credentials
    try:
        claims = tokens.verify_access(token)
    except TokenError as e:
        logger.warning(f"Access token rejected ({e}): {token[:20]}...")
        raise AuthenticationError(
            "Invalid or expired access token",
            code="INVALID_TOKEN",
            status_code=403,
        ) from e

    return Identity(
        user_id=claims["userId"],
        username=claims["username"],
        email=claims["email"],
        role=claims.get("role", UserRole.USER.value),
    )


IdentityDep = Annotated[Identity, Depends(get_current_identity)]


async def get_current_user(identity: IdentityDep, session: SessionDep) -> User:
    """Load the live user record behind the access token

    Raises:
        AuthenticationError: The account no longer exists
    """
    user = await session.get(User, identity.user_id)
    if user is None:
        logger.warning(f"Token refers to missing user: {identity.user_id}")
        raise AuthenticationError("User not found", code="USER_NOT_FOUND")
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


async def require_verified_email(user: CurrentUserDep) -> User:
    """Reject callers whose email address is not verified

    Raises:
        AuthorizationError: 403 EMAIL_NOT_VERIFIED
    """
    if not user.email_verified:
        logger.warning(f"Unverified user {user.id} blocked from a verified-only route")
        raise AuthorizationError(
            "Email verification required. Please check your inbox for the verification link",
            code="EMAIL_NOT_VERIFIED",
        )
    return user


VerifiedUserDep = Annotated[User, Depends(require_verified_email)]


def require_roles(*roles: UserRole) -> Callable:
    """Build a dependency that admits only the given roles

    The role is read from the live user record, so promotions and
    demotions apply without waiting for new tokens.

    Usage:
        @router.get("/all", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """
    allowed = {role.value for role in roles}

    async def check_role(user: CurrentUserDep) -> User:
        if user.role.value not in allowed:
            logger.warning(f"User {user.id} with role {user.role.value} denied, requires {sorted(allowed)}")
            raise AuthorizationError(
                "Insufficient permissions",
                code="INSUFFICIENT_ROLE",
                extra={"required_roles": [role.value for role in roles]},
            )
        return user

    return check_role


def ensure_owner(user: User, owner_id: int) -> None:
    """Reject access to another user's resources (admins are exempt)

    Raises:
        AuthorizationError: 403 FORBIDDEN
    """
    if user.id != owner_id and user.role != UserRole.ADMIN:
        logger.warning(f"User {user.id} denied access to resources of user {owner_id}")
        raise AuthorizationError("Access denied", code="FORBIDDEN")


async def get_verification_status(user: CurrentUserDep) -> EmailVerificationStatus:
    """Non-blocking verification check for routes where it is advisory"""
    if user.email_verified:
        return EmailVerificationStatus(verified=True)
    return EmailVerificationStatus(verified=False, warning=UNVERIFIED_WARNING)


VerificationStatusDep = Annotated[EmailVerificationStatus, Depends(get_verification_status)]


def with_verification_status(
    data: T,
    status: EmailVerificationStatus,
    message: str | None = None,
) -> VerifiedSuccessResponse[T]:
    """Wrap response data together with the caller's verification status"""
    return VerifiedSuccessResponse(
        data=data,
        message=message,
        email_verification_status=status,
    )
