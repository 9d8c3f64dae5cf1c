"""Authentication service"""
import asyncio
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..config import Settings
from ..exception import (
    AuthenticationError,
    DependencyError,
    DuplicateResourceError,
    NotFoundError,
    ValidationError,
)
from ..mail import Mailer, password_reset_email, verification_email
from ..model import User
from ..model.base import utcnow
from ..schema.auth import RegisterRequest, UpdateProfileRequest
from ..security import (
    InvalidTokenError,
    PasswordHasher,
    TokenPair,
    TokenService,
    WrongTokenTypeError,
)

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent"
)


class AuthService:
    """Registration, login, token refresh, email verification and password reset

    Collaborators are passed in once at startup; every operation takes the
    request's database session as its first argument.
    """

    def __init__(
        self,
        settings: Settings,
        tokens: TokenService,
        hasher: PasswordHasher,
        mailer: Mailer,
    ):
        self.settings = settings
        self.tokens = tokens
        self.hasher = hasher
        self.mailer = mailer

    # ==================== Lookups ====================

    @staticmethod
    async def get_user(session: AsyncSession, user_id: int) -> User | None:
        """Load a user by id"""
        return await session.get(User, user_id)

    @staticmethod
    async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
        """Load a user by (normalized) email"""
        result = await session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
        """Load a user by username (case-insensitive)"""
        result = await session.execute(
            select(User).where(func.lower(User.username) == username.lower())
        )
        return result.scalar_one_or_none()

    # ==================== Helpers ====================

    def _new_verification_token(self) -> tuple[str, datetime]:
        token = secrets.token_hex(32)
        expires_at = utcnow() + timedelta(
            hours=self.settings.email.verification_token_expire_hours
        )
        return token, expires_at

    async def _send_verification_email(self, user_email: str, username: str, token: str) -> None:
        """Send the verification link, raising DependencyError on failure"""
        subject, body = verification_email(
            self.settings.public_url,
            username,
            token,
            self.settings.email.verification_token_expire_hours,
        )
        try:
            await asyncio.to_thread(self.mailer.send, user_email, subject, body)
        except Exception as e:
            logger.exception(f"Failed to send verification email to {user_email}")
            raise DependencyError(
                "Failed to send verification email, please try again later",
                code="EMAIL_DELIVERY_FAILED",
            ) from e

    @staticmethod
    async def _duplicate_error(
        session: AsyncSession,
        email: str | None,
        username: str | None,
        exclude_user_id: int | None = None,
    ) -> DuplicateResourceError | None:
        """Find which unique field clashes with an existing user

        Emails and usernames are compared case-insensitively.
        """
        if email is not None:
            stmt = select(User.id).where(func.lower(User.email) == email.lower())
            if exclude_user_id is not None:
                stmt = stmt.where(User.id != exclude_user_id)
            if (await session.execute(stmt)).first() is not None:
                return DuplicateResourceError("Email is already registered", code="DUPLICATE_EMAIL")
        if username is not None:
            stmt = select(User.id).where(func.lower(User.username) == username.lower())
            if exclude_user_id is not None:
                stmt = stmt.where(User.id != exclude_user_id)
            if (await session.execute(stmt)).first() is not None:
                return DuplicateResourceError("Username is already taken", code="DUPLICATE_USERNAME")
        return None

    async def _commit_unique(
        self,
        session: AsyncSession,
        email: str | None,
        username: str | None,
        exclude_user_id: int | None = None,
    ) -> None:
        """Commit, turning a unique constraint violation into DuplicateResourceError

        The pre-checks only catch the common case; when two requests race
        for the same email or username the constraint decides the loser.
        """
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.warning(f"Unique constraint violated on commit: email={email}, username={username}")
            error = await self._duplicate_error(session, email, username, exclude_user_id)
            if error is None:
                error = DuplicateResourceError("User already exists")
            raise error from e

    # ==================== Registration & Login ====================

    async def register(self, session: AsyncSession, request: RegisterRequest) -> tuple[User, TokenPair]:
        """Register a new user

        Steps (each one gates the next):
            1. Email and username arrive trimmed, email lower-cased
            2. Reject an already registered email
            3. Reject an already taken username
            4. Generate verification token (24h by default)
            5. Send the verification email; nothing is stored if this fails
            6. Insert the user with hashed password and token
            7. Issue a token pair

        Raises:
            DuplicateResourceError: Email or username already in use
            DependencyError: Verification email could not be sent
        """
        email = request.email
        username = request.username

        if await self.get_user_by_email(session, email):
            logger.warning(f"Registration rejected, email already registered: {email}")
            raise DuplicateResourceError("Email is already registered", code="DUPLICATE_EMAIL")

        if await self.get_user_by_username(session, username):
            logger.warning(f"Registration rejected, username already taken: {username}")
            raise DuplicateResourceError("Username is already taken", code="DUPLICATE_USERNAME")

        token, expires_at = self._new_verification_token()
        await self._send_verification_email(email, username, token)

        password_hash = await asyncio.to_thread(self.hasher.hash, request.password)
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            email_verified=False,
            email_verification_token=token,
            email_verification_token_expires_at=expires_at,
        )
        session.add(user)
        await self._commit_unique(session, email, username)
        await session.refresh(user)

        logger.info(f"User registered: {user.username} (id={user.id})")
        return user, self.tokens.issue_token_pair(user)

    async def login(self, session: AsyncSession, email: str, password: str) -> tuple[User, TokenPair]:
        """Authenticate with email and password

        Unknown email and wrong password produce the same error.
        Email verification is not required to log in.

        Raises:
            AuthenticationError: Invalid email or password
        """
        user = await self.get_user_by_email(session, email)
        valid = user is not None and await asyncio.to_thread(
            self.hasher.verify, password, user.password_hash
        )
        if not valid:
            logger.warning(f"Login failed for email: {email}")
            raise AuthenticationError("Invalid email or password", code="INVALID_CREDENTIALS")

        logger.info(f"User logged in: {user.username} (id={user.id})")
        return user, self.tokens.issue_token_pair(user)

    async def refresh(self, session: AsyncSession, refresh_token: str | None) -> TokenPair:
        """Exchange a refresh token for a new token pair

        The new access token is built from the live user record, so role or
        email changes since the refresh token was issued are picked up.

        Raises:
            ValidationError: Token not provided
            AuthenticationError: Token invalid, expired, of the wrong type, or
                its user no longer exists
        """
        if not refresh_token:
            raise ValidationError("Refresh token is required", code="MISSING_TOKEN")

        try:
            claims = self.tokens.verify_refresh(refresh_token)
        except WrongTokenTypeError as e:
            logger.warning("Refresh rejected: wrong token type")
            raise AuthenticationError("Invalid token type", code="WRONG_TOKEN_TYPE") from e
        except InvalidTokenError as e:
            logger.warning(f"Refresh rejected: {e}")
            raise AuthenticationError("Invalid or expired refresh token", code="INVALID_TOKEN") from e

        user = await self.get_user(session, claims["userId"])
        if user is None:
            logger.warning(f"Refresh rejected: user {claims['userId']} not found")
            raise AuthenticationError("User not found", code="USER_NOT_FOUND")

        logger.debug(f"Tokens refreshed for user: {user.id}")
        return self.tokens.issue_token_pair(user)

    async def logout(self, user_id: int) -> None:
        """Log out

        Refresh tokens are not stored server-side, so there is nothing to
        revoke; the client discards its tokens.
        """
        logger.info(f"User logged out: {user_id}")

    # ==================== Email Verification ====================

    async def resend_verification(self, session: AsyncSession, user_id: int) -> None:
        """Regenerate the verification token and email it again

        Raises:
            NotFoundError: User no longer exists
            ValidationError: Email already verified
            DependencyError: Email could not be sent
        """
        user = await self.get_user(session, user_id)
        if user is None:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        if user.email_verified:
            raise ValidationError("Email is already verified", code="ALREADY_VERIFIED")

        token, expires_at = self._new_verification_token()
        await self._send_verification_email(user.email, user.username, token)

        user.email_verification_token = token
        user.email_verification_token_expires_at = expires_at
        user.touch()
        await session.commit()
        logger.info(f"Verification email resent to user: {user.id}")

    async def verify_email(self, session: AsyncSession, token: str | None) -> User:
        """Consume a verification token

        Raises:
            ValidationError: Token missing, unknown, expired, or the email is
                already verified
        """
        if not token:
            raise ValidationError("Verification token is required", code="MISSING_TOKEN")

        stmt = select(User).where(
            User.email_verification_token == token,
            User.email_verification_token_expires_at > utcnow(),
        )
        user = (await session.execute(stmt)).scalar_one_or_none()
        if user is None:
            logger.warning("Email verification rejected: invalid or expired token")
            raise ValidationError("Invalid or expired verification token", code="INVALID_TOKEN")
        # Consuming clears the token; a verified row only matches if the flag was set elsewhere
        if user.email_verified:
            raise ValidationError("Email is already verified", code="ALREADY_VERIFIED")

        user.email_verified = True
        user.email_verification_token = None
        user.email_verification_token_expires_at = None
        user.touch()
        await session.commit()

        logger.info(f"Email verified for user: {user.id}")
        return user

    # ==================== Password Reset ====================

    async def forgot_password(self, session: AsyncSession, email: str) -> str:
        """Email a password reset link if the account exists

        Always returns the same message so the response does not reveal
        whether the email is registered. Delivery failures are logged only.
        """
        user = await self.get_user_by_email(session, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return FORGOT_PASSWORD_MESSAGE

        token = self.tokens.issue_password_reset_token(user)
        subject, body = password_reset_email(
            self.settings.public_url,
            user.username,
            token,
            self.settings.jwt.password_reset_expire_minutes,
        )
        try:
            await asyncio.to_thread(self.mailer.send, user.email, subject, body)
            logger.info(f"Password reset email sent to user: {user.id}")
        except Exception:
            logger.exception(f"Failed to send password reset email to user: {user.id}")
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, session: AsyncSession, token: str | None, new_password: str) -> None:
        """Set a new password using a reset token

        The email inside the token must still be the account's email, so a
        token stops working once the email changes.

        Raises:
            ValidationError: Token missing, invalid, expired, of the wrong type,
                or issued for a different email
            NotFoundError: User no longer exists
        """
        if not token:
            raise ValidationError("Reset token is required", code="MISSING_TOKEN")

        try:
            claims = self.tokens.verify_password_reset(token)
        except WrongTokenTypeError as e:
            raise ValidationError("Invalid token type", code="WRONG_TOKEN_TYPE") from e
        except InvalidTokenError as e:
            logger.warning(f"Password reset rejected: {e}")
            raise ValidationError("Invalid or expired reset token", code="INVALID_TOKEN") from e

        user = await self.get_user(session, claims["userId"])
        if user is None:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        if claims["email"].lower() != user.email:
            logger.warning(f"Password reset rejected: email changed for user {user.id}")
            raise ValidationError(
                "Reset token does not match the account email",
                code="EMAIL_MISMATCH",
            )

        user.password_hash = await asyncio.to_thread(self.hasher.hash, new_password)
        user.touch()
        await session.commit()
        logger.info(f"Password reset for user: {user.id}")

    # ==================== Profile ====================

    async def get_profile(self, session: AsyncSession, user_id: int) -> User:
        """Load the caller's profile

        Raises:
            NotFoundError: User no longer exists
        """
        user = await self.get_user(session, user_id)
        if user is None:
            raise NotFoundError("User not found", code="USER_NOT_FOUND")
        return user

    async def update_profile(
        self,
        session: AsyncSession,
        user_id: int,
        request: UpdateProfileRequest,
    ) -> User:
        """Apply a profile patch

        Raises:
            ValidationError: Nothing to update
            DuplicateResourceError: Username or email belongs to another user
            NotFoundError: User no longer exists
        """
        changes = request.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("No fields to update", code="EMPTY_PATCH")

        user = await self.get_profile(session, user_id)

        error = await self._duplicate_error(
            session,
            changes.get("email"),
            changes.get("username"),
            exclude_user_id=user.id,
        )
        if error is not None:
            logger.warning(f"Profile update rejected for user {user.id}: {error.code}")
            raise error

        for field, value in changes.items():
            setattr(user, field, value)
        user.touch()
        await self._commit_unique(
            session,
            changes.get("email"),
            changes.get("username"),
            exclude_user_id=user.id,
        )
        await session.refresh(user)

        logger.info(f"Profile updated for user {user.id}: {sorted(changes)}")
        return user
