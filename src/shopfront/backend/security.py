"""Security utilities for password hashing and JWT token handling"""

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from jose import jwt, JWTError
from passlib.context import CryptContext

from .config import JwtSettings
from .enum import TokenType

logger = logging.getLogger(__name__)


# ==================== Password Hashing ====================

def _normalize_password(password: str) -> bytes:
    """Normalize password to handle bcrypt's 72-byte limitation

    Uses SHA256 to hash the password first, ensuring it fits within
    bcrypt's 72-byte limit while maintaining security for long passwords.

    Args:
        password: Plain text password

    Returns:
        Normalized password bytes suitable for bcrypt
    """
    return hashlib.sha256(password.encode("utf-8")).hexdigest().encode("utf-8")


class PasswordHasher:
    """Slow salted password hashing (bcrypt)

    Both operations are CPU bound; callers on the event loop run them
    through ``asyncio.to_thread``.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """Hash password using bcrypt with SHA256 normalization"""
        return self._context.hash(_normalize_password(password))

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify password against a stored hash

        Returns:
            True if password matches, False otherwise (including a
            malformed hash)
        """
        try:
            return self._context.verify(_normalize_password(password), password_hash)
        except ValueError:
            logger.warning("Stored password hash could not be parsed")
            return False


# ==================== JWT Tokens ====================

class TokenError(Exception):
    """Base class for token verification failures"""


class InvalidTokenError(TokenError):
    """Signature invalid, token expired, or claims malformed"""


class WrongTokenTypeError(TokenError):
    """Token is valid but was issued for a different purpose"""


@dataclass(frozen=True)
class TokenPair:
    """Access/refresh token pair handed to clients"""

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Mints and validates signed tokens

    Holds no mutable state: two signing secrets, the token lifetimes and
    a clock. The clock is injectable so expiry can be tested without
    sleeping.

    Usage:
        tokens = TokenService(settings.jwt)
        pair = tokens.issue_token_pair(user)
        claims = tokens.verify_access(pair.access_token)
    """

    def __init__(self, config: JwtSettings, clock: Callable[[], datetime] = _utcnow):
        self._config = config
        self._clock = clock

    @property
    def access_ttl(self) -> timedelta:
        return timedelta(minutes=self._config.access_token_expire_minutes)

    @property
    def refresh_ttl(self) -> timedelta:
        return timedelta(days=self._config.refresh_token_expire_days)

    @property
    def password_reset_ttl(self) -> timedelta:
        return timedelta(minutes=self._config.password_reset_expire_minutes)

    # ---------- issuing ----------

    def _encode(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = self._clock()
        payload = {
            **claims,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self._config.algorithm)

    def issue_token_pair(self, user) -> TokenPair:
        """Issue an access token and a refresh token for a user

        Args:
            user: Object exposing id, username, email and role

        Returns:
            TokenPair with ``expires_in`` in seconds for the access token
        """
        access_claims = {
            "userId": user.id,
            "username": user.username,
            "email": user.email,
            "role": _role_value(user.role),
        }
        access_token = self._encode(
            access_claims, self._config.access_secret, self.access_ttl
        )
        refresh_token = self._encode(
            {"userId": user.id, "type": TokenType.REFRESH.value},
            self._config.refresh_secret,
            self.refresh_ttl,
        )
        logger.debug(f"Issued token pair for user: {user.id}")
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(self.access_ttl.total_seconds()),
        )

    def issue_password_reset_token(self, user) -> str:
        """Issue a self-contained password reset token (signed with the access secret)"""
        claims = {
            "userId": user.id,
            "email": user.email,
            "type": TokenType.PASSWORD_RESET.value,
        }
        return self._encode(claims, self._config.access_secret, self.password_reset_ttl)

    # ---------- verification ----------

    def _decode(self, token: str, secret: str) -> dict[str, Any]:
        if not token:
            raise InvalidTokenError("Token is empty")
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._config.algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError as e:
            logger.debug(f"Failed to decode JWT token: {e}")
            raise InvalidTokenError("Invalid token") from e

        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            raise InvalidTokenError("Token has no expiry")
        if self._clock().timestamp() >= exp:
            raise InvalidTokenError("Token has expired")

        user_id = claims.get("userId")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise InvalidTokenError("Token payload is malformed")
        return claims

    def verify_access(self, token: str) -> dict[str, Any]:
        """Verify an access token

        Raises:
            InvalidTokenError: Bad signature, expired, malformed, or a token
                issued for another purpose (refresh/reset tokens carry a
                ``type`` claim, access tokens never do)
        """
        claims = self._decode(token, self._config.access_secret)
        if "type" in claims:
            raise InvalidTokenError("Not an access token")
        if not isinstance(claims.get("email"), str) or not isinstance(claims.get("username"), str):
            raise InvalidTokenError("Token payload is malformed")
        return claims

    def verify_refresh(self, token: str) -> dict[str, Any]:
        """Verify a refresh token

        Raises:
            InvalidTokenError: Bad signature, expired or malformed
            WrongTokenTypeError: ``type`` claim is not ``refresh``
        """
        claims = self._decode(token, self._config.refresh_secret)
        if claims.get("type") != TokenType.REFRESH.value:
            raise WrongTokenTypeError("Not a refresh token")
        return claims

    def verify_password_reset(self, token: str) -> dict[str, Any]:
        """Verify a password reset token

        Raises:
            InvalidTokenError: Bad signature, expired or malformed
            WrongTokenTypeError: ``type`` claim is not ``password-reset``
        """
        claims = self._decode(token, self._config.access_secret)
        if claims.get("type") != TokenType.PASSWORD_RESET.value:
            raise WrongTokenTypeError("Not a password reset token")
        if not isinstance(claims.get("email"), str):
            raise InvalidTokenError("Token payload is malformed")
        return claims


def _role_value(role) -> str:
    return role.value if hasattr(role, "value") else str(role)
