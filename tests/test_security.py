"""Unit tests for password hashing and the token service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from jose import jwt
from pydantic import ValidationError

from shopfront.backend.config import JwtSettings
from shopfront.backend.enum import UserRole
from shopfront.backend.security import (
    InvalidTokenError,
    PasswordHasher,
    TokenService,
    WrongTokenTypeError,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def jwt_settings() -> JwtSettings:
    return JwtSettings(access_secret="secret-a", refresh_secret="secret-b")


@pytest.fixture()
def tokens(jwt_settings) -> TokenService:
    return TokenService(jwt_settings, clock=lambda: NOW)


@pytest.fixture()
def user():
    return SimpleNamespace(id=7, username="alice", email="alice@example.com", role=UserRole.MANAGER)


def test_password_hash_round_trip():
    hasher = PasswordHasher(rounds=4)
    password_hash = hasher.hash("secret1")

    assert password_hash != "secret1"
    assert hasher.verify("secret1", password_hash)
    assert not hasher.verify("secret2", password_hash)


def test_long_passwords_are_not_truncated():
    hasher = PasswordHasher(rounds=4)
    base = "x" * 80
    password_hash = hasher.hash(base + "1")

    assert not hasher.verify(base + "2", password_hash)


def test_verify_against_malformed_hash_is_false():
    assert not PasswordHasher(rounds=4).verify("secret1", "not-a-hash")


def test_token_pair_claims(tokens, user):
    pair = tokens.issue_token_pair(user)

    access = tokens.verify_access(pair.access_token)
    assert access["userId"] == 7
    assert access["username"] == "alice"
    assert access["email"] == "alice@example.com"
    assert access["role"] == "manager"
    assert access["exp"] - access["iat"] == 15 * 60

    refresh = tokens.verify_refresh(pair.refresh_token)
    assert refresh["userId"] == 7
    assert refresh["type"] == "refresh"
    assert refresh["exp"] - refresh["iat"] == 7 * 24 * 3600

    assert pair.token_type == "bearer"
    assert pair.expires_in == 15 * 60


def test_access_and_refresh_use_distinct_secrets(jwt_settings, tokens, user):
    pair = tokens.issue_token_pair(user)

    assert jwt.decode(pair.access_token, "secret-a", algorithms=["HS256"], options={"verify_exp": False})
    with pytest.raises(InvalidTokenError):
        tokens.verify_refresh(pair.access_token)
    with pytest.raises(InvalidTokenError):
        tokens.verify_access(pair.refresh_token)


def test_expired_access_token_rejected(jwt_settings, tokens, user):
    pair = tokens.issue_token_pair(user)
    later = TokenService(jwt_settings, clock=lambda: NOW + timedelta(minutes=15, seconds=1))

    with pytest.raises(InvalidTokenError):
        later.verify_access(pair.access_token)
    # The refresh token outlives the access token
    assert later.verify_refresh(pair.refresh_token)["userId"] == 7


def test_expired_refresh_token_rejected(jwt_settings, tokens, user):
    pair = tokens.issue_token_pair(user)
    later = TokenService(jwt_settings, clock=lambda: NOW + timedelta(days=8))

    with pytest.raises(InvalidTokenError):
        later.verify_refresh(pair.refresh_token)


def test_refresh_secret_with_other_type_is_wrong_type(tokens):
    token = jwt.encode(
        {"userId": 7, "type": "password-reset", "exp": int((NOW + timedelta(hours=1)).timestamp())},
        "secret-b",
        algorithm="HS256",
    )
    with pytest.raises(WrongTokenTypeError):
        tokens.verify_refresh(token)


def test_tampered_token_rejected(tokens, user):
    token = tokens.issue_token_pair(user).access_token
    header, payload, signature = token.split(".")
    tampered = ".".join([header, payload, signature[::-1]])

    with pytest.raises(InvalidTokenError):
        tokens.verify_access(tampered)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_tokens_rejected(tokens, token):
    with pytest.raises(InvalidTokenError):
        tokens.verify_access(token)


def test_token_without_user_id_rejected(tokens):
    token = jwt.encode(
        {"username": "alice", "email": "a@example.com", "exp": int((NOW + timedelta(minutes=5)).timestamp())},
        "secret-a",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        tokens.verify_access(token)


def test_password_reset_token(tokens, user):
    token = tokens.issue_password_reset_token(user)

    claims = tokens.verify_password_reset(token)
    assert claims["userId"] == 7
    assert claims["email"] == "alice@example.com"
    assert claims["exp"] - claims["iat"] == 3600

    # A reset token is never usable as a bearer token
    with pytest.raises(InvalidTokenError):
        tokens.verify_access(token)


def test_access_token_is_not_a_reset_token(tokens, user):
    pair = tokens.issue_token_pair(user)
    with pytest.raises(WrongTokenTypeError):
        tokens.verify_password_reset(pair.access_token)


def test_identical_secrets_rejected():
    with pytest.raises(ValidationError):
        JwtSettings(access_secret="same", refresh_secret="same")
