"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, create_engine, select

from shopfront.backend.app import create_app
from shopfront.backend.config import JwtSettings, Settings
from shopfront.backend.enum import OrderStatus, UserRole
from shopfront.backend.model import Order, Product, User

VERIFY_TOKEN_RE = re.compile(r"verify-email\?token=([0-9a-f]{64})")
RESET_TOKEN_RE = re.compile(r"reset-password\?token=(\S+)")


@dataclass
class SentEmail:
    to: str
    subject: str
    body: str


class RecordingMailer:
    """Mailer double that keeps messages in memory and can be told to fail."""

    def __init__(self):
        self.sent: list[SentEmail] = []
        self.fail = False

    def send(self, to_email: str, subject: str, body: str) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append(SentEmail(to_email, subject, body))

    def last_to(self, to_email: str) -> SentEmail:
        for email in reversed(self.sent):
            if email.to == to_email:
                return email
        raise AssertionError(f"No email sent to {to_email}")

    def verification_token(self, to_email: str) -> str:
        match = VERIFY_TOKEN_RE.search(self.last_to(to_email).body)
        assert match, "verification link not found in email"
        return match.group(1)

    def reset_token(self, to_email: str) -> str:
        match = RESET_TOKEN_RE.search(self.last_to(to_email).body)
        assert match, "reset link not found in email"
        return match.group(1)


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        public_url="http://testserver",
        jwt=JwtSettings(
            access_secret="test-access-secret",
            refresh_secret="test-refresh-secret",
        ),
        security={"bcrypt_rounds": 4},
        email={"backend": "console"},
    )


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def app(tmp_path, settings, mailer):
    return create_app(tmp_path, settings, mailer=mailer)


@pytest.fixture()
def client(app):
    """Test client with the application lifespan (table creation) running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db(client, tmp_path):
    """Blocking engine on the same database file, for seeding and inspection."""
    engine = create_engine(f"sqlite:///{tmp_path / 'data' / 'shopfront.db'}")
    yield engine
    engine.dispose()


@pytest.fixture()
def add_product(db):
    def _add(name: str, price: str, in_stock: bool = True) -> int:
        with Session(db) as session:
            product = Product(name=name, price=Decimal(price), in_stock=in_stock)
            session.add(product)
            session.commit()
            session.refresh(product)
            return product.id

    return _add


@pytest.fixture()
def set_user(db):
    """Modify a stored user directly."""

    def _set(user_id: int, **fields) -> None:
        with Session(db) as session:
            user = session.get(User, user_id)
            for name, value in fields.items():
                setattr(user, name, value)
            session.add(user)
            session.commit()

    return _set


@pytest.fixture()
def set_order_status(db):
    def _set(order_id: int, status: OrderStatus) -> None:
        with Session(db) as session:
            order = session.get(Order, order_id)
            order.status = status
            session.add(order)
            session.commit()

    return _set


@pytest.fixture()
def count_rows(db):
    def _count(model) -> int:
        with Session(db) as session:
            return len(session.exec(select(model)).all())

    return _count


@pytest.fixture()
def register(client):
    """Register a user over HTTP and return the response."""

    def _register(username: str = "alice", email: str = "alice@example.com", password: str = "secret1"):
        return client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
        )

    return _register


@dataclass
class Account:
    id: int
    email: str
    password: str
    access_token: str
    refresh_token: str

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.access_token}"}


@pytest.fixture()
def make_user(client, register, mailer, set_user):
    """Register a user, optionally verify the email and set a role."""

    def _make(
        username: str = "alice",
        email: str = "alice@example.com",
        password: str = "secret1",
        verified: bool = True,
        role: UserRole = UserRole.USER,
    ) -> Account:
        response = register(username, email, password)
        assert response.status_code == 201, response.json()
        data = response.json()["data"]

        if verified:
            token = mailer.verification_token(email)
            verify = client.get("/api/auth/verify-email", params={"token": token})
            assert verify.status_code == 200, verify.json()
        if role != UserRole.USER:
            set_user(data["user"]["id"], role=role)

        return Account(
            id=data["user"]["id"],
            email=email,
            password=password,
            access_token=data["tokens"]["access_token"],
            refresh_token=data["tokens"]["refresh_token"],
        )

    return _make
