"""
ParcelFlow Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite, one
       shared connection via StaticPool) with all tables created from the
       ORM metadata. Endpoint tests run a fresh app from create_app() over
       httpx's ASGITransport, with the database session, token verifier and
       payment gateway swapped through FastAPI dependency overrides.

Fixture Hierarchy:
    db_engine ── session_factory ─┬─ db_session           (service tests)
                                  └─ api_client           (endpoint tests)
    file_session_factory: one connection per session (concurrency tests)
    token_verifier: FakeTokenVerifier (token string → email)
    payment_gateway: StubPaymentGateway (records requested amounts)
    mock_db_session: AsyncMock session for failure-path tests
"""

import os

# Settings are read at import time: configure the environment first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_not_real"
os.environ["FIREBASE_PROJECT_ID"] = "parcelflow-test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["RETRY_MAX_ATTEMPTS"] = "2"
os.environ["RETRY_MIN_WAIT"] = "0"
os.environ["RETRY_MAX_WAIT"] = "1"

from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import parcelflow.models  # noqa: F401
from parcelflow.database import Base, get_db_session
from parcelflow.exceptions import UnauthorizedError
from parcelflow.lifecycle import RiderStatus, UserRole
from parcelflow.models.parcel import Parcel
from parcelflow.models.rider import Rider
from parcelflow.models.user import User
from parcelflow.services.gateway_base import PaymentGateway, PaymentIntent
from parcelflow.services.identity_base import TokenVerifier, VerifiedIdentity
from parcelflow.services.parcel_service import generate_tracking_id
from parcelflow.services.stripe_gateway import get_payment_gateway
from parcelflow.services.token_verifier import get_token_verifier


ADMIN_EMAIL = "admin@parcelflow.test"
CUSTOMER_EMAIL = "customer@parcelflow.test"
RIDER_EMAIL = "rider@parcelflow.test"
OTHER_RIDER_EMAIL = "other.rider@parcelflow.test"
NEWCOMER_EMAIL = "newcomer@parcelflow.test"

TOKENS = {
    "admin-token": ADMIN_EMAIL,
    "customer-token": CUSTOMER_EMAIL,
    "rider-token": RIDER_EMAIL,
    "other-rider-token": OTHER_RIDER_EMAIL,
    "newcomer-token": NEWCOMER_EMAIL,
}


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Test doubles for the external collaborators
# ══════════════════════════════════════════════════════════════════════════

class FakeTokenVerifier(TokenVerifier):
    """Accepts exactly the tokens it was given."""

    def __init__(self, tokens: Dict[str, str]):
        self.tokens = tokens

    async def verify(self, token: str) -> VerifiedIdentity:
        email = self.tokens.get(token)
        if email is None:
            raise UnauthorizedError()
        return VerifiedIdentity(email=email, uid=token)


class StubPaymentGateway(PaymentGateway):

    def __init__(self):
        self.requested: List[int] = []

    async def create_payment_intent(self, amount: int) -> PaymentIntent:
        self.requested.append(amount)
        return PaymentIntent(
            id="pi_test_123",
            client_secret="pi_test_123_secret_abc",
            amount=amount,
            currency="bdt",
        )


# ══════════════════════════════════════════════════════════════════════════
# Database fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """
    Sessions on a temporary database file. Unlike session_factory, every
    session gets its own connection, so concurrent writers are serialized by
    SQLite's file lock the way separate requests would be.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'parcelflow.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def mock_db_session():
    """AsyncMock standing in for AsyncSession; configure execute per test."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Seed helpers
# ══════════════════════════════════════════════════════════════════════════

async def add_user(session: AsyncSession, email: str, role: UserRole = UserRole.USER) -> User:
    user = User(email=email, name=email.split("@")[0], role=role.value)
    session.add(user)
    await session.commit()
    return user


async def add_rider(
    session: AsyncSession,
    email: str = RIDER_EMAIL,
    status: RiderStatus = RiderStatus.APPROVED,
    name: str = "Rahim Uddin",
    phone: str = "01700000000",
    district: str = "Dhaka",
) -> Rider:
    rider = Rider(
        name=name,
        email=email,
        phone=phone,
        district=district,
        region="Dhaka",
        status=status.value,
    )
    session.add(rider)
    await session.commit()
    return rider


async def add_parcel(
    session: AsyncSession,
    cost: float = 1000,
    sender_district: Optional[str] = "Dhaka",
    receiver_district: Optional[str] = "Dhaka",
    created_by: str = CUSTOMER_EMAIL,
    tracking_id: Optional[str] = None,
    **fields,
) -> Parcel:
    parcel = Parcel(
        tracking_id=tracking_id or generate_tracking_id(),
        parcel_name="Books",
        created_by=created_by,
        cost=cost,
        sender_district=sender_district,
        receiver_district=receiver_district,
        **fields,
    )
    session.add(parcel)
    await session.commit()
    return parcel


@pytest_asyncio.fixture
async def seeded_users(db_session):
    """Admin and customer accounts; the rider's account starts as a plain user."""
    await add_user(db_session, ADMIN_EMAIL, UserRole.ADMIN)
    await add_user(db_session, CUSTOMER_EMAIL)
    await add_user(db_session, RIDER_EMAIL)
    await add_user(db_session, OTHER_RIDER_EMAIL)


# ══════════════════════════════════════════════════════════════════════════
# API client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def token_verifier():
    return FakeTokenVerifier(TOKENS)


@pytest.fixture
def payment_gateway():
    return StubPaymentGateway()


@pytest_asyncio.fixture
async def api_client(session_factory, token_verifier, payment_gateway):
    from parcelflow.main import create_app

    app = create_app()

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_token_verifier] = lambda: token_verifier
    app.dependency_overrides[get_payment_gateway] = lambda: payment_gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
