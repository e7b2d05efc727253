"""Pytest fixtures for testing"""

import time
import pytest
from decimal import Decimal
from typing import Callable, Generator
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from bigbsubz_gateway.api.main import create_app
from bigbsubz_gateway.api.dependencies import get_backend, get_cable_provider
from bigbsubz_gateway.domain.models import CablePackage, CableProvider
from bigbsubz_gateway.infrastructure.backend.sql import SqlBackend
from bigbsubz_gateway.infrastructure.clients.cable import SimulatedCableProvider
from bigbsubz_gateway.infrastructure.database.models import (
    Base,
    CablePackageRow,
    CableProviderRow,
    Profile,
)

TEST_JWT_SECRET = "test-jwt-secret"

CUSTOMER_ID = "11111111-1111-1111-1111-111111111111"
ADMIN_ID = "22222222-2222-2222-2222-222222222222"
BROKE_ID = "33333333-3333-3333-3333-333333333333"
ORPHAN_ID = "44444444-4444-4444-4444-444444444444"  # has a token but no profile row

DSTV_ID = "dstv"
COMPACT_ID = "pkg-compact"
PREMIUM_ID = "pkg-premium"
PADI_ID = "pkg-padi"


@pytest.fixture
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """Create test database with seeded catalog and profiles"""
    engine = create_engine(f"sqlite:///{tmp_path}/test.db", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with factory() as db:
        dstv = CableProviderRow(id=DSTV_ID, code="dstv", name="DSTV")
        gotv = CableProviderRow(id="gotv", code="gotv", name="GOtv")
        db.add_all([dstv, gotv])
        db.add_all(
            [
                CablePackageRow(id=COMPACT_ID, provider_id=DSTV_ID, name="DStv Compact", amount=Decimal("10500"), duration="1 month"),
                CablePackageRow(id=PREMIUM_ID, provider_id=DSTV_ID, name="DStv Premium", amount=Decimal("29500"), duration="1 month"),
                CablePackageRow(id=PADI_ID, provider_id="gotv", name="GOtv Smallie", amount=Decimal("1300"), duration="1 month"),
            ]
        )
        db.add_all(
            [
                Profile(id=CUSTOMER_ID, name="Ada Obi", email="ada@example.com", role="customer", balance=Decimal("20000")),
                Profile(id=ADMIN_ID, name="Admin", email="admin@example.com", role="admin", balance=Decimal("0")),
                Profile(id=BROKE_ID, name="Tunde", email="tunde@example.com", role="customer", balance=Decimal("100")),
            ]
        )
        db.commit()

    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def backend(session_factory: sessionmaker) -> SqlBackend:
    return SqlBackend(session_factory, jwt_secret=TEST_JWT_SECRET, jwt_algorithm="HS256")


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Sign access tokens the way the platform does"""

    def _make(user_id: str, email: str = "", expires_in: int = 3600) -> str:
        claims = {
            "sub": user_id,
            "email": email,
            "role": "authenticated",
            "aud": "authenticated",
            "exp": int(time.time()) + expires_in,
        }
        return jwt.encode(claims, TEST_JWT_SECRET, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_token) -> Callable[[str], dict]:
    def _headers(user_id: str, email: str = "") -> dict:
        return {"Authorization": f"Bearer {make_token(user_id, email)}"}

    return _headers


@pytest.fixture
def provider() -> SimulatedCableProvider:
    """Provider that always activates"""
    return SimulatedCableProvider(success_rate=1.0)


@pytest.fixture
def app(backend: SqlBackend, provider: SimulatedCableProvider):
    """FastAPI app wired to the SQL backend"""
    app = create_app()

    async def override_get_backend():
        yield backend

    app.dependency_overrides[get_backend] = override_get_backend
    app.dependency_overrides[get_cable_provider] = lambda: provider
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Create FastAPI test client with test database"""
    return TestClient(app)


@pytest.fixture
def dstv_compact() -> CablePackage:
    return CablePackage(
        id=COMPACT_ID,
        name="DStv Compact",
        amount=Decimal("10500"),
        duration="1 month",
        provider=CableProvider(id=DSTV_ID, code="dstv", name="DSTV"),
    )
