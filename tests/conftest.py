"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from datetime import date
from decimal import Decimal
from uuid import uuid4

# Set test environment before importing app
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["DEBUG"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from acente_crm.config import Settings
from acente_crm.db.models import Base, Customer

# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    # Import here to ensure env vars are set
    from acente_crm.dependencies import get_db
    from acente_crm.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def settings() -> Settings:
    """Settings with a small batch size so batching is exercised."""
    return Settings(import_batch_size=100, import_batch_timeout_seconds=5.0)


@pytest.fixture
def make_customer(db: Session) -> Callable[..., Customer]:
    """Factory storing a policy row with sensible defaults."""

    def _make(**overrides) -> Customer:
        values = {
            "id": str(uuid4()),
            "tanzim_tarihi": date(2024, 1, 15),
            "musteri_ismi": "Ayşe Yılmaz",
            "hesap_kodu": "H-001",
            "police_numarasi": f"P-{uuid4().hex[:8]}",
            "ana_brans": "Kasko",
            "police_turu": "Yeni",
            "baslangic_tarihi": date(2024, 1, 15),
            "bitis_tarihi": date(2025, 1, 15),
            "brut": Decimal("4000.00"),
            "net": Decimal("3800.00"),
            "tc_kimlik_no": "11111111111",
        }
        values.update(overrides)
        customer = Customer(**values)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make

