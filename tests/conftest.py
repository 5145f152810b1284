"""
Pytest Configuration and Fixtures

Provides shared test fixtures for all tests.
"""

import os
import sys
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings are cached on first import
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["SERVICE_TOKEN"] = "test-service-token"
os.environ["LOG_FILE"] = ""
os.environ["REDIS_URL"] = "redis://127.0.0.1:1"

from api.main import app
from api.middleware.rate_limit import limiter
from core.database import Base, get_db
from core.security import create_access_token, get_password_hash
from models.category import Category
from models.plan import Plan
from models.professional import Professional, ProfessionalStatus

SERVICE_TOKEN = "test-service-token"
PASSWORD = "SenhaSegura123!"

# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_UNSET = object()


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def category(db: Session) -> Category:
    category = Category(name="Eletricista", slug="eletricista")
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@pytest.fixture(scope="function")
def make_category(db: Session):
    def _make(name: str) -> Category:
        category = Category(name=name, slug=name.lower())
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make


@pytest.fixture(scope="function")
def make_plan(db: Session):
    """Factory for plans. max_contacts / max_photos None means unlimited."""
    def _make(
        name: str = "Básico",
        max_contacts=30,
        max_photos=5,
        is_featured: bool = False,
        monthly_price: str = "39.90",
        **kwargs
    ) -> Plan:
        plan = Plan(
            name=name,
            monthly_price=Decimal(monthly_price),
            max_contacts=max_contacts,
            max_photos=max_photos,
            is_featured=is_featured,
            **kwargs
        )
        db.add(plan)
        db.commit()
        db.refresh(plan)
        return plan
    return _make


@pytest.fixture(scope="function")
def make_professional(db: Session, category: Category):
    """
    Factory for professionals.

    Active professionals default to a paid period ending 30 days from now;
    pending professionals have no paid period.
    """
    counter = {"n": 0}

    def _make(
        plan: Plan = None,
        status: ProfessionalStatus = ProfessionalStatus.ACTIVE,
        expires_at=_UNSET,
        category_id: str = None,
        **kwargs
    ) -> Professional:
        counter["n"] += 1
        if expires_at is _UNSET:
            expires_at = None if status == ProfessionalStatus.PENDING else datetime.utcnow() + timedelta(days=30)

        data = {
            "full_name": f"Profissional {counter['n']}",
            "email": f"pro{counter['n']}@example.com",
            "password_hash": get_password_hash(PASSWORD),
            "phone": "+55 11 99999-0000",
            "city": "São Paulo",
            "portfolio": [],
        }
        data.update(kwargs)

        professional = Professional(
            category_id=category_id or category.id,
            subscription_plan_id=plan.id if plan else None,
            status=status,
            subscription_expires_at=expires_at,
            **data
        )
        db.add(professional)
        db.commit()
        db.refresh(professional)
        return professional
    return _make


@pytest.fixture(scope="function")
def plan(make_plan) -> Plan:
    return make_plan()


@pytest.fixture(scope="function")
def active_professional(make_professional, plan: Plan) -> Professional:
    return make_professional(plan=plan)


@pytest.fixture(scope="function")
def pending_professional(make_professional, plan: Plan) -> Professional:
    return make_professional(plan=plan, status=ProfessionalStatus.PENDING)


@pytest.fixture(scope="function")
def auth_headers():
    """Build an Authorization header for a professional."""
    def _headers(professional: Professional) -> dict:
        token = create_access_token(data={"sub": professional.id})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture(scope="function")
def service_headers() -> dict:
    return {"X-Service-Token": SERVICE_TOKEN}


@pytest.fixture(scope="function")
def professional_password() -> str:
    """Password of every professional created by make_professional."""
    return PASSWORD
