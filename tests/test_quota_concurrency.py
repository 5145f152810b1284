"""
Quota Concurrency Tests

The monthly contact limit holds when submissions race: the counter row is
created once and every accepted contact goes through its lock.
"""

import os
import threading
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from core.database import Base
from core.periods import month_bounds
from core.security import get_password_hash
from models.category import Category
from models.contact import ContactEvent
from models.contact_quota import ContactQuotaCounter
from models.plan import Plan
from models.professional import Professional, ProfessionalStatus
from services.quota_service import QuotaService


NOW = datetime(2025, 3, 15, 15, 0, 0)

CONTACT = {"customer_name": "João", "contact_method": "form"}


def _seed_professional(session_factory, max_contacts: int, expires_at: datetime) -> str:
    session = session_factory()
    try:
        category = Category(name="Eletricista", slug="eletricista")
        plan = Plan(name="Básico", monthly_price=Decimal("39.90"), max_contacts=max_contacts, max_photos=5)
        session.add_all([category, plan])
        session.flush()
        professional = Professional(
            full_name="Profissional",
            email="pro@example.com",
            password_hash=get_password_hash("SenhaSegura123!"),
            phone="+55 11 99999-0000",
            category_id=category.id,
            subscription_plan_id=plan.id,
            status=ProfessionalStatus.ACTIVE,
            subscription_expires_at=expires_at,
            portfolio=[],
        )
        session.add(professional)
        session.commit()
        return professional.id
    finally:
        session.close()


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory over a file-backed SQLite database, one connection per session."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'quota.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def test_counter_creation_race_falls_back_to_existing_row(file_sessions):
    professional_id = _seed_professional(file_sessions, max_contacts=3, expires_at=NOW + timedelta(days=30))
    period_start, period_end = month_bounds(NOW)

    db = file_sessions()
    competitor_inserted = []

    @event.listens_for(db, "before_flush")
    def insert_competing_counter(session, flush_context, instances):
        # Another request creates the month's counter between our lookup and our insert
        if competitor_inserted or not any(isinstance(obj, ContactQuotaCounter) for obj in session.new):
            return
        other = file_sessions()
        try:
            other.add(ContactQuotaCounter(
                professional_id=professional_id,
                period_start=period_start,
                period_end=period_end,
                count=0,
            ))
            other.commit()
        finally:
            other.close()
        competitor_inserted.append(True)

    try:
        result = QuotaService.try_consume_contact(professional_id, CONTACT, db, NOW)

        assert competitor_inserted
        assert result.ok
        assert result.accepted.current_month == 1
        counters = db.query(ContactQuotaCounter).filter(
            ContactQuotaCounter.professional_id == professional_id
        ).all()
        assert len(counters) == 1
        assert counters[0].count == 1
        assert db.query(ContactEvent).count() == 1
    finally:
        db.close()


@pytest.mark.skipif(
    not os.environ.get("TEST_POSTGRES_URL"),
    reason="row locks need PostgreSQL; set TEST_POSTGRES_URL to run",
)
def test_concurrent_submissions_never_exceed_limit():
    engine = create_engine(os.environ["TEST_POSTGRES_URL"], pool_size=10)
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    limit, submissions = 3, 10

    try:
        professional_id = _seed_professional(
            session_factory, max_contacts=limit, expires_at=datetime.utcnow() + timedelta(days=30)
        )
        barrier = threading.Barrier(submissions)
        outcomes = []

        def submit():
            session = session_factory()
            try:
                barrier.wait()
                outcomes.append(QuotaService.try_consume_contact(professional_id, CONTACT, session).ok)
            finally:
                session.close()

        threads = [threading.Thread(target=submit) for _ in range(submissions)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        check = session_factory()
        try:
            stored = check.query(ContactEvent).filter(ContactEvent.professional_id == professional_id).count()
        finally:
            check.close()

        assert len(outcomes) == submissions
        assert outcomes.count(True) == limit
        assert stored == limit
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
