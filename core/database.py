"""
Database Setup

SQLAlchemy engine, session factory and declarative base.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from core.config import get_settings
from core.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency yielding a database session.

    The session is closed when the request finishes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(seed: bool = True) -> None:
    """
    Create all tables and optionally seed the default plan catalog.

    Args:
        seed: Seed default plans when the catalog is empty
    """
    import models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)

    if seed:
        from services.plan_service import PlanService

        db = SessionLocal()
        try:
            created = PlanService.seed_default_plans(db)
            if created:
                logger.info(f"Seeded {created} default plans")
        finally:
            db.close()
