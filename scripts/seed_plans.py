#!/usr/bin/env python3
"""
Seed Plans Script

Creates missing tables and inserts the default plan catalog
(Básico, Profissional, Premium) when no plan exists yet.
Usage: python scripts/seed_plans.py
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import SessionLocal, init_db
from models.plan import Plan
from core.logger import get_logger

logger = get_logger(__name__)


if __name__ == "__main__":
    init_db(seed=True)

    db = SessionLocal()
    try:
        for plan in db.query(Plan).order_by(Plan.priority.asc()).all():
            contacts = plan.max_contacts if plan.max_contacts is not None else "unlimited"
            photos = plan.max_photos if plan.max_photos is not None else "unlimited"
            print(f"✅ {plan.name}: R$ {plan.monthly_price}/mês, contacts={contacts}, photos={photos}")
    finally:
        db.close()
