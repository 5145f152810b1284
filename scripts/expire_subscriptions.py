#!/usr/bin/env python3
"""
Expire Subscriptions Script

Marks professionals whose paid period has ended as inactive.
Run from cron at least daily when the HTTP job endpoint is not used.
Usage: python scripts/expire_subscriptions.py
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from core.database import SessionLocal
from services.subscription_service import SubscriptionService
from core.logger import get_logger

logger = get_logger(__name__)


def expire_subscriptions() -> bool:
    db: Session = SessionLocal()

    try:
        result = SubscriptionService.sweep_expired(db)
        print(f"✅ Marked {result['expired_count']} lapsed subscription(s) inactive")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Error expiring subscriptions: {str(e)}", exc_info=True)
        db.rollback()
        print(f"❌ Error: {str(e)}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(0 if expire_subscriptions() else 1)
