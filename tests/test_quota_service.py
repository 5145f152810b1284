"""
Quota Tests

Monthly contact quota, photo slots and approaching-limit warnings.
"""

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from models.contact import ContactEvent, ContactMethod
from models.contact_quota import ContactQuotaCounter
from models.professional import ProfessionalStatus
from services.contact_service import ContactService
from services.portfolio_service import PortfolioService
from services.quota_service import QuotaService
from services.results import QuotaExceeded, SubscriptionInactive
from core.periods import month_bounds


# Mid-month in São Paulo
NOW = datetime(2025, 3, 15, 15, 0, 0)

CONTACT = {"customer_name": "João", "contact_method": "whatsapp"}


def _contacts(db: Session, professional_id: str) -> int:
    return db.query(ContactEvent).filter(ContactEvent.professional_id == professional_id).count()


def test_sixth_contact_rejected_when_limit_is_five(db: Session, make_plan, make_professional):
    plan = make_plan(max_contacts=5)
    professional = make_professional(plan=plan)

    for _ in range(5):
        assert ContactService.submit_contact(professional.id, CONTACT, db, NOW).ok

    result = ContactService.submit_contact(professional.id, CONTACT, db, NOW)

    assert not result.ok
    assert isinstance(result.rejection, QuotaExceeded)
    assert result.rejection.resource == "contacts"
    assert result.rejection.current == 5
    assert result.rejection.max_allowed == 5
    assert result.rejection.remaining == 0
    assert result.rejection.current_month == 5
    assert result.rejection.max_contacts == 5
    assert _contacts(db, professional.id) == 5


def test_rejections_never_persist_contacts(db: Session, make_plan, make_professional):
    plan = make_plan(max_contacts=2)
    professional = make_professional(plan=plan)

    results = [ContactService.submit_contact(professional.id, CONTACT, db, NOW) for _ in range(6)]

    assert [r.ok for r in results] == [True, True, False, False, False, False]
    assert _contacts(db, professional.id) == 2
    assert QuotaService.count_contacts_in_month(professional.id, db, NOW) == 2


def test_accepted_contact_reports_usage(db: Session, make_plan, make_professional):
    plan = make_plan(max_contacts=4)
    professional = make_professional(plan=plan)

    first = ContactService.submit_contact(professional.id, CONTACT, db, NOW).accepted
    second = ContactService.submit_contact(professional.id, CONTACT, db, NOW).accepted

    assert first.current_month == 1
    assert first.remaining == 3
    assert first.approaching_limit is False
    assert second.current_month == 2
    assert second.remaining == 2
    assert second.approaching_limit is True


def test_counter_row_tracks_accepted_contacts(db: Session, make_plan, make_professional):
    plan = make_plan(max_contacts=10)
    professional = make_professional(plan=plan)

    for _ in range(3):
        ContactService.submit_contact(professional.id, CONTACT, db, NOW)

    counter = db.query(ContactQuotaCounter).filter(ContactQuotaCounter.professional_id == professional.id).one()
    assert counter.count == 3


def test_unlimited_plan_accepts_everything(db: Session, make_plan, make_professional):
    plan = make_plan(name="Premium", max_contacts=None)
    professional = make_professional(plan=plan)

    for _ in range(40):
        assert ContactService.submit_contact(professional.id, CONTACT, db, NOW).ok

    snapshot = QuotaService.contact_snapshot(professional, db, NOW)
    assert snapshot.has_limit is False
    assert snapshot.remaining is None
    assert snapshot.current == 40


def test_contacts_from_previous_month_do_not_count(db: Session, make_plan, make_professional):
    plan = make_plan(max_contacts=1)
    professional = make_professional(plan=plan)
    # 02:00 UTC on March 1st is still February 28th in São Paulo
    db.add(ContactEvent(
        professional_id=professional.id,
        contact_method=ContactMethod.FORM,
        created_at=datetime(2025, 3, 1, 2, 0, 0),
    ))
    db.commit()

    assert QuotaService.count_contacts_in_month(professional.id, db, NOW) == 0
    assert ContactService.submit_contact(professional.id, CONTACT, db, NOW).ok
    assert not ContactService.submit_contact(professional.id, CONTACT, db, NOW).ok


def test_quota_resets_next_month(db: Session, make_plan, make_professional):
    plan = make_plan(max_contacts=1)
    professional = make_professional(plan=plan)

    assert ContactService.submit_contact(professional.id, CONTACT, db, NOW).ok
    assert not ContactService.submit_contact(professional.id, CONTACT, db, NOW).ok

    next_month = datetime(2025, 4, 2, 12, 0, 0)
    assert ContactService.submit_contact(professional.id, CONTACT, db, next_month).ok


def test_pending_professional_cannot_receive_contacts(db: Session, pending_professional):
    result = ContactService.submit_contact(pending_professional.id, CONTACT, db, NOW)

    assert isinstance(result.rejection, SubscriptionInactive)
    assert result.rejection.reason == "pending"
    assert _contacts(db, pending_professional.id) == 0


def test_expired_professional_cannot_receive_contacts(db: Session, make_professional, plan):
    professional = make_professional(plan=plan, expires_at=NOW - timedelta(minutes=1))

    result = ContactService.submit_contact(professional.id, CONTACT, db, NOW)

    assert isinstance(result.rejection, SubscriptionInactive)
    assert result.rejection.reason == "expired"


def test_contact_text_is_sanitized(db: Session, active_professional):
    data = {"customer_name": "<b>Ana</b>", "message": "<script>x</script>Olá", "contact_method": "form"}

    result = ContactService.submit_contact(active_professional.id, data, db, NOW)

    contact = db.query(ContactEvent).filter(ContactEvent.id == result.accepted.contact_id).one()
    assert contact.customer_name == "Ana"
    assert "<script>" not in contact.message


def test_snapshot_warning_thresholds():
    from services.quota_service import _snapshot

    assert _snapshot("contacts", 27, 30, 2).approaching_limit is False
    assert _snapshot("contacts", 28, 30, 2).approaching_limit is True
    reached = _snapshot("contacts", 30, 30, 2)
    assert reached.limit_reached is True
    assert reached.approaching_limit is False
    assert reached.remaining == 0


def test_pending_professional_cannot_add_photo(db: Session, pending_professional):
    result = PortfolioService.add_photo(pending_professional.id, "photos/1.jpg", db)

    assert not result.ok
    assert isinstance(result.rejection, SubscriptionInactive)
    assert result.rejection.reason == "pending"
    db.refresh(pending_professional)
    assert pending_professional.portfolio == []


def test_photo_limit(db: Session, make_plan, make_professional):
    plan = make_plan(max_photos=2)
    professional = make_professional(plan=plan)

    PortfolioService.add_photo(professional.id, "a.jpg", db)
    second = PortfolioService.add_photo(professional.id, "b.jpg", db)
    third = PortfolioService.add_photo(professional.id, "c.jpg", db)

    assert second.portfolio == ["a.jpg", "b.jpg"]
    assert second.photos.limit_reached is True
    assert isinstance(third.rejection, QuotaExceeded)
    assert third.rejection.resource == "photos"
    assert third.rejection.max_allowed == 2


def test_photo_removal_allowed_when_inactive(db: Session, make_plan, make_professional):
    plan = make_plan(max_photos=2)
    professional = make_professional(
        plan=plan,
        status=ProfessionalStatus.INACTIVE,
        portfolio=["a.jpg", "b.jpg"],
    )

    result = PortfolioService.remove_photo(professional.id, "a.jpg", db)

    assert result.ok
    assert result.portfolio == ["b.jpg"]
    assert result.photos.remaining == 1


def test_professional_without_plan_gets_default_photo_slots(db: Session, make_professional):
    professional = make_professional(plan=None)

    snapshot = QuotaService.photo_snapshot(professional, db)

    assert snapshot.max_allowed == 3
    assert QuotaService.get_contact_limit(professional, db) is None


def test_month_bounds_follow_sao_paulo_calendar():
    # UTC-3: local midnight is 03:00 UTC
    assert month_bounds(datetime(2025, 12, 31, 12, 0, 0)) == (
        datetime(2025, 12, 1, 3, 0, 0),
        datetime(2026, 1, 1, 3, 0, 0),
    )
    # 01:00 UTC on March 1st is still February in São Paulo
    assert month_bounds(datetime(2025, 3, 1, 1, 0, 0))[0] == datetime(2025, 2, 1, 3, 0, 0)
