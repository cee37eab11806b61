"""
Test suite for CIBIL score records

Tests the weighted factor score, category bands and per-user upserts.
"""

import pytest

from loan_core.storage import InMemoryStorage
from loan_core.audit import AuditTrail, AuditEventType
from loan_core.cibil import CibilFactors, CibilManager, compute_score, score_category
from loan_core.errors import InvalidArgumentError, NotFoundError
from loan_core.notifications import NotificationManager, NotificationType
from loan_core.repositories import CibilScoreRepository, NotificationRepository, UserRepository
from loan_core.users import UserManager


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_trail(storage):
    return AuditTrail(storage)


@pytest.fixture
def notification_manager(storage):
    return NotificationManager(NotificationRepository(storage))


@pytest.fixture
def cibil_manager(storage, audit_trail, notification_manager):
    return CibilManager(CibilScoreRepository(storage), UserRepository(storage), audit_trail, notification_manager)


@pytest.fixture
def user(storage, audit_trail):
    return UserManager(UserRepository(storage), audit_trail).register_user("kiran@example.com", "pw", "Kiran")


def factors(payment_history=80, credit_utilization=70, credit_age=60, credit_mix=50, recent_inquiries=90):
    return CibilFactors(
        payment_history=payment_history,
        credit_utilization=credit_utilization,
        credit_age=credit_age,
        credit_mix=credit_mix,
        recent_inquiries=recent_inquiries
    )


class TestScoreComputation:
    """Test weighted score and categories"""

    def test_bounds(self):
        assert compute_score(factors(0, 0, 0, 0, 0)) == 300
        assert compute_score(factors(100, 100, 100, 100, 100)) == 900

    def test_weighted_score(self):
        # 0.35*80 + 0.30*70 + 0.15*60 + 0.10*50 + 0.10*90 = 72
        assert compute_score(factors()) == 732

    def test_rounds_half_up(self):
        # Weighted 0.25 maps to 301.5
        assert compute_score(factors(0, 0, 1, 1, 0)) == 302

    @pytest.mark.parametrize("score,category", [
        (900, "Excellent"), (750, "Excellent"), (749, "Good"), (650, "Good"),
        (649, "Fair"), (550, "Fair"), (549, "Poor"), (300, "Poor"),
    ])
    def test_categories(self, score, category):
        assert score_category(score) == category

    def test_factor_range_checked(self):
        with pytest.raises(InvalidArgumentError):
            factors(payment_history=101)
        with pytest.raises(InvalidArgumentError):
            factors(credit_mix=-1)
        with pytest.raises(InvalidArgumentError):
            factors(credit_age="high")


class TestCibilManager:
    """Test score records"""

    def test_no_score_yet(self, cibil_manager, user):
        assert cibil_manager.get_score(user.id) is None

    def test_record_creates_then_updates(self, cibil_manager, user):
        first = cibil_manager.record_score(user.id, factors())
        second = cibil_manager.record_score(user.id, factors(payment_history=100))

        assert first.score == 732
        assert second.id == first.id
        assert second.score == 774
        assert second.payment_history == 100
        assert second.last_updated >= first.last_updated
        assert cibil_manager.get_score(user.id).score == 774
        assert len(cibil_manager.scores.find_all()) == 1

    def test_explicit_score(self, cibil_manager, user):
        assert cibil_manager.record_score(user.id, factors(), score=780).score == 780

        with pytest.raises(InvalidArgumentError):
            cibil_manager.record_score(user.id, factors(), score=950)
        with pytest.raises(InvalidArgumentError):
            cibil_manager.record_score(user.id, factors(), score="great")

    def test_unknown_user(self, cibil_manager):
        with pytest.raises(NotFoundError):
            cibil_manager.record_score("missing", factors())

    def test_audited_and_notified(self, cibil_manager, user, audit_trail, notification_manager):
        record = cibil_manager.record_score(user.id, factors())

        events = audit_trail.get_events_for_entity("cibil_score", record.id)
        assert [e.event_type for e in events] == [AuditEventType.CIBIL_SCORE_RECORDED]
        assert events[0].metadata["previous_score"] is None

        inbox = notification_manager.get_user_notifications(user.id)
        assert [n.type for n in inbox] == [NotificationType.CIBIL_UPDATED]
        assert "732" in inbox[0].message
