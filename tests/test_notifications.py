"""
Test suite for notification records
"""

import pytest

from loan_core.storage import InMemoryStorage
from loan_core.errors import NotFoundError
from loan_core.notifications import NotificationManager, NotificationType
from loan_core.repositories import NotificationRepository


@pytest.fixture
def notification_manager():
    return NotificationManager(NotificationRepository(InMemoryStorage()))


class TestNotificationManager:
    """Test notification creation and inbox reads"""

    def test_create_and_read(self, notification_manager):
        created = notification_manager.create_notification("U1", NotificationType.LOAN_APPLIED, "Received")
        notification_manager.create_notification("U2", NotificationType.LOAN_APPROVED, "Approved")

        inbox = notification_manager.get_user_notifications("U1")
        assert [n.id for n in inbox] == [created.id]
        assert not inbox[0].read
        assert len(notification_manager.get_all_notifications()) == 2

    def test_mark_as_read(self, notification_manager):
        created = notification_manager.create_notification("U1", NotificationType.LOAN_APPLIED, "Received")
        notification_manager.create_notification("U1", NotificationType.LOAN_APPROVED, "Approved")

        assert notification_manager.get_unread_count("U1") == 2
        assert notification_manager.mark_as_read(created.id).read
        assert notification_manager.get_unread_count("U1") == 1

    def test_mark_unknown_notification(self, notification_manager):
        with pytest.raises(NotFoundError):
            notification_manager.mark_as_read("missing")

    def test_disabled_manager_records_nothing(self):
        manager = NotificationManager(NotificationRepository(InMemoryStorage()), enabled=False)

        assert manager.create_notification("U1", NotificationType.LOAN_APPLIED, "Received") is None
        assert manager.get_all_notifications() == []
