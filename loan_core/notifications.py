"""
Notification Records Module

Stores in-app notifications for users. Delivery over email, SMS or push is
handled outside the core; these records feed the user inbox and the admin
activity log.
"""

from typing import List, Optional
import uuid

from .errors import NotFoundError
from .logging_config import get_logger
from .models import Notification, utc_now
from .repositories import NotificationRepository


class NotificationType:
    """Well-known notification type labels"""
    LOAN_APPLIED = "LOAN_APPLIED"
    LOAN_APPROVED = "LOAN_APPROVED"
    LOAN_REJECTED = "LOAN_REJECTED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    CIBIL_UPDATED = "CIBIL_UPDATED"


class NotificationManager:
    """Creates and reads notification records"""

    def __init__(self, notifications: NotificationRepository, enabled: bool = True):
        self.notifications = notifications
        self.enabled = enabled
        self.logger = get_logger("loan_core.notifications")

    def create_notification(self, user_id: str, type: str, message: str) -> Optional[Notification]:
        if not self.enabled:
            return None

        now = utc_now()
        notification = Notification(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            user_id=user_id,
            type=type,
            message=message
        )
        self.notifications.save(notification)
        self.logger.debug(f"Notification {type} recorded for user {user_id}")
        return notification

    def get_user_notifications(self, user_id: str) -> List[Notification]:
        """Newest first"""
        notifications = self.notifications.find_by_user_id(user_id)
        notifications.sort(key=lambda n: n.created_at, reverse=True)
        return notifications

    def get_all_notifications(self) -> List[Notification]:
        return self.notifications.find_all()

    def mark_as_read(self, notification_id: str) -> Notification:
        notification = self.notifications.find_by_id(notification_id)
        if not notification:
            raise NotFoundError("notification", notification_id)

        if not notification.read:
            notification.read = True
            notification.updated_at = utc_now()
            self.notifications.save(notification)
        return notification

    def get_unread_count(self, user_id: str) -> int:
        return sum(1 for n in self.notifications.find_by_user_id(user_id) if not n.read)
