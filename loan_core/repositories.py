"""
Repository Module

Typed record access over a StorageInterface. Each manager receives the
repositories it needs through its constructor instead of reaching for a
global store.
"""

from typing import Generic, List, Optional, Type, TypeVar

from .storage import StorageInterface, StorageRecord
from .models import User, Loan, Payment, PaymentStatus, CibilScore, Notification


R = TypeVar('R', bound=StorageRecord)


class Repository(Generic[R]):
    """Base repository: one table, one record type"""

    record_type: Type[R]
    table_name: str

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def find_by_id(self, record_id: str) -> Optional[R]:
        data = self.storage.load(self.table_name, record_id)
        if data:
            return self.record_type.from_dict(data)
        return None

    def find_all(self) -> List[R]:
        return [self.record_type.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def save(self, record: R) -> R:
        self.storage.save(self.table_name, record.id, record.to_dict())
        return record

    def delete_by_id(self, record_id: str) -> bool:
        """Remove a record; deleting a missing id is a no-op returning False"""
        return self.storage.delete(self.table_name, record_id)

    def count(self) -> int:
        return self.storage.count(self.table_name)

    def _find(self, **filters) -> List[R]:
        return [self.record_type.from_dict(data) for data in self.storage.find(self.table_name, filters)]


class UserRepository(Repository[User]):
    record_type = User
    table_name = "users"

    def find_by_email(self, email: str) -> Optional[User]:
        users = self._find(email=email.strip().lower())
        return users[0] if users else None


class LoanRepository(Repository[Loan]):
    record_type = Loan
    table_name = "loans"

    def find_by_user_id(self, user_id: str) -> List[Loan]:
        return self._find(user_id=user_id)


class PaymentRepository(Repository[Payment]):
    record_type = Payment
    table_name = "payments"

    def find_by_user_id(self, user_id: str) -> List[Payment]:
        return self._find(user_id=user_id)

    def find_by_loan_id(self, loan_id: str) -> List[Payment]:
        return self._find(loan_id=loan_id)

    def find_by_user_id_and_status(self, user_id: str, status: PaymentStatus) -> List[Payment]:
        return self._find(user_id=user_id, status=status.value)


class CibilScoreRepository(Repository[CibilScore]):
    record_type = CibilScore
    table_name = "cibil_scores"

    def find_by_user_id(self, user_id: str) -> Optional[CibilScore]:
        scores = self._find(user_id=user_id)
        return scores[0] if scores else None


class NotificationRepository(Repository[Notification]):
    record_type = Notification
    table_name = "notifications"

    def find_by_user_id(self, user_id: str) -> List[Notification]:
        return self._find(user_id=user_id)
