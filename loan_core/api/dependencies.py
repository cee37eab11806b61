"""
System wiring and request dependencies
"""

from typing import Optional

from ..audit import AuditTrail
from ..cibil import CibilManager
from ..config import LoanCoreConfig, get_config
from ..loans import LoanManager
from ..logging_config import get_logger
from ..notifications import NotificationManager
from ..payments import PaymentManager
from ..reporting import ReportingEngine
from ..repositories import (
    CibilScoreRepository, LoanRepository, NotificationRepository,
    PaymentRepository, UserRepository
)
from ..storage import StorageInterface, create_storage
from ..users import UserManager


logger = get_logger("loan_core.api")


class LoanSystem:
    """Loan core with all components initialized"""

    def __init__(self, storage: Optional[StorageInterface] = None, config: Optional[LoanCoreConfig] = None):
        self.config = config or get_config()

        # Initialize storage
        self.storage = storage or create_storage(self.config.database_url)

        # Repositories
        self.users = UserRepository(self.storage)
        self.loans = LoanRepository(self.storage)
        self.payments = PaymentRepository(self.storage)
        self.cibil_scores = CibilScoreRepository(self.storage)
        self.notifications = NotificationRepository(self.storage)

        # Initialize core components
        self.audit_trail = AuditTrail(self.storage, enabled=self.config.enable_audit_logging)
        self.notification_manager = NotificationManager(
            self.notifications, enabled=self.config.enable_notifications
        )
        self.user_manager = UserManager(self.users, self.audit_trail)
        self.loan_manager = LoanManager(
            self.loans, self.users, self.audit_trail, self.notification_manager,
            currency_symbol=self.config.currency_symbol
        )
        self.payment_manager = PaymentManager(
            self.payments, self.loans, self.audit_trail, self.notification_manager
        )
        self.cibil_manager = CibilManager(
            self.cibil_scores, self.users, self.audit_trail, self.notification_manager
        )
        self.reporting_engine = ReportingEngine(
            self.users, self.loans, self.payments, self.notifications, self.cibil_scores
        )

        if self.config.seed_admin:
            self.user_manager.ensure_admin(
                self.config.admin_email, self.config.admin_password, self.config.admin_name
            )

    def close(self) -> None:
        self.storage.close()


# Global loan system instance, created on first request
_loan_system: Optional[LoanSystem] = None


def get_loan_system() -> LoanSystem:
    """Dependency returning the shared LoanSystem"""
    global _loan_system
    if _loan_system is None:
        _loan_system = LoanSystem()
        logger.info(f"Loan system initialized with {_loan_system.config.database_url}")
    return _loan_system
