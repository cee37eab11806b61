"""
CIBIL Score Module

Keeps one credit score record per user. Scores are computed from five
sub-factors on a 0-100 scale and mapped onto the 300-900 CIBIL range.
"""

from decimal import Decimal, ROUND_HALF_UP
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional
import uuid

from .audit import AuditTrail, AuditEventType
from .errors import InvalidArgumentError, NotFoundError
from .logging_config import get_logger, log_action
from .models import CibilScore, utc_now
from .notifications import NotificationManager, NotificationType
from .repositories import CibilScoreRepository, UserRepository


MIN_SCORE = 300
MAX_SCORE = 900

FACTOR_WEIGHTS = {
    'payment_history': Decimal('0.35'),
    'credit_utilization': Decimal('0.30'),
    'credit_age': Decimal('0.15'),
    'credit_mix': Decimal('0.10'),
    'recent_inquiries': Decimal('0.10'),
}


@dataclass(frozen=True)
class CibilFactors:
    """Sub-factor ratings, each 0-100"""
    payment_history: int
    credit_utilization: int
    credit_age: int
    credit_mix: int
    recent_inquiries: int

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidArgumentError(f"{f.name} must be an integer")
            if not 0 <= value <= 100:
                raise InvalidArgumentError(f"{f.name} must be between 0 and 100")

    def as_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def compute_score(factors: CibilFactors) -> int:
    """Weighted factor average mapped onto 300-900, rounded half-up"""
    weighted = sum(
        Decimal(value) * FACTOR_WEIGHTS[name]
        for name, value in factors.as_dict().items()
    )
    score = Decimal(MIN_SCORE) + weighted / Decimal(100) * Decimal(MAX_SCORE - MIN_SCORE)
    return int(score.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def score_category(score: int) -> str:
    if score >= 750:
        return "Excellent"
    elif score >= 650:
        return "Good"
    elif score >= 550:
        return "Fair"
    return "Poor"


class CibilManager:
    """
    Creates and updates per-user credit score records
    """

    def __init__(
        self,
        scores: CibilScoreRepository,
        users: UserRepository,
        audit_trail: AuditTrail,
        notification_manager: Optional[NotificationManager] = None
    ):
        self.scores = scores
        self.users = users
        self.audit_trail = audit_trail
        self.notification_manager = notification_manager
        self.storage = scores.storage
        self.logger = get_logger("loan_core.cibil")

    def get_score(self, user_id: str) -> Optional[CibilScore]:
        return self.scores.find_by_user_id(user_id)

    def record_score(self, user_id: str, factors: CibilFactors, score: Optional[Any] = None) -> CibilScore:
        """
        Create the user's score record or update the existing one

        Args:
            user_id: Owner of the score
            factors: Sub-factor ratings
            score: Explicit score; computed from factors when omitted

        Raises:
            NotFoundError: If the user does not exist
            InvalidArgumentError: If the score is outside 300-900
        """
        if not self.users.find_by_id(user_id):
            raise NotFoundError("user", user_id)

        if score is None:
            score = compute_score(factors)
        else:
            try:
                score = int(score)
            except (TypeError, ValueError):
                raise InvalidArgumentError(f"score must be an integer, got '{score}'")
            if not MIN_SCORE <= score <= MAX_SCORE:
                raise InvalidArgumentError(f"score must be between {MIN_SCORE} and {MAX_SCORE}")

        now = utc_now()
        record = self.scores.find_by_user_id(user_id)
        created = record is None
        if created:
            record = CibilScore(
                id=str(uuid.uuid4()),
                created_at=now,
                updated_at=now,
                user_id=user_id,
                score=score,
                last_updated=now,
                **factors.as_dict()
            )
        else:
            previous_score = record.score
            record.score = score
            record.last_updated = now
            record.updated_at = now
            for name, value in factors.as_dict().items():
                setattr(record, name, value)

        with self.storage.atomic():
            self.scores.save(record)
            self.audit_trail.log_event(
                event_type=AuditEventType.CIBIL_SCORE_RECORDED,
                entity_type="cibil_score",
                entity_id=record.id,
                user_id=user_id,
                metadata={
                    "score": score,
                    "previous_score": None if created else previous_score,
                    "factors": factors.as_dict()
                }
            )
            if self.notification_manager:
                self.notification_manager.create_notification(
                    user_id, NotificationType.CIBIL_UPDATED,
                    f"Your CIBIL score is now {score} ({score_category(score)})"
                )

        log_action(self.logger, "info", "CIBIL score recorded", user_id=user_id,
                   action="create" if created else "update", resource=f"cibil_score:{record.id}")
        return record
