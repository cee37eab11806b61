"""
User Management Module

Registration, lookup and credential checks for borrowers and administrators.
Passwords are stored as salted scrypt hashes; token issuance lives outside
the core.
"""

from typing import Any, List, Optional
import hashlib
import hmac
import secrets
import uuid

from .audit import AuditTrail, AuditEventType
from .errors import ConflictError, InvalidArgumentError, NotFoundError
from .logging_config import get_logger, log_action
from .models import User, Role, parse_enum, utc_now
from .repositories import UserRepository


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """Hash password with salt using scrypt; returns 'salt$hash'"""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.scrypt(
        password.encode(),
        salt=salt.encode(),
        n=16384, r=8, p=1, dklen=32
    ).hex()
    return f"{salt}${digest}"


def check_password(password: str, password_hash: str) -> bool:
    salt, _, expected = password_hash.partition("$")
    if not expected:
        return False
    return hmac.compare_digest(hash_password(password, salt), password_hash)


class UserManager:
    """
    Manages user registration and lookup
    """

    def __init__(self, users: UserRepository, audit_trail: AuditTrail):
        self.users = users
        self.audit_trail = audit_trail
        self.logger = get_logger("loan_core.users")

    def register_user(
        self,
        email: str,
        password: str,
        name: str,
        phone: Optional[str] = None,
        role: Any = Role.USER
    ) -> User:
        """
        Register a new user

        Args:
            email: Unique email address (compared case-insensitively)
            password: Plain-text password, hashed before storage
            name: Display name
            phone: Optional phone number
            role: USER (default) or ADMIN

        Returns:
            Created User

        Raises:
            InvalidArgumentError: Missing email, password or name, or bad role
            ConflictError: Email already registered
        """
        email = (email or "").strip().lower()
        if "@" not in email:
            raise InvalidArgumentError("A valid email is required")
        if not password:
            raise InvalidArgumentError("Password is required")
        if not name or not name.strip():
            raise InvalidArgumentError("Name is required")
        role = parse_enum(Role, role or Role.USER, "role")

        if self.users.find_by_email(email):
            raise ConflictError("Email already exists")

        now = utc_now()
        user = User(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            email=email,
            password_hash=hash_password(password),
            name=name.strip(),
            role=role,
            phone=phone
        )
        self.users.save(user)

        self.audit_trail.log_event(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user.id,
            metadata={"email": email, "role": role.value}
        )
        log_action(self.logger, "info", "User registered", user_id=user.id,
                   action="register", resource="user")
        return user

    def get_user(self, user_id: str) -> User:
        user = self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("user", user_id)
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.users.find_by_email(email)

    def get_all_users(self) -> List[User]:
        return self.users.find_all()

    def verify_password(self, user: User, password: str) -> bool:
        """Check a credential; failures are logged without the password"""
        if check_password(password, user.password_hash):
            return True
        self.logger.warning(f"Password mismatch for user {user.id}")
        return False

    def ensure_admin(self, email: str, password: str, name: str = "Admin User") -> Optional[User]:
        """Seed the admin account on an empty store; no-op otherwise"""
        if self.users.count() > 0:
            self.logger.info("Users already present, skipping admin seeding")
            return None
        return self.register_user(email=email, password=password, name=name, role=Role.ADMIN)
