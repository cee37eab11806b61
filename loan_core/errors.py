"""
Error kinds raised by the loan core.

The HTTP layer maps these onto 404 / 400 / 409 responses.
"""


class LoanCoreError(Exception):
    """Base class for all loan core errors"""


class NotFoundError(LoanCoreError, LookupError):
    """A referenced user, loan, payment or score does not exist"""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} {entity_id} not found")


class InvalidArgumentError(LoanCoreError, ValueError):
    """Malformed enum value, degenerate EMI input or unparseable field"""


class ConflictError(LoanCoreError):
    """Request conflicts with existing state (e.g. duplicate email)"""
