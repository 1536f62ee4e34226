"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainException):
    """Input is malformed or out of range"""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainException):
    """Referenced installment does not exist in the plan"""

    pass


class AlreadyPaidError(DomainException):
    """Installment has already been settled"""

    pass


class PlanLockedError(DomainException):
    """Plan schedule can no longer be edited because a payment was recorded"""

    pass
