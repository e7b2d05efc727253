"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class BackendError(DomainException):
    """Backend platform returned an error or is unavailable"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(DomainException):
    """Token or credentials were rejected"""

    pass


class NotFoundError(DomainException):
    """Requested row does not exist"""

    pass


class PackageNotFoundError(NotFoundError):
    pass


class ProfileNotFoundError(NotFoundError):
    pass


class InsufficientBalanceError(DomainException):
    """Balance is lower than the package amount"""

    pass


class ProviderError(DomainException):
    """Cable provider refused or failed the subscription"""

    pass


class BalanceUpdateError(DomainException):
    """Debit through the add_to_balance procedure failed"""

    pass


class TransactionRecordError(DomainException):
    """Transaction row could not be written after the balance was debited"""

    pass
