"""
Errors raised by the point-of-sale core.

Views catch ``PosError`` and show the message to the user; every subclass
tells the caller whether retrying can help.
"""


class PosError(Exception):
    retryable = False


class ValidationError(PosError):
    """A precondition does not hold. Nothing was written."""


class SaleValidationError(ValidationError):
    pass


class RegisterError(ValidationError):
    pass


class ShortcutError(ValidationError):
    pass


class UsernameTakenError(ValidationError):
    def __init__(self, username: str):
        super().__init__(f"Username '{username}' is already taken.")
        self.username = username


class SaleInProgressError(PosError):
    """Another sale is still being recorded by the same processor."""

    retryable = True


class PersistenceError(PosError):
    """The store rejected a write. The sale may be submitted again."""

    retryable = True


class ReceiptError(PosError):
    """Printing failed after the sale was committed. The sale stands."""
