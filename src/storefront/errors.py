# error taxonomy shared by the store adapter, services and the dispatcher
from typing import Optional


class ShopError(Exception):
    """Base class for every failure that is reported back as a structured result."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ShopError):
    """
    Malformed input (bad email, weak password, empty cart...).
    Always raised before any store mutation.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConflictError(ShopError):
    pass


class NotFoundError(ShopError):
    pass


class AuthenticationError(ShopError):
    pass


class InternalError(ShopError):
    """Store or capability failure. The message keeps the underlying detail."""
