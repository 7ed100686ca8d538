"""
Error taxonomy shared by the persistence layer and domain services.
"""

from typing import Any, Optional

from .handler import BusinessException


class NotFoundError(BusinessException):
    """An expected row is missing. Repositories return None; call sites escalate to this."""

    def __init__(self, message: str = "Not found", detail: Any = None):
        super().__init__(message, status_code=404, code=404, detail=detail)


class InfrastructureError(Exception):
    """Base class for failures that are never shown verbatim to clients."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class StorageError(InfrastructureError):
    """Wraps any underlying database or connection failure."""


class TransactionStateError(InfrastructureError):
    """A unit of work was used after commit or rollback."""


class ConfigurationError(InfrastructureError):
    """A repository capability was requested but never registered (startup wiring bug)."""


class DeliveryError(InfrastructureError):
    """Verification email could not be delivered."""


class UpstreamError(InfrastructureError):
    """OAuth provider call failed."""
