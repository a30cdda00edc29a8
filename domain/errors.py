"""
Domain: error taxonomy.

Every failure the lead lifecycle core can report is one of these types.
Request handlers translate them into HTTP responses; services never return
error codes in-band for single-item operations.
"""

from __future__ import annotations

from typing import Optional


class CRMError(Exception):
    """Base class for all lead lifecycle errors."""


class Unauthenticated(CRMError):
    """No valid identity (or no profile attached to it)."""

    def __init__(self, message: str = "Unauthenticated", *, redirect_to: str = "/login") -> None:
        super().__init__(message)
        self.redirect_to = redirect_to


class Forbidden(CRMError):
    """Valid identity, insufficient capability."""

    def __init__(self, message: str = "Forbidden", *, redirect_to: str = "/dashboard") -> None:
        super().__init__(message)
        self.redirect_to = redirect_to


class NotFound(CRMError):
    """Target id does not exist or lies outside the caller's tenant."""


class ValidationError(CRMError):
    """Malformed input (e.g. missing required field on create)."""


class StoreFailure(CRMError, RuntimeError):
    """Underlying persistence error."""


class NotificationFailure(CRMError):
    """Notification could not be handed off. Never fatal."""

    def __init__(self, message: str, *, recipient: Optional[str] = None) -> None:
        super().__init__(message)
        self.recipient = recipient
