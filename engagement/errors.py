"""
Error taxonomy for the engagement layer.

Store clients raise StoreError subclasses; engines catch them and turn them into
notices or empty states. AuthRequired and ValidationError are raised to the caller.
"""

from typing import Optional


class EngagementError(Exception):
    """Base class for all engagement-layer errors."""


class AuthRequired(EngagementError):
    """No authenticated user. Caller should send the user to login_url."""

    def __init__(self, login_url: str = "/auth/login", message: str = "Login required"):
        super().__init__(message)
        self.login_url = login_url


class ValidationError(EngagementError):
    """Malformed input, rejected before any store call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class StoreError(EngagementError):
    """A remote store call failed."""

    def __init__(self, message: str = "", table: Optional[str] = None):
        super().__init__(message or self.__class__.__name__)
        self.table = table


class DuplicateKey(StoreError):
    """Uniqueness conflict: another write already produced the row."""


class PermissionDenied(StoreError):
    """Server-side authorization rule rejected the call."""


class RelationMissing(StoreError):
    """Backing table/collection (or its index) is not provisioned."""


# Older name used in the store setup docs
SchemaMissing = RelationMissing


class NetworkError(StoreError):
    """Transport failure; the operation is considered not applied."""
