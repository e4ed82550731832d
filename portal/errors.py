"""
Error types shared across the portal.

Validation problems are caught before anything is sent to the store.
Store problems wrap whatever the Supabase client raised.
"""

from typing import Optional


class PortalError(Exception):
    """Base class for every error the portal raises on purpose."""


class ValidationError(PortalError):
    """Bad user input. Shown in place; no network call was made."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class StoreError(PortalError):
    """A read, write, upload or function call against the store failed."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
