"""Error taxonomy shared by the authorization, store and service layers.

ValidationError and PermissionDenied are raised before any write is attempted.
StoreError (and its subclasses) come from the document store and are
propagated to the caller unmodified.
"""

from typing import Any, Optional


class CoreError(Exception):
    """Base exception for every failure raised by this package."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ValidationError(CoreError):
    """Input rejected locally; nothing was written."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        self.field = field
        super().__init__(message, code=kwargs.pop("code", "validation_error"), **kwargs)


class PermissionDenied(CoreError):
    """The authorization gate rejected the actor; nothing was written."""

    def __init__(
        self,
        message: str = "Leadership privileges required",
        required_level: Optional[int] = None,
        capability: Optional[str] = None,
        **kwargs,
    ):
        self.required_level = required_level
        self.capability = capability
        super().__init__(message, code=kwargs.pop("code", "permission_denied"), **kwargs)


class StoreError(CoreError):
    """The remote document store failed the operation."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_data: Optional[dict] = None,
        **kwargs,
    ):
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message, code=kwargs.pop("code", "store_error"), **kwargs)


class DocumentNotFound(StoreError):
    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 404)
        super().__init__(message, code="not_found", **kwargs)


class StorePermissionDenied(StoreError):
    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 403)
        super().__init__(message, code="store_permission_denied", **kwargs)


class StoreUnavailable(StoreError):
    """Network or transport failure; the store could not be reached."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code="store_unavailable", **kwargs)
