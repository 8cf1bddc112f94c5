"""
Domain Errors

Error hierarchy raised by the fragment engine, the asset tree and the
inventory gateway. Tree lookup misses are not errors: they return ``None``
or ``False``.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DecoderNotImplementedError(DomainError):
    """Raised when a fragment factory or asset cannot decode the way it was asked to."""

    def __init__(self, fragment: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Decoder not implemented for fragment '{fragment}'", details)
        self.fragment = fragment


class EncoderNotImplementedError(DomainError):
    """Raised when a custom asset has no encoder."""

    def __init__(self, fragment: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Encoder not implemented for fragment '{fragment}'", details)
        self.fragment = fragment


class FragmentDecodeError(DomainError):
    """Raised when a raw fragment value does not have the expected shape."""

    def __init__(
        self, key: str, message: str, details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(f"Cannot decode fragment '{key}': {message}", details)
        self.key = key


class NotAGroupObjectError(DomainError):
    """Raised when a group is built from a managed object that is not a group."""

    def __init__(self, c8y_id: Optional[str], object_type: Optional[str]):
        super().__init__(
            f"Managed object {c8y_id} of type {object_type} is not a group",
            {"id": c8y_id, "type": object_type},
        )


class C8yAPIError(DomainError):
    """Raised when the Cumulocity API cannot be reached or answers with an error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.reason = reason


class GroupLoadError(DomainError):
    """Raised when a page of group children cannot be fetched."""

    def __init__(self, group_id: Optional[str], page: int, cause: Exception):
        super().__init__(
            f"Failed to load page {page} of group {group_id}: {cause}",
            {"group_id": group_id, "page": page},
        )
        self.group_id = group_id
        self.page = page
        self.cause = cause


class GroupLoadCancelledError(DomainError):
    """Raised when a group load is cancelled at a page boundary."""

    def __init__(self, group_id: Optional[str], page: int):
        super().__init__(
            f"Loading of group {group_id} cancelled before page {page}",
            {"group_id": group_id, "page": page},
        )
        self.group_id = group_id
        self.page = page
