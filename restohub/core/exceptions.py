"""
Domain errors raised by the service layer.

Every error carries a machine-readable ``kind``, a human message and an
optional field-level ``details`` map. The HTTP layer maps them to status
codes in ``restohub.main``; services never build HTTP responses themselves.

Usage:
    raise NotFoundError("Menu")
    raise DuplicateEntityError("An item with this name already exists", field="name")
"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for all expected, caller-recoverable failures."""

    kind: str = "domain_error"
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.kind, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(DomainError):
    """Malformed or out-of-range input."""

    kind = "validation_error"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        if field and not details:
            details = {field: message}
        super().__init__(message, details)


class NotFoundError(DomainError):
    """
    Entity absent, or present but owned by someone else.

    Both cases produce the same message so callers cannot probe for
    another tenant's resources.
    """

    kind = "not_found"
    status_code = 404

    def __init__(self, entity: str, message: Optional[str] = None):
        super().__init__(message or f"{entity} not found")
        self.entity = entity


class DuplicateEntityError(DomainError):
    """Uniqueness violation: name, owner or association pair."""

    kind = "duplicate_entity"
    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {field: message} if field else None)


class InvalidReferenceError(DomainError):
    """A foreign id in the payload does not resolve."""

    kind = "invalid_reference"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {field: message} if field else None)


class HasDependentItemsError(DomainError):
    """Delete blocked because child rows still reference the entity."""

    kind = "has_dependent_items"
    status_code = 409


class InvalidItemsError(DomainError):
    """
    One or more referenced items are missing, unavailable or foreign.

    Reported once for the whole request, never per item.
    """

    kind = "invalid_items"
    status_code = 400

    def __init__(self, message: str = "Some items do not exist or are not available"):
        super().__init__(message)


class ConfigurationError(RuntimeError):
    """The deployment cannot serve a feature, e.g. an unsupported database."""
