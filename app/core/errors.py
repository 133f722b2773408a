# app/core/errors.py
from typing import Any, Optional


class DomainError(Exception):
    """Errore del service: `kind` stabile, `reason` con il dettaglio strutturato."""
    kind = "domain_error"

    def __init__(self, message: str, reason: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason or {}


class ValidationError(DomainError):
    kind = "validation_error"


class NotFoundError(DomainError):
    kind = "not_found"


class ForbiddenError(DomainError, PermissionError):
    kind = "forbidden"


class InvalidStateError(DomainError):
    kind = "invalid_state"


class ConflictError(DomainError):
    kind = "conflict"
