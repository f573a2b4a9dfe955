"""quill-boundary: request validation & sanitization layer for the Quill blog backend."""

from quill_boundary.audit import AuditEntry, AuditLog, SanitizeAction
from quill_boundary.boundary import RequestValidator, ValidationContext, ValidationResult, validate_request
from quill_boundary.validators import (
    FieldChain,
    FieldError,
    Location,
    RequestValidationError,
    Step,
    StepError,
    body,
    is_object_id,
    path,
    query,
)

__all__ = [
    "AuditEntry",
    "AuditLog",
    "FieldChain",
    "FieldError",
    "Location",
    "RequestValidationError",
    "RequestValidator",
    "SanitizeAction",
    "Step",
    "StepError",
    "ValidationContext",
    "ValidationResult",
    "body",
    "is_object_id",
    "path",
    "query",
    "validate_request",
]
