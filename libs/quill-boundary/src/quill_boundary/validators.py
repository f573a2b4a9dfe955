"""Declarative per-field validation chains.

A chain names one input (a path parameter, query parameter or body field)
and an ordered list of steps.  Each step is either a *check* (a predicate)
or a *sanitizer* (a transform); both may be plain functions or coroutines,
so a step can read from the document store before validation completes::

    body("title", "Title must have correct length").trim().is_length(3, 100).escape()
    query("page", "Page query must have valid format").default(1).trim().is_int().sanitize(resolve_page)
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from bson import ObjectId
from markupsafe import escape

from quill_boundary.audit import SanitizeAction

if TYPE_CHECKING:
    from quill_boundary.boundary import ValidationContext

# Lightweight email format check (RFC 5322 simplified).
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_INT_RE = re.compile(r"^[+-]?\d+$")
_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

StepFn = Callable[[Any, "ValidationContext"], Union[Any, Awaitable[Any]]]


class Location(str, Enum):
    """Where a request input comes from."""

    PATH = "path"
    QUERY = "query"
    BODY = "body"


@dataclass(frozen=True)
class FieldError:
    """One failed rule, as reported to the client."""

    location: str
    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"location": self.location, "field": self.field, "message": self.message, "value": self.value}


class StepError(Exception):
    """Raised inside a step to fail the field with a specific message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RequestValidationError(Exception):
    """Raised when one or more fields of a request fail validation."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = list(errors)
        fields = ", ".join(f"{e.location}.{e.field}" for e in self.errors)
        super().__init__(f"Request validation failed: {fields}")

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.errors]


def is_object_id(value: Any) -> bool:
    """True for a 24-character hex string or an ``ObjectId``.

    Stricter than ``ObjectId.is_valid``, which also accepts any 12-byte string.
    """
    if isinstance(value, ObjectId):
        return True
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))


@dataclass(frozen=True)
class Step:
    """A single check or sanitizer in a chain."""

    name: str
    fn: StepFn
    is_check: bool
    message: str | None = None
    action: SanitizeAction = SanitizeAction.CUSTOM


_MISSING = object()


@dataclass
class FieldChain:
    """Ordered validation/sanitization steps for one named input."""

    location: Location
    name: str
    message: str = "Invalid value"
    steps: list[Step] = field(default_factory=list)
    is_optional: bool = False
    default_value: Any = _MISSING

    @property
    def has_default(self) -> bool:
        return self.default_value is not _MISSING

    # -- presence -------------------------------------------------------------

    def optional(self) -> FieldChain:
        """An absent value skips every step and is left out of the result."""
        self.is_optional = True
        return self

    def default(self, value: Any) -> FieldChain:
        """Replace an absent, ``None`` or empty-string value with *value*."""
        self.default_value = value
        return self

    # -- sanitizers -----------------------------------------------------------

    def trim(self) -> FieldChain:
        """Strip surrounding whitespace (non-strings are converted to ``str`` first)."""
        return self._add(Step("trim", lambda v, _ctx: str(v).strip(), False, action=SanitizeAction.TRIM))

    def escape(self) -> FieldChain:
        """HTML-escape ``<``, ``>``, ``&``, ``'`` and ``"``."""
        return self._add(Step("escape", lambda v, _ctx: str(escape(str(v))), False, action=SanitizeAction.ESCAPE))

    def sanitize(self, fn: StepFn, *, message: str | None = None) -> FieldChain:
        """Transform the value with *fn(value, ctx)*; may be a coroutine function."""
        return self._add(Step(getattr(fn, "__name__", "sanitize"), fn, False, message))

    # -- checks ---------------------------------------------------------------

    def check(self, fn: StepFn, *, message: str | None = None) -> FieldChain:
        """Fail unless *fn(value, ctx)* is truthy; may be a coroutine function."""
        return self._add(Step(getattr(fn, "__name__", "check"), fn, True, message))

    def is_length(self, min: int = 0, max: int | None = None) -> FieldChain:
        def _length(value: Any, _ctx: Any) -> bool:
            size = len(str(value))
            return size >= min and (max is None or size <= max)

        return self._add(Step("is_length", _length, True))

    def is_email(self) -> FieldChain:
        return self._add(Step("is_email", lambda v, _ctx: isinstance(v, str) and bool(_EMAIL_RE.match(v)), True))

    def is_int(self) -> FieldChain:
        """Require an integer (or integer string) and convert it to ``int``."""
        return self._add(Step("is_int", _to_int, False, action=SanitizeAction.TYPE_CAST))

    def is_object_id(self) -> FieldChain:
        """Require a 24-hex-character identifier and convert it to ``ObjectId``."""
        return self._add(Step("is_object_id", _to_object_id, False, action=SanitizeAction.TYPE_CAST))

    def _add(self, step: Step) -> FieldChain:
        self.steps.append(step)
        return self


def _to_int(value: Any, _ctx: Any) -> int:
    if isinstance(value, bool):
        raise StepError("")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_RE.match(value):
        return int(value)
    raise StepError("")


def _to_object_id(value: Any, _ctx: Any) -> ObjectId:
    if not is_object_id(value):
        raise StepError("")
    return ObjectId(value) if not isinstance(value, ObjectId) else value


def path(name: str, message: str = "Invalid value") -> FieldChain:
    return FieldChain(Location.PATH, name, message)


def query(name: str, message: str = "Invalid value") -> FieldChain:
    return FieldChain(Location.QUERY, name, message)


def body(name: str, message: str = "Invalid value") -> FieldChain:
    return FieldChain(Location.BODY, name, message)
