"""Main entry point — RequestValidator runs field chains and collects every error."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from quill_boundary.audit import AuditLog, SanitizeAction
from quill_boundary.validators import _MISSING, FieldChain, FieldError, RequestValidationError, StepError

logger = logging.getLogger(__name__)


@dataclass
class ValidationContext:
    """State visible to steps while a request is being validated.

    ``values`` holds the normalized value of every field processed so far, so
    a later chain (e.g. ``page``) can use an earlier one (e.g. ``postid``).
    """

    sources: Mapping[str, Mapping[str, Any]]
    values: dict[str, Any] = field(default_factory=dict)
    errors: list[FieldError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


@dataclass
class ValidationResult:
    """Normalized values plus every collected error."""

    values: dict[str, Any]
    errors: list[FieldError]
    audit: AuditLog

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> dict[str, Any]:
        """Return the normalized values, or raise with the whole error batch."""
        if self.errors:
            raise RequestValidationError(self.errors)
        return self.values


class RequestValidator:
    """Runs an ordered list of :class:`FieldChain` against request inputs.

    Pipeline per chain:
    1. Look the value up in its location (``path``/``query``/``body``)
    2. Apply the default, or skip the field when optional and absent
    3. Run each step in order, awaiting store-suspending ones
    4. Stop the chain at its first failure and record one error

    Errors from different fields are accumulated, never short-circuited.
    """

    def __init__(self, chains: Sequence[FieldChain]) -> None:
        self._chains = list(chains)

    @property
    def chains(self) -> list[FieldChain]:
        return list(self._chains)

    async def validate(
        self,
        *,
        path: Mapping[str, Any] | None = None,
        query: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        sources = {"path": path or {}, "query": query or {}, "body": body or {}}
        ctx = ValidationContext(sources=sources)
        audit = AuditLog()
        for chain in self._chains:
            await self._run_chain(chain, ctx, audit)
        return ValidationResult(values=ctx.values, errors=ctx.errors, audit=audit)

    async def _run_chain(self, chain: FieldChain, ctx: ValidationContext, audit: AuditLog) -> None:
        location = chain.location.value
        raw = ctx.sources[location].get(chain.name, _MISSING)
        value = raw

        if chain.has_default and (value is _MISSING or value is None or value == ""):
            audit.record(location, chain.name, SanitizeAction.DEFAULT_APPLIED, None, chain.default_value, "absent")
            value = chain.default_value
        elif value is _MISSING or value is None:
            if not chain.is_optional:
                self._fail(ctx, audit, chain, None, chain.message, "required value is missing")
            return

        for step in chain.steps:
            try:
                result = step.fn(value, ctx)
                if inspect.isawaitable(result):
                    result = await result
            except StepError as exc:
                self._fail(ctx, audit, chain, raw, exc.message or step.message or chain.message, step.name)
                return

            if step.is_check:
                if not result:
                    self._fail(ctx, audit, chain, raw, step.message or chain.message, step.name)
                    return
                continue

            if result != value or type(result) is not type(value):
                audit.record(location, chain.name, step.action, value, result, step.name)
            value = result

        ctx.values[chain.name] = value

    @staticmethod
    def _fail(
        ctx: ValidationContext,
        audit: AuditLog,
        chain: FieldChain,
        raw: Any,
        message: str,
        reason: str,
    ) -> None:
        value = None if raw is _MISSING else raw
        audit.record(chain.location.value, chain.name, SanitizeAction.REJECTED, value, None, reason)
        ctx.errors.append(FieldError(location=chain.location.value, field=chain.name, message=message, value=value))


async def validate_request(
    chains: Sequence[FieldChain],
    *,
    path: Mapping[str, Any] | None = None,
    query: Mapping[str, Any] | None = None,
    body: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Validate inputs against *chains* and return the normalized values.

    Raises:
        RequestValidationError: carrying every field error of the request.
    """
    result = await RequestValidator(chains).validate(path=path, query=query, body=body)
    if not result.is_valid:
        rejected, sanitized = result.audit.rejected(), result.audit.summary()
        logger.info(
            "Request rejected: invalid=%s sanitized=%s",
            ",".join(rejected),
            sanitized,
            extra={"event": "validation_rejected", "fields": rejected, "sanitized": sanitized},
        )
    return result.raise_for_errors()
