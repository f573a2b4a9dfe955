"""Sanitization audit — what each field chain did to the raw request value."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger("quill_boundary.audit")


class SanitizeAction(str, Enum):
    TRIM = "trim"
    ESCAPE = "escape"
    TYPE_CAST = "type_cast"
    DEFAULT_APPLIED = "default_applied"
    CUSTOM = "custom"
    REJECTED = "rejected"


@dataclass(frozen=True)
class AuditEntry:
    """One change (or rejection) of a request field."""

    location: str
    field_name: str
    action: SanitizeAction
    before: Any
    after: Any
    step: str

    @property
    def key(self) -> str:
        return f"{self.location}.{self.field_name}"


class AuditLog:
    """Entries for a single validation run, in the order the steps ran."""

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def record(
        self, location: str, field_name: str, action: SanitizeAction, before: Any, after: Any, step: str
    ) -> AuditEntry:
        entry = AuditEntry(location, field_name, action, before, after, step)
        self._entries.append(entry)
        logger.debug("Sanitize: %s %s %r -> %r (%s)", entry.key, action.value, before, after, step)
        return entry

    @property
    def entries(self) -> list[AuditEntry]:
        return list(self._entries)

    def for_field(self, field_name: str) -> list[AuditEntry]:
        return [e for e in self._entries if e.field_name == field_name]

    def rejected(self) -> list[str]:
        """``location.field`` keys of every field that failed its chain."""
        return [e.key for e in self._entries if e.action is SanitizeAction.REJECTED]

    def summary(self) -> dict[str, int]:
        """Counts of non-rejection actions, keyed by action name."""
        counts = Counter(e.action.value for e in self._entries if e.action is not SanitizeAction.REJECTED)
        return dict(counts)

    def __len__(self) -> int:
        return len(self._entries)
