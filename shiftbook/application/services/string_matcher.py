"""String matcher used by log search.

The search string is treated as a case-insensitive regular expression when it
contains any regex metacharacter, otherwise as a case-insensitive substring.
Fields are scanned in a fixed order and the scan stops at the first hit:
author, subject, message, origin workcenter, destination workcenters,
creation timestamp (ISO 8601).
"""

import re
from enum import Enum
from typing import Any, Iterable, Iterator

import structlog

from shiftbook.core.exceptions import ValidationException
from shiftbook.domain.models.shiftbook_log import ShiftBookLog

logger = structlog.get_logger(__name__)

REGEX_METACHARACTERS = frozenset(".*+?^${}()|[]\\")


class MatchMode(str, Enum):
    LITERAL = "literal"
    REGEX = "regex"


def detect_mode(pattern: str) -> MatchMode:
    if any(ch in REGEX_METACHARACTERS for ch in pattern):
        return MatchMode.REGEX
    return MatchMode.LITERAL


class StringMatcher:
    def __init__(self, pattern: str):
        if not pattern or not isinstance(pattern, str) or not pattern.strip():
            raise ValidationException("Search string is required and cannot be empty")

        self.pattern = pattern
        self.mode = detect_mode(pattern)
        self._needle = pattern.lower()
        self._regex = None

        if self.mode is MatchMode.REGEX:
            try:
                self._regex = re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                raise ValidationException(
                    f"Invalid regular expression pattern: {e}",
                    details={"search_string": pattern},
                ) from e

        logger.debug("Search pattern compiled", pattern=pattern, mode=self.mode.value)

    @classmethod
    def compile(cls, pattern: str) -> "StringMatcher":
        return cls(pattern)

    def _match_value(self, value: Any) -> bool:
        if value is None or value == "":
            return False
        text = str(value)
        if self._regex is not None:
            return self._regex.search(text) is not None
        return self._needle in text.lower()

    @staticmethod
    def _fields(log: ShiftBookLog, recipients: Iterable[str]) -> Iterator[Any]:
        yield log.user_id
        yield log.subject
        yield log.message
        yield log.workcenter
        yield from sorted(recipients)
        yield log.log_dt.isoformat() if log.log_dt is not None else None

    def matches(self, log: ShiftBookLog, recipients: Iterable[str] = ()) -> bool:
        return any(self._match_value(value) for value in self._fields(log, recipients))
