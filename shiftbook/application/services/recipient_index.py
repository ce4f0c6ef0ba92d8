"""Destination workcenter lookup built in one bulk query.

Collect every log id first, build the index once, then read from it.
There is no single-log lookup.
"""

from collections import defaultdict
from typing import Iterable, Iterator, Mapping

import structlog

from shiftbook.domain.repositories.log_repository import LogRepository

logger = structlog.get_logger(__name__)

EMPTY: frozenset[str] = frozenset()


class RecipientIndex(Mapping[str, frozenset]):
    """Read-only log_id -> destination workcenters mapping."""

    def __init__(self, mapping: Mapping[str, Iterable[str]] | None = None):
        self._mapping = {log_id: frozenset(wcs) for log_id, wcs in (mapping or {}).items()}

    def __getitem__(self, log_id: str) -> frozenset:
        return self._mapping[log_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def get(self, log_id: str, default: frozenset = EMPTY) -> frozenset:
        return self._mapping.get(log_id, default)


class RecipientIndexBuilder:
    def __init__(self, repo: LogRepository):
        self.repo = repo

    def build(self, log_ids: Iterable[str]) -> RecipientIndex:
        ids = set(log_ids)
        if not ids:
            return RecipientIndex()

        grouped: dict[str, set[str]] = defaultdict(set)
        for log_id, workcenter in self.repo.query_recipients(ids):
            grouped[log_id].add(workcenter)

        logger.debug("Recipient index built", logs=len(ids), with_recipients=len(grouped))
        return RecipientIndex(grouped)
