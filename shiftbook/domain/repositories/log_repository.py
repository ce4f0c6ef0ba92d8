"""
Log Repository Interface.
Defines the data access operations the query and dispatch engine relies on.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from shiftbook.domain.models.shiftbook_log import ShiftBookLog
from shiftbook.domain.repositories.base import BaseRepository
from shiftbook.domain.schemas.shiftbook import LogFilter, LogSummary


class LogRepository(BaseRepository[ShiftBookLog]):
    """Interface for shift book log operations."""

    def query_logs(
        self,
        filters: LogFilter,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[ShiftBookLog]:
        """Logs matching all filters, newest first."""
        ...

    def summarize_logs(self, filters: LogFilter) -> LogSummary:
        """Count, read count and newest timestamp over every log matching the filters."""
        ...

    def query_recipients(self, log_ids: Iterable[str]) -> List[Tuple[str, str]]:
        """(log_id, workcenter) pairs for all given logs in one bulk query."""
        ...

    def add_log(self, log: ShiftBookLog, workcenters: Iterable[str]) -> ShiftBookLog:
        """Insert a log together with its destination workcenters."""
        ...

    def get_latest_log(self, plant: str, workcenter: str) -> Optional[ShiftBookLog]:
        """Most recent log created at the given origin workcenter."""
        ...

    def set_read_state(self, log: ShiftBookLog, is_read: bool, at: datetime) -> ShiftBookLog:
        """Flip the read flag of a log."""
        ...

    def get_logs_by_ids(self, log_ids: Iterable[str]) -> List[ShiftBookLog]:
        """Logs with the given ids in one query; unknown ids are skipped."""
        ...

    def set_read_state_many(self, logs: Iterable[ShiftBookLog], is_read: bool, at: datetime) -> List[ShiftBookLog]:
        """Flip the read flag of several logs in a single commit."""
        ...
