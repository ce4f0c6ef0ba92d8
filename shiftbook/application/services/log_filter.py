"""Log filter engine: turns query parameters into the predicate the store evaluates."""

import re
from datetime import datetime, timezone
from typing import List, Optional

from shiftbook.core.exceptions import ValidationException
from shiftbook.domain.models.shiftbook_log import ShiftBookLog
from shiftbook.domain.repositories.log_repository import LogRepository
from shiftbook.domain.schemas.shiftbook import LogFilter

PLANT_PATTERN = re.compile(r"^[A-Za-z0-9]{1,4}$")


def validate_plant(plant: Optional[str]) -> str:
    if not plant or not isinstance(plant, str) or not PLANT_PATTERN.match(plant):
        raise ValidationException(
            "Plant must be a 1-4 character alphanumeric code",
            details={"plant": plant},
        )
    return plant


def normalize_timestamp(value: Optional[datetime]) -> Optional[datetime]:
    """Cursors are compared in UTC, which is how logs are stamped; naive values are taken as UTC."""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)


class LogFilterEngine:
    def __init__(self, repo: LogRepository):
        self.repo = repo

    @staticmethod
    def build(
        plant: str,
        category_id: Optional[str] = None,
        workcenter: Optional[str] = None,
        include_origin: Optional[bool] = None,
        include_destination: Optional[bool] = None,
        after_timestamp: Optional[datetime] = None,
    ) -> LogFilter:
        # Unspecified roles default to true
        return LogFilter(
            plant=validate_plant(plant),
            category_id=category_id or None,
            workcenter=workcenter or None,
            match_origin=True if include_origin is None else include_origin,
            match_destination=True if include_destination is None else include_destination,
            after_timestamp=normalize_timestamp(after_timestamp),
        )

    def filter(
        self,
        plant: str,
        category_id: Optional[str] = None,
        workcenter: Optional[str] = None,
        include_origin: Optional[bool] = None,
        include_destination: Optional[bool] = None,
        after_timestamp: Optional[datetime] = None,
    ) -> List[ShiftBookLog]:
        """Candidate logs, newest first."""
        filters = self.build(
            plant,
            category_id=category_id,
            workcenter=workcenter,
            include_origin=include_origin,
            include_destination=include_destination,
            after_timestamp=after_timestamp,
        )
        return self.repo.query_logs(filters)
