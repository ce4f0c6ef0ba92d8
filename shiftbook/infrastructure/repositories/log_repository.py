"""
SQLAlchemy Implementation of the Log Repository.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Query

from shiftbook.domain.models.shiftbook_log import ShiftBookLog, ShiftBookLogRecipient
from shiftbook.domain.repositories.log_repository import LogRepository
from shiftbook.domain.schemas.shiftbook import LogFilter, LogSummary
from shiftbook.infrastructure.repositories.base_repository import SQLAlchemyRepository

logger = logging.getLogger(__name__)


class SQLAlchemyLogRepository(SQLAlchemyRepository[ShiftBookLog], LogRepository):
    """Log repository implementation using SQLAlchemy."""

    def _apply_filters(self, query: Query, filters: LogFilter) -> Query:
        query = query.filter(ShiftBookLog.plant == filters.plant)

        if filters.category_id:
            query = query.filter(ShiftBookLog.category_id == filters.category_id)

        # Exclusive bound: a log stamped exactly at the cursor was already delivered
        if filters.after_timestamp is not None:
            query = query.filter(ShiftBookLog.log_dt > filters.after_timestamp)

        if filters.until_timestamp is not None:
            query = query.filter(ShiftBookLog.log_dt <= filters.until_timestamp)

        if filters.filters_workcenter:
            conditions = []
            if filters.match_origin:
                conditions.append(ShiftBookLog.workcenter == filters.workcenter)
            if filters.match_destination:
                destination_log_ids = select(ShiftBookLogRecipient.log_id).where(
                    ShiftBookLogRecipient.workcenter == filters.workcenter
                )
                conditions.append(ShiftBookLog.id.in_(destination_log_ids))
            query = query.filter(or_(*conditions))

        return query

    def query_logs(
        self,
        filters: LogFilter,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[ShiftBookLog]:
        query = self._apply_filters(self.db.query(ShiftBookLog), filters)
        query = query.order_by(ShiftBookLog.log_dt.desc(), ShiftBookLog.id.desc())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def summarize_logs(self, filters: LogFilter) -> LogSummary:
        query = self.db.query(
            func.count(ShiftBookLog.id),
            func.coalesce(func.sum(case((ShiftBookLog.is_read.is_(True), 1), else_=0)), 0),
            func.max(ShiftBookLog.log_dt),
        )
        total, read_count, last_change = self._apply_filters(query, filters).one()
        return LogSummary(
            total=total or 0,
            read_count=read_count or 0,
            last_change_timestamp=last_change,
        )

    def query_recipients(self, log_ids: Iterable[str]) -> List[Tuple[str, str]]:
        ids = list(log_ids)
        if not ids:
            return []
        rows = (
            self.db.query(ShiftBookLogRecipient.log_id, ShiftBookLogRecipient.workcenter)
            .filter(ShiftBookLogRecipient.log_id.in_(ids))
            .all()
        )
        logger.debug(f"Fetched {len(rows)} recipients for {len(ids)} logs")
        return [(row.log_id, row.workcenter) for row in rows]

    def add_log(self, log: ShiftBookLog, workcenters: Iterable[str]) -> ShiftBookLog:
        # dict.fromkeys keeps order and drops duplicates
        log.recipients = [
            ShiftBookLogRecipient(workcenter=workcenter)
            for workcenter in dict.fromkeys(workcenters)
        ]
        return self.add(log)

    def get_latest_log(self, plant: str, workcenter: str) -> Optional[ShiftBookLog]:
        return (
            self.db.query(ShiftBookLog)
            .filter(ShiftBookLog.plant == plant, ShiftBookLog.workcenter == workcenter)
            .order_by(ShiftBookLog.log_dt.desc())
            .first()
        )

    def set_read_state(self, log: ShiftBookLog, is_read: bool, at: datetime) -> ShiftBookLog:
        log.is_read = is_read
        log.read_at = at if is_read else None
        self.db.commit()
        self.db.refresh(log)
        return log

    def get_logs_by_ids(self, log_ids: Iterable[str]) -> List[ShiftBookLog]:
        ids = list(dict.fromkeys(log_ids))
        if not ids:
            return []
        return self.db.query(ShiftBookLog).filter(ShiftBookLog.id.in_(ids)).all()

    def set_read_state_many(self, logs: Iterable[ShiftBookLog], is_read: bool, at: datetime) -> List[ShiftBookLog]:
        logs = list(logs)
        for log in logs:
            log.is_read = is_read
            log.read_at = at if is_read else None
        self.db.commit()
        for log in logs:
            self.db.refresh(log)
        logger.debug(f"Set read state {is_read} on {len(logs)} logs")
        return logs
