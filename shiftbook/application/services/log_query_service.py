"""Paginated log queries for polling clients.

A poll resubmits the previous ``last_change_timestamp`` as ``after_timestamp``
and only receives logs stamped strictly after it. Counts always describe the
whole filtered set, not just the returned page.
"""

import math
from datetime import datetime
from typing import Iterable, List, Optional

import structlog

from shiftbook.application.services.log_filter import LogFilterEngine
from shiftbook.application.services.recipient_index import RecipientIndex, RecipientIndexBuilder
from shiftbook.config import get_settings
from shiftbook.core.exceptions import ValidationException
from shiftbook.domain.models.shiftbook_log import ShiftBookLog
from shiftbook.domain.repositories.category_repository import CategoryRepository
from shiftbook.domain.repositories.log_repository import LogRepository
from shiftbook.domain.schemas.shiftbook import LogRead, PaginatedLogsRequest, PaginatedLogsResult
from shiftbook.i18n import localize_categories, resolve_language

settings = get_settings()
logger = structlog.get_logger(__name__)


def to_log_reads(logs: Iterable[ShiftBookLog], index: RecipientIndex) -> List[LogRead]:
    """Project logs to response rows with their destination workcenters."""
    reads = []
    for log in logs:
        read = LogRead.model_validate(log)
        read.destination_workcenters = sorted(index.get(log.id))
        reads.append(read)
    return reads


class LogQueryService:
    def __init__(self, log_repo: LogRepository, category_repo: CategoryRepository):
        self.log_repo = log_repo
        self.category_repo = category_repo
        self.filter_engine = LogFilterEngine(log_repo)
        self.index_builder = RecipientIndexBuilder(log_repo)

    @staticmethod
    def _validate_paging(page: int, page_size: int) -> None:
        if page is None or page < 1:
            raise ValidationException("Page must be 1 or greater", details={"page": page})
        if page_size is None or page_size < 1 or page_size > settings.MAX_PAGE_SIZE:
            raise ValidationException(
                f"Page size must be between 1 and {settings.MAX_PAGE_SIZE}",
                details={"page_size": page_size},
            )

    def get_paginated_logs(self, request: PaginatedLogsRequest) -> PaginatedLogsResult:
        self._validate_paging(request.page, request.page_size)
        language = resolve_language(request.language)
        filters = self.filter_engine.build(
            request.plant,
            category_id=request.category_id,
            workcenter=request.workcenter,
            include_origin=request.include_origin,
            include_destination=request.include_destination,
            after_timestamp=request.after_timestamp,
        )

        summary = self.log_repo.summarize_logs(filters)

        logs: List[ShiftBookLog] = []
        if summary.total:
            # Logs committed after the summary belong to the next poll
            page_filters = filters.model_copy(update={"until_timestamp": summary.last_change_timestamp})
            offset = (request.page - 1) * request.page_size
            logs = self.log_repo.query_logs(page_filters, offset=offset, limit=request.page_size)

        index = self.index_builder.build(log.id for log in logs)
        reads = to_log_reads(logs, index)
        localize_categories(self.category_repo, reads, filters.plant, language)

        logger.info(
            "Paginated logs fetched",
            plant=filters.plant,
            workcenter=filters.workcenter,
            after_timestamp=filters.after_timestamp.isoformat() if filters.after_timestamp else None,
            page=request.page,
            returned=len(reads),
            total=summary.total,
        )

        return PaginatedLogsResult(
            logs=reads,
            total=summary.total,
            page=request.page,
            page_size=request.page_size,
            total_pages=math.ceil(summary.total / request.page_size),
            last_change_timestamp=summary.last_change_timestamp,
            read_count=summary.read_count,
            unread_count=summary.unread_count,
        )

    def get_last_change_timestamp(
        self,
        plant: str,
        category_id: Optional[str] = None,
        workcenter: Optional[str] = None,
        include_origin: Optional[bool] = None,
        include_destination: Optional[bool] = None,
    ) -> Optional[datetime]:
        filters = self.filter_engine.build(
            plant,
            category_id=category_id,
            workcenter=workcenter,
            include_origin=include_origin,
            include_destination=include_destination,
        )
        return self.log_repo.summarize_logs(filters).last_change_timestamp
