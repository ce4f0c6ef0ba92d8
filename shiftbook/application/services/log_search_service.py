"""Ad hoc search over the filtered log set."""

import structlog

from shiftbook.application.services.log_filter import LogFilterEngine
from shiftbook.application.services.log_query_service import to_log_reads
from shiftbook.application.services.recipient_index import RecipientIndexBuilder
from shiftbook.application.services.string_matcher import StringMatcher
from shiftbook.domain.repositories.category_repository import CategoryRepository
from shiftbook.domain.repositories.log_repository import LogRepository
from shiftbook.domain.schemas.shiftbook import SearchLogsRequest, SearchLogsResult
from shiftbook.i18n import localize_categories, resolve_language

logger = structlog.get_logger(__name__)


class LogSearchService:
    def __init__(self, log_repo: LogRepository, category_repo: CategoryRepository):
        self.log_repo = log_repo
        self.category_repo = category_repo
        self.filter_engine = LogFilterEngine(log_repo)
        self.index_builder = RecipientIndexBuilder(log_repo)

    def search(self, request: SearchLogsRequest) -> SearchLogsResult:
        """Every log matching the filters and the search string, newest first.

        All input is validated before the store is queried: a blank search
        string, a bad regular expression, an invalid plant or an unsupported
        language never reach storage.
        """
        matcher = StringMatcher.compile(request.search_string)
        language = resolve_language(request.language)
        filters = self.filter_engine.build(
            request.plant,
            category_id=request.category_id,
            workcenter=request.workcenter,
            include_origin=request.include_origin,
            include_destination=request.include_destination,
        )

        candidates = self.log_repo.query_logs(filters)
        index = self.index_builder.build(log.id for log in candidates)
        matched = [log for log in candidates if matcher.matches(log, index.get(log.id))]

        reads = to_log_reads(matched, index)
        localize_categories(self.category_repo, reads, filters.plant, language)

        read_count = sum(1 for log in matched if log.is_read)

        logger.info(
            "Log search completed",
            plant=filters.plant,
            pattern=matcher.pattern,
            match_mode=matcher.mode.value,
            candidates=len(candidates),
            matched=len(reads),
        )

        return SearchLogsResult(
            logs=reads,
            count=len(reads),
            read_count=read_count,
            unread_count=len(reads) - read_count,
            match_mode=matcher.mode.value,
        )

