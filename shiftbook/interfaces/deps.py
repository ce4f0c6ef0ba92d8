"""
API Dependencies.
"""

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from shiftbook.application.services.audit_service import AuditLogger, AuditSink
from shiftbook.application.services.log_query_service import LogQueryService
from shiftbook.application.services.log_search_service import LogSearchService
from shiftbook.application.services.notification_dispatcher import NotificationDispatcher
from shiftbook.application.services.shiftbook_service import ShiftBookService
from shiftbook.domain.models.category import ShiftBookCategory
from shiftbook.domain.models.shiftbook_log import ShiftBookLog
from shiftbook.domain.repositories.category_repository import CategoryRepository
from shiftbook.domain.repositories.log_repository import LogRepository
from shiftbook.infrastructure.database import SessionLocal, get_db
from shiftbook.infrastructure.mail_api import MailAPIClient
from shiftbook.infrastructure.repositories.category_repository import SQLAlchemyCategoryRepository
from shiftbook.infrastructure.repositories.log_repository import SQLAlchemyLogRepository
from shiftbook.infrastructure.teams_webhook import TeamsWebhookClient


def get_log_repository(db: Session = Depends(get_db)) -> LogRepository:
    """Get log repository instance."""
    return SQLAlchemyLogRepository(db, ShiftBookLog)


def get_category_repository(db: Session = Depends(get_db)) -> CategoryRepository:
    """Get category repository instance."""
    return SQLAlchemyCategoryRepository(db, ShiftBookCategory)


def get_audit_sink() -> AuditSink:
    # Own session per event so audit writes never share the request transaction
    return AuditLogger(session_factory=SessionLocal)


def get_actor(x_user_id: str = Header("anonymous", alias="X-User-ID")) -> str:
    """Caller identity as set by the gateway."""
    return x_user_id or "anonymous"


def get_log_query_service(
    log_repo: LogRepository = Depends(get_log_repository),
    category_repo: CategoryRepository = Depends(get_category_repository),
) -> LogQueryService:
    return LogQueryService(log_repo, category_repo)


def get_log_search_service(
    log_repo: LogRepository = Depends(get_log_repository),
    category_repo: CategoryRepository = Depends(get_category_repository),
) -> LogSearchService:
    return LogSearchService(log_repo, category_repo)


def get_notification_dispatcher(
    category_repo: CategoryRepository = Depends(get_category_repository),
    audit_sink: AuditSink = Depends(get_audit_sink),
) -> NotificationDispatcher:
    return NotificationDispatcher(category_repo, MailAPIClient(), TeamsWebhookClient(), audit_sink)


def get_shiftbook_service(
    log_repo: LogRepository = Depends(get_log_repository),
    category_repo: CategoryRepository = Depends(get_category_repository),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    audit_sink: AuditSink = Depends(get_audit_sink),
) -> ShiftBookService:
    return ShiftBookService(log_repo, category_repo, dispatcher, audit_sink)
