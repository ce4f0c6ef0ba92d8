"""Audit trail for notification attempts and log mutations.

Recording is fire-and-forget: a failing audit write is logged and swallowed so
it never changes the outcome of the operation being audited.
"""

from typing import Callable, Optional, Protocol

import structlog
from sqlalchemy.orm import Session

from shiftbook.config import get_settings
from shiftbook.domain.models.audit_log import AuditLog
from shiftbook.domain.schemas.notification import AuditEvent

settings = get_settings()
logger = structlog.get_logger(__name__)


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None:
        ...


class AuditLogger:
    """Writes every event as a structured log line and, when enabled, an ``audit_logs`` row."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None, persist: Optional[bool] = None):
        self.session_factory = session_factory
        self.persist = settings.AUDIT_LOG_DATABASE if persist is None else persist

    def record(self, event: AuditEvent) -> None:
        try:
            logger.info(
                "audit",
                actor=event.actor,
                action=event.action,
                entity=event.entity,
                entity_id=event.entity_id,
                channel=event.channel.value if event.channel else None,
                result=event.result,
                error=event.error,
                details=event.details,
            )
            if self.persist and self.session_factory is not None:
                self._store(event)
        except Exception:
            logger.exception("Failed to record audit event", action=event.action, entity_id=event.entity_id)

    def _store(self, event: AuditEvent) -> None:
        db = self.session_factory()
        try:
            db.add(
                AuditLog(
                    actor=event.actor,
                    action=event.action,
                    entity=event.entity,
                    entity_id=event.entity_id,
                    channel=event.channel.value if event.channel else None,
                    result=event.result,
                    error=event.error,
                    details=event.details,
                    created_at=event.timestamp,
                )
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
