"""Shift book service: log creation, latest-log lookup and read state."""

from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import structlog
from pydantic import ValidationError as PydanticValidationError

from shiftbook.application.services.audit_service import AuditSink
from shiftbook.application.services.log_filter import validate_plant
from shiftbook.application.services.log_query_service import to_log_reads
from shiftbook.application.services.notification_dispatcher import NotificationDispatcher
from shiftbook.application.services.recipient_index import RecipientIndex, RecipientIndexBuilder
from shiftbook.config import get_settings
from shiftbook.core.exceptions import EntityNotFoundException, ValidationException
from shiftbook.domain.models.category import ShiftBookCategory
from shiftbook.domain.models.shiftbook_log import ShiftBookLog
from shiftbook.domain.repositories.category_repository import CategoryRepository
from shiftbook.domain.repositories.log_repository import LogRepository
from shiftbook.domain.schemas.notification import AuditEvent
from shiftbook.domain.schemas.shiftbook import (
    BatchLogEntriesResult,
    BatchReadStateResult,
    LogEntryCreate,
    LogEntryCreated,
    LogRead,
    ReadStateRead,
)
from shiftbook.i18n import localize_categories, resolve_language

settings = get_settings()
logger = structlog.get_logger(__name__)


def describe_validation_error(error: PydanticValidationError) -> str:
    """First pydantic error as ``Invalid <field>: <reason>``."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "entry"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


def check_batch_size(items: Sequence[Any], label: str) -> None:
    if not items:
        raise ValidationException(f"{label.capitalize()} must be a non-empty list", details={"count": 0})
    if len(items) > settings.MAX_BATCH_SIZE:
        raise ValidationException(
            f"Maximum {settings.MAX_BATCH_SIZE} {label} allowed per batch",
            details={"count": len(items), "max": settings.MAX_BATCH_SIZE},
        )


class ShiftBookService:
    def __init__(
        self,
        log_repo: LogRepository,
        category_repo: CategoryRepository,
        dispatcher: NotificationDispatcher,
        audit_sink: AuditSink,
    ):
        self.log_repo = log_repo
        self.category_repo = category_repo
        self.dispatcher = dispatcher
        self.audit_sink = audit_sink

    async def add_log_entry(self, payload: LogEntryCreate, actor: str) -> LogEntryCreated:
        """Store a log with the category's destination workcenters, then notify.

        The log is committed before dispatch starts; a failed notification is
        reported in the result and never undoes the log.
        """
        category = self.category_repo.get_category(payload.category_id, payload.plant)
        if category is None:
            raise EntityNotFoundException(
                f"Category {payload.category_id} not found in plant {payload.plant}",
                details={"category_id": payload.category_id, "plant": payload.plant},
            )
        return await self._create(payload, category, actor)

    async def add_log_entries(self, entries: Sequence[Any], actor: str) -> BatchLogEntriesResult:
        """Create several logs, each committed with its recipients and then dispatched.

        Entries are validated one at a time. An invalid entry or an unknown
        category is reported as ``Log <n>: ...`` and the remaining entries are
        still stored.
        """
        check_batch_size(entries, "logs")

        errors: list[str] = []
        created: list[LogEntryCreated] = []
        categories: dict[tuple[str, str], Optional[ShiftBookCategory]] = {}

        for number, entry in enumerate(entries, start=1):
            try:
                payload = LogEntryCreate.model_validate(entry)
            except PydanticValidationError as e:
                errors.append(f"Log {number}: {describe_validation_error(e)}")
                continue

            key = (payload.category_id, payload.plant)
            if key not in categories:
                categories[key] = self.category_repo.get_category(*key)
            category = categories[key]
            if category is None:
                errors.append(f"Log {number}: Category {payload.category_id} not found for plant {payload.plant}")
                continue

            created.append(await self._create(payload, category, actor))

        logger.info("Log batch processed", received=len(entries), created=len(created), failed=len(errors))
        self.audit_sink.record(
            AuditEvent(
                actor=actor,
                action="BATCH_CREATE",
                entity="shiftbook_log",
                result="FAILURE" if errors else "SUCCESS",
                error="; ".join(errors) or None,
                details={"received": len(entries), "created": len(created)},
            )
        )
        return BatchLogEntriesResult(success=not errors, count=len(created), errors=errors, logs=created)

    async def _create(self, payload: LogEntryCreate, category: ShiftBookCategory, actor: str) -> LogEntryCreated:
        workcenters = self.category_repo.get_destination_workcenters(payload.category_id)
        log = ShiftBookLog(**payload.model_dump(), log_dt=datetime.now(timezone.utc))
        log = self.log_repo.add_log(log, workcenters)

        logger.info(
            "Log entry created",
            log_id=log.id,
            plant=log.plant,
            workcenter=log.workcenter,
            category_id=log.category_id,
            destinations=len(workcenters),
        )
        self.audit_sink.record(
            AuditEvent(
                actor=actor,
                action="CREATE",
                entity="shiftbook_log",
                entity_id=log.id,
                result="SUCCESS",
                details={"category_id": log.category_id, "plant": log.plant},
            )
        )

        notification = await self.dispatcher.dispatch(log, category, actor)

        [read] = to_log_reads([log], RecipientIndex({log.id: workcenters}))
        localize_categories(self.category_repo, [read], log.plant, resolve_language(None))
        return LogEntryCreated(log=read, notification=notification)

    def get_latest_log(self, plant: str, workcenter: str, language: Optional[str] = None) -> LogRead:
        language = resolve_language(language)
        plant = validate_plant(plant)

        log = self.log_repo.get_latest_log(plant, workcenter)
        if log is None:
            raise EntityNotFoundException(
                f"No log found for workcenter {workcenter} in plant {plant}",
                details={"plant": plant, "workcenter": workcenter},
            )

        index = RecipientIndexBuilder(self.log_repo).build([log.id])
        [read] = to_log_reads([log], index)
        localize_categories(self.category_repo, [read], plant, language)
        return read

    def mark_log_as_read(self, log_id: str, actor: str) -> ReadStateRead:
        return self._set_read_state(log_id, True, actor)

    def mark_log_as_unread(self, log_id: str, actor: str) -> ReadStateRead:
        return self._set_read_state(log_id, False, actor)

    def _set_read_state(self, log_id: str, is_read: bool, actor: str) -> ReadStateRead:
        log = self.log_repo.get_by_id(log_id)
        if log is None:
            raise EntityNotFoundException(f"Log {log_id} not found", details={"log_id": log_id})

        log = self.log_repo.set_read_state(log, is_read, datetime.now(timezone.utc))
        self.audit_sink.record(
            AuditEvent(
                actor=actor,
                action="MARK_READ" if is_read else "MARK_UNREAD",
                entity="shiftbook_log",
                entity_id=log.id,
                result="SUCCESS",
            )
        )
        return ReadStateRead(id=log.id, is_read=log.is_read, read_at=log.read_at)

    def mark_logs_read_state(self, log_ids: Sequence[str], is_read: bool, actor: str) -> BatchReadStateResult:
        """Set the read flag on every known log in one commit; unknown ids are reported per entry."""
        check_batch_size(log_ids, "log ids")

        found = {log.id: log for log in self.log_repo.get_logs_by_ids(log_id for log_id in log_ids if log_id)}
        errors = []
        for number, log_id in enumerate(log_ids, start=1):
            if not log_id:
                errors.append(f"Log {number}: Log id is required")
            elif log_id not in found:
                errors.append(f"Log {number}: Log {log_id} not found")

        updated = []
        if found:
            updated = self.log_repo.set_read_state_many(found.values(), is_read, datetime.now(timezone.utc))

        success_count = len(log_ids) - len(errors)
        logger.info(
            "Log read state batch processed",
            is_read=is_read,
            received=len(log_ids),
            updated=len(updated),
            failed=len(errors),
        )
        self.audit_sink.record(
            AuditEvent(
                actor=actor,
                action="BATCH_MARK_READ" if is_read else "BATCH_MARK_UNREAD",
                entity="shiftbook_log",
                result="SUCCESS" if success_count else "FAILURE",
                error="; ".join(errors) or None,
                details={"received": len(log_ids), "updated": len(updated)},
            )
        )
        return BatchReadStateResult(
            success=not errors,
            total_count=len(log_ids),
            success_count=success_count,
            failed_count=len(errors),
            errors=errors,
            logs=[ReadStateRead(id=log.id, is_read=log.is_read, read_at=log.read_at) for log in updated],
        )
