"""Notification dispatch: fans a new log out to its category's channels.

Each requested channel runs as its own task under a timeout. Outcomes are
collected per channel: a failing or hanging channel never cancels or hides the
other one, and nothing raised by a sender escapes ``dispatch``. Every attempted
channel produces exactly one audit event.
"""

import asyncio
import html
import re
from typing import Optional, Protocol

import structlog

from shiftbook.application.services.audit_service import AuditSink
from shiftbook.application.services.notification_router import channels_for, route_for
from shiftbook.config import get_settings
from shiftbook.core.exceptions import AppError, ConfigurationException
from shiftbook.domain.models.category import ShiftBookCategory
from shiftbook.domain.models.shiftbook_log import ShiftBookLog
from shiftbook.domain.repositories.category_repository import CategoryRepository
from shiftbook.domain.schemas.notification import AuditEvent, Channel, ChannelOutcome, DispatchResult
from shiftbook.infrastructure.teams_webhook import build_message_card, format_timestamp

settings = get_settings()
logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EmailSender(Protocol):
    async def send_email(self, recipients: list[str], subject: str, body: str) -> ChannelOutcome:
        ...


class TeamsSender(Protocol):
    async def send_message_card(self, webhook_url: str, card: dict) -> ChannelOutcome:
        ...


def format_log_email_body(log: ShiftBookLog) -> str:
    """HTML mail body; the log message is already HTML and is embedded as is."""
    rows = [
        ("Plant", log.plant),
        ("Work Center", log.workcenter),
        ("Shop Order", log.shop_order),
        ("Step/Split", f"{log.step_id}/{log.split}" if log.split else log.step_id),
        ("Created By", log.user_id),
        ("Timestamp", format_timestamp(log.log_dt)),
    ]
    details = "\n".join(
        f"<tr><th align=\"left\">{label}</th><td>{html.escape(str(value or 'N/A'))}</td></tr>"
        for label, value in rows
    )
    return (
        f"<h2>{html.escape(log.subject)}</h2>\n"
        f"<div>{log.message}</div>\n"
        f"<table>\n{details}\n</table>\n"
        "<p>This is an automated message from the ShiftBook system. Please do not reply to this email.</p>"
    )


class NotificationDispatcher:
    def __init__(
        self,
        category_repo: CategoryRepository,
        email_sender: EmailSender,
        teams_sender: TeamsSender,
        audit_sink: AuditSink,
        timeout: Optional[float] = None,
    ):
        self.category_repo = category_repo
        self.email_sender = email_sender
        self.teams_sender = teams_sender
        self.audit_sink = audit_sink
        self.timeout = settings.NOTIFICATION_CHANNEL_TIMEOUT_SECONDS if timeout is None else timeout

    async def dispatch(self, log: ShiftBookLog, category: ShiftBookCategory, actor: str) -> DispatchResult:
        route = route_for(category)
        channels = channels_for(route)

        # gather cancels the channel tasks if the caller is cancelled
        outcomes = await asyncio.gather(
            *(self._run_channel(channel, log, category, actor) for channel in channels)
        )

        result = DispatchResult(
            route=route,
            **{channel.value: outcome for channel, outcome in zip(channels, outcomes)},
        )
        logger.info(
            "Notification dispatch finished",
            log_id=log.id,
            category_id=log.category_id,
            route=route.value,
            success=result.success,
        )
        return result

    async def _run_channel(
        self,
        channel: Channel,
        log: ShiftBookLog,
        category: ShiftBookCategory,
        actor: str,
    ) -> ChannelOutcome:
        try:
            outcome = await asyncio.wait_for(self._send(channel, log, category), timeout=self.timeout)
        except asyncio.TimeoutError:
            outcome = ChannelOutcome(sent=False, error=f"{channel.value} timed out after {self.timeout}s")
        except AppError as e:
            outcome = ChannelOutcome(sent=False, error=e.message)
        except Exception as e:
            logger.exception("Notification sender crashed", channel=channel.value, log_id=log.id)
            outcome = ChannelOutcome(sent=False, error=str(e) or e.__class__.__name__)

        if not outcome.sent and not outcome.error:
            outcome = ChannelOutcome(sent=False, error=f"{channel.value} sender reported failure")

        if outcome.sent:
            logger.info("Notification sent", channel=channel.value, log_id=log.id)
        else:
            logger.warning(
                "Notification failed",
                channel=channel.value,
                log_id=log.id,
                category_id=log.category_id,
                error=outcome.error,
            )

        event = AuditEvent(
            actor=actor,
            action="NOTIFY",
            entity="shiftbook_log",
            entity_id=log.id,
            channel=channel,
            result="SUCCESS" if outcome.sent else "FAILURE",
            error=outcome.error,
            details={"category_id": log.category_id, "plant": log.plant},
        )
        try:
            self.audit_sink.record(event)
        except Exception:
            logger.exception("Audit sink failed", channel=channel.value, log_id=log.id)
        return outcome

    async def _send(self, channel: Channel, log: ShiftBookLog, category: ShiftBookCategory) -> ChannelOutcome:
        match channel:
            case Channel.EMAIL:
                return await self._send_email(log, category)
            case Channel.TEAMS:
                return await self._send_teams(log)
            case _:
                raise ValueError(f"Unhandled channel: {channel!r}")

    async def _send_email(self, log: ShiftBookLog, category: ShiftBookCategory) -> ChannelOutcome:
        if category is not None and category.send_mail is False:
            raise ConfigurationException(
                f"Mail sending is disabled for category {log.category_id}",
                details={"category_id": log.category_id, "plant": log.plant},
            )

        addresses = self.category_repo.get_mail_recipients(log.category_id, log.plant)
        recipients = [address.strip() for address in addresses if EMAIL_PATTERN.match(address.strip())]
        if len(recipients) != len(addresses):
            logger.warning(
                "Invalid mail addresses skipped",
                category_id=log.category_id,
                skipped=len(addresses) - len(recipients),
            )
        if not recipients:
            raise ConfigurationException(
                f"No mail recipients configured for category {log.category_id}",
                details={"category_id": log.category_id, "plant": log.plant},
            )

        return await self.email_sender.send_email(recipients, log.subject, format_log_email_body(log))

    async def _send_teams(self, log: ShiftBookLog) -> ChannelOutcome:
        teams_channel = self.category_repo.get_teams_channel(log.category_id)
        if teams_channel is None or not teams_channel.active or not teams_channel.webhook_url:
            raise ConfigurationException(
                f"No active Teams channel configured for category {log.category_id}",
                details={"category_id": log.category_id},
            )

        return await self.teams_sender.send_message_card(teams_channel.webhook_url, build_message_card(log))
