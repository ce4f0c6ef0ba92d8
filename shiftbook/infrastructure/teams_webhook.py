"""Microsoft Teams incoming-webhook client and adaptive card builder."""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Optional

import httpx
import pytz

from shiftbook.config import get_settings
from shiftbook.core.exceptions import TransportException
from shiftbook.domain.models.shiftbook_log import ShiftBookLog
from shiftbook.domain.schemas.notification import ChannelOutcome

settings = get_settings()
logger = logging.getLogger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

ADAPTIVE_CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"
ADAPTIVE_CARD_VERSION = "1.4"
ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"

_HTML_RULES = [
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"<b>(.*?)</b>", re.IGNORECASE | re.DOTALL), r"**\1**"),
    (re.compile(r"<strong>(.*?)</strong>", re.IGNORECASE | re.DOTALL), r"**\1**"),
    (re.compile(r"<i>(.*?)</i>", re.IGNORECASE | re.DOTALL), r"*\1*"),
    (re.compile(r"<em>(.*?)</em>", re.IGNORECASE | re.DOTALL), r"*\1*"),
    (re.compile(r"<p>(.*?)</p>", re.IGNORECASE | re.DOTALL), "\\1\n\n"),
    (re.compile(r"<[^>]*>"), ""),
]


def html_to_markdown(html: Optional[str]) -> str:
    """Convert the small HTML subset used in log messages to Teams markdown."""
    text = html or ""
    for pattern, replacement in _HTML_RULES:
        text = pattern.sub(replacement, text)
    return text


def format_timestamp(value: Optional[datetime]) -> str:
    value = value or datetime.now(timezone.utc)
    # Naive timestamps are stored UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).strftime("%d.%m.%Y %H:%M:%S")


def build_message_card(log: ShiftBookLog) -> dict:
    """Adaptive card announcing a new log entry."""
    facts = [
        {"title": "Plant", "value": log.plant or "N/A"},
        {"title": "Shop Order", "value": log.shop_order or "N/A"},
        {
            "title": "Step/Split",
            "value": f"{log.step_id}/{log.split}" if log.step_id and log.split else "N/A",
        },
        {"title": "Workcenter", "value": log.workcenter or "N/A"},
        {"title": "User", "value": log.user_id or "N/A"},
        {"title": "Timestamp", "value": format_timestamp(log.log_dt)},
    ]

    content = {
        "type": "AdaptiveCard",
        "body": [
            {"type": "TextBlock", "text": f"🚨 {log.subject}", "weight": "Bolder", "size": "Medium"},
            {"type": "FactSet", "facts": facts},
            {"type": "TextBlock", "text": html_to_markdown(log.message), "wrap": True, "markdown": True},
        ],
        "$schema": ADAPTIVE_CARD_SCHEMA,
        "version": ADAPTIVE_CARD_VERSION,
    }

    return {"attachments": [{"contentType": ADAPTIVE_CARD_CONTENT_TYPE, "content": content}]}


class TeamsWebhookClient:
    """Posts adaptive cards to Teams incoming webhooks (or Power Automate flows)."""

    def __init__(
        self,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        verify_ssl: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.max_retries = max_retries or settings.SENDER_MAX_RETRIES
        self.retry_delay = settings.SENDER_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self.verify_ssl = settings.TEAMS_VERIFY_SSL if verify_ssl is None else verify_ssl
        self._transport = transport

    async def send_message_card(self, webhook_url: str, card: dict) -> ChannelOutcome:
        last_error = None
        for attempt in range(1, self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=15, verify=self.verify_ssl, transport=self._transport
                ) as client:
                    response = await client.post(webhook_url, json=card)
                    response.raise_for_status()
                    logger.info(f"Teams card delivered (status {response.status_code}, attempt {attempt})")
                    return ChannelOutcome(sent=True)
            except httpx.HTTPStatusError as e:
                last_error = e
                logger.warning(
                    f"Teams webhook error (attempt {attempt}/{self.max_retries}): "
                    f"{e.response.status_code} - {e.response.text[:200]}"
                )
                if e.response.status_code != 429 and e.response.status_code < 500:
                    break
            except httpx.HTTPError as e:
                last_error = e
                logger.warning(f"Teams webhook connection error (attempt {attempt}/{self.max_retries}): {e}")

            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay * attempt)

        raise TransportException(f"Failed to deliver Teams card after {attempt} attempts: {last_error}")
