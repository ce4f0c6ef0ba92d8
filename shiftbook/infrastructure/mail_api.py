"""Mail relay HTTP client.

Posts a JSON message to the relay's ``/api/send`` endpoint. Retries on
connection errors and 429/5xx answers with a linear backoff; anything else
fails straight away.
"""

import asyncio
import logging
from typing import Optional

import httpx

from shiftbook.config import get_settings
from shiftbook.core.exceptions import TransportException
from shiftbook.domain.schemas.notification import ChannelOutcome

settings = get_settings()
logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


class MailAPIClient:
    """Client for the HTTP mail relay."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.MAIL_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.MAIL_API_KEY
        self.sender = sender or settings.MAIL_SENDER
        self.headers = {"Content-Type": "application/json"}
        if self.api_key:
            self.headers["Authorization"] = f"Bearer {self.api_key}"
        self.max_retries = max_retries or settings.SENDER_MAX_RETRIES
        self.retry_delay = settings.SENDER_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._transport = transport

    async def send_email(self, recipients: list[str], subject: str, body: str) -> ChannelOutcome:
        """
        Send one HTML message to all recipients.

        Raises TransportException once every attempt has failed.
        """
        url = f"{self.base_url}/api/send"
        payload = {
            "from": self.sender,
            "to": recipients,
            "subject": subject,
            "html": body,
        }

        last_error = None
        for attempt in range(1, self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=20, transport=self._transport) as client:
                    response = await client.post(url, json=payload, headers=self.headers)
                    response.raise_for_status()
                    logger.info(f"Mail sent to {len(recipients)} recipients (attempt {attempt})")
                    return ChannelOutcome(sent=True)
            except httpx.HTTPStatusError as e:
                last_error = e
                error_text = e.response.text[:200] if e.response.text else "No response body"
                logger.warning(
                    f"Mail API error (attempt {attempt}/{self.max_retries}): "
                    f"{e.response.status_code} - {error_text}"
                )
                if e.response.status_code not in RETRYABLE_STATUS_CODES:
                    break
            except httpx.HTTPError as e:
                last_error = e
                logger.warning(f"Mail API connection error (attempt {attempt}/{self.max_retries}): {e}")

            if attempt < self.max_retries:
                await asyncio.sleep(self.retry_delay * attempt)

        raise TransportException(
            f"Failed to send mail after {attempt} attempts: {last_error}",
            details={"recipients": len(recipients)},
        )
