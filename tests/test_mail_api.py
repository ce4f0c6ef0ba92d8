import json

import httpx
import pytest

from shiftbook.core.exceptions import TransportException
from shiftbook.infrastructure.mail_api import MailAPIClient


def make_client(handler, **kwargs) -> MailAPIClient:
    return MailAPIClient(
        base_url="https://mail.example.com/",
        api_key="secret",
        sender="shiftbook@example.com",
        retry_delay=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_send_email_posts_message():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "msg-1"})

    outcome = await make_client(handler).send_email(["a@example.com", "b@example.com"], "Subject", "<p>Body</p>")

    assert outcome.sent is True
    [request] = requests
    assert str(request.url) == "https://mail.example.com/api/send"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {
        "from": "shiftbook@example.com",
        "to": ["a@example.com", "b@example.com"],
        "subject": "Subject",
        "html": "<p>Body</p>",
    }


@pytest.mark.asyncio
async def test_rate_limit_is_retried():
    statuses = iter([429, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(next(statuses))

    outcome = await make_client(handler, max_retries=3).send_email(["a@example.com"], "s", "b")

    assert outcome.sent is True


@pytest.mark.asyncio
async def test_rejected_message_raises_transport_exception():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(401, text="unauthorized")

    with pytest.raises(TransportException) as exc_info:
        await make_client(handler, max_retries=3).send_email(["a@example.com"], "s", "b")

    assert len(calls) == 1
    assert exc_info.value.details == {"recipients": 1}
