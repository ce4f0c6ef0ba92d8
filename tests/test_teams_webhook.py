from datetime import datetime, timezone

import httpx
import pytest

from shiftbook.core.exceptions import TransportException
from shiftbook.domain.models.shiftbook_log import ShiftBookLog
from shiftbook.infrastructure.teams_webhook import (
    TeamsWebhookClient,
    build_message_card,
    format_timestamp,
    html_to_markdown,
)


def make_log(**overrides) -> ShiftBookLog:
    values = dict(
        id="log-1",
        plant="1000",
        shop_order="SO-42",
        step_id="0010",
        split="01",
        workcenter="WC001",
        user_id="operator1",
        log_dt=datetime(2024, 1, 15, 7, 30, 0),
        category_id="CAT1",
        subject="Pump pressure drop",
        message="<p>Replaced <b>seal</b></p>Check<br/>again",
    )
    values.update(overrides)
    return ShiftBookLog(**values)


@pytest.mark.parametrize(
    "html,expected",
    [
        ("line one<br>line two<BR />end", "line one\nline two\nend"),
        ("<b>bold</b> and <strong>strong</strong>", "**bold** and **strong**"),
        ("<i>it</i> <em>em</em>", "*it* *em*"),
        ("<p>first</p><p>second</p>", "first\n\nsecond\n\n"),
        ('<span class="x">plain</span>', "plain"),
        (None, ""),
    ],
)
def test_html_to_markdown(html, expected):
    assert html_to_markdown(html) == expected


def test_naive_timestamps_are_rendered_in_local_time():
    # Europe/Berlin is UTC+1 in January
    assert format_timestamp(datetime(2024, 1, 15, 7, 30, 0)) == "15.01.2024 08:30:00"
    assert format_timestamp(datetime(2024, 1, 15, 7, 30, 0, tzinfo=timezone.utc)) == "15.01.2024 08:30:00"


def test_message_card_layout():
    card = build_message_card(make_log())

    attachment = card["attachments"][0]
    assert attachment["contentType"] == "application/vnd.microsoft.card.adaptive"
    content = attachment["content"]
    assert content["type"] == "AdaptiveCard"
    assert content["version"] == "1.4"
    title, facts, message = content["body"]
    assert title["text"] == "🚨 Pump pressure drop"
    assert {f["title"]: f["value"] for f in facts["facts"]} == {
        "Plant": "1000",
        "Shop Order": "SO-42",
        "Step/Split": "0010/01",
        "Workcenter": "WC001",
        "User": "operator1",
        "Timestamp": "15.01.2024 08:30:00",
    }
    assert message["text"] == "Replaced **seal**\n\nCheck\nagain"
    assert message["markdown"] is True


def test_missing_split_renders_not_available():
    card = build_message_card(make_log(split=""))
    facts = card["attachments"][0]["content"]["body"][1]["facts"]
    assert {f["title"]: f["value"] for f in facts}["Step/Split"] == "N/A"


@pytest.mark.asyncio
async def test_send_retries_server_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(202)

    client = TeamsWebhookClient(max_retries=3, retry_delay=0, transport=httpx.MockTransport(handler))
    outcome = await client.send_message_card("https://teams.example.com/hook", {"attachments": []})

    assert outcome.sent is True
    assert len(calls) == 2
    assert str(calls[0].url) == "https://teams.example.com/hook"


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, text="bad card")

    client = TeamsWebhookClient(max_retries=3, retry_delay=0, transport=httpx.MockTransport(handler))

    with pytest.raises(TransportException):
        await client.send_message_card("https://teams.example.com/hook", {"attachments": []})
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_connection_errors_exhaust_retries():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = TeamsWebhookClient(max_retries=2, retry_delay=0, transport=httpx.MockTransport(handler))

    with pytest.raises(TransportException) as exc_info:
        await client.send_message_card("https://teams.example.com/hook", {})
    assert "2 attempts" in exc_info.value.message
