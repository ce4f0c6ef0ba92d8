from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from shiftbook.application.services.log_query_service import LogQueryService
from shiftbook.core.exceptions import ValidationException
from shiftbook.domain.schemas.shiftbook import PaginatedLogsRequest

BASE_TIME = datetime(2024, 5, 6, 8, 0, 0)


@pytest.fixture
def service(log_repo, category_repo):
    return LogQueryService(log_repo, category_repo)


@pytest.fixture
def twenty_five_logs(make_log):
    """Logs #1..#25 one minute apart; #1-#10 at WC001, the rest at WC002."""
    return [
        make_log(
            workcenter="WC001" if n <= 10 else "WC002",
            log_dt=BASE_TIME + timedelta(minutes=n),
        )
        for n in range(1, 26)
    ]


def test_first_page_returns_newest_logs(service, twenty_five_logs):
    result = service.get_paginated_logs(PaginatedLogsRequest(plant="1000", page=1, page_size=10))

    assert [log.id for log in result.logs] == [log.id for log in reversed(twenty_five_logs[15:])]
    assert all(log.workcenter == "WC002" for log in result.logs)
    assert result.total == 25
    assert result.total_pages == 3
    assert result.last_change_timestamp == twenty_five_logs[-1].log_dt


def test_repoll_with_cursor_is_empty(service, twenty_five_logs):
    first = service.get_paginated_logs(PaginatedLogsRequest(plant="1000", page=1, page_size=10))

    again = service.get_paginated_logs(
        PaginatedLogsRequest(plant="1000", page=1, page_size=10, after_timestamp=first.last_change_timestamp)
    )

    assert again.logs == []
    assert again.total == 0
    assert again.total_pages == 0
    assert again.last_change_timestamp is None


def test_cursor_returns_only_newer_logs(service, twenty_five_logs):
    cursor = twenty_five_logs[19].log_dt

    result = service.get_paginated_logs(
        PaginatedLogsRequest(plant="1000", page=1, page_size=10, after_timestamp=cursor)
    )

    assert {log.id for log in result.logs} == {log.id for log in twenty_five_logs[20:]}
    assert result.total == 5


def test_cursor_older_than_all_data_matches_no_cursor(service, twenty_five_logs):
    without = service.get_paginated_logs(PaginatedLogsRequest(plant="1000", page=2, page_size=10))
    with_old_cursor = service.get_paginated_logs(
        PaginatedLogsRequest(
            plant="1000", page=2, page_size=10, after_timestamp=BASE_TIME - timedelta(days=1)
        )
    )

    assert [log.id for log in with_old_cursor.logs] == [log.id for log in without.logs]
    assert with_old_cursor.total == without.total


def test_log_committed_during_a_poll_waits_for_the_next_poll(service, log_repo, make_log, monkeypatch):
    first = make_log(log_dt=BASE_TIME)
    late = []
    summarize = log_repo.summarize_logs

    def summarize_then_insert(filters):
        summary = summarize(filters)
        if not late:
            late.append(make_log(log_dt=BASE_TIME + timedelta(minutes=1)))
        return summary

    monkeypatch.setattr(log_repo, "summarize_logs", summarize_then_insert)

    result = service.get_paginated_logs(PaginatedLogsRequest(plant="1000"))

    assert [log.id for log in result.logs] == [first.id]
    assert result.total == 1
    assert result.last_change_timestamp == first.log_dt

    again = service.get_paginated_logs(
        PaginatedLogsRequest(plant="1000", after_timestamp=result.last_change_timestamp)
    )

    assert [log.id for log in again.logs] == [late[0].id]
    assert again.total == 1


def test_last_page_is_partial(service, twenty_five_logs):
    result = service.get_paginated_logs(PaginatedLogsRequest(plant="1000", page=3, page_size=10))
    assert [log.id for log in result.logs] == [log.id for log in reversed(twenty_five_logs[:5])]


def test_counts_cover_the_whole_filtered_set(service, make_log):
    for n in range(6):
        make_log(is_read=n < 4)

    result = service.get_paginated_logs(PaginatedLogsRequest(plant="1000", page=1, page_size=2))

    assert len(result.logs) == 2
    assert result.total == 6
    assert result.read_count == 4
    assert result.unread_count == 2


def test_page_rows_carry_destinations_and_localized_category(service, make_log, make_category):
    make_category(translations={"en": "Maintenance", "de": "Wartung"})
    log = make_log(destinations=("WC900", "WC100"))
    make_log(category_id="CAT9")

    result = service.get_paginated_logs(PaginatedLogsRequest(plant="1000", language="de"))

    rows = {row.id: row for row in result.logs}
    assert rows[log.id].destination_workcenters == ["WC100", "WC900"]
    assert rows[log.id].category_desc == "Wartung"
    assert rows[log.id].category_language == "de"
    untranslated = next(row for row in result.logs if row.category_id == "CAT9")
    assert untranslated.category_desc == "Category CAT9"
    assert untranslated.category_language == "none"


def test_missing_translation_falls_back_to_default_language(service, make_log, make_category):
    make_category(translations={"en": "Maintenance"})
    make_log()

    result = service.get_paginated_logs(PaginatedLogsRequest(plant="1000", language="fr"))

    assert result.logs[0].category_desc == "Maintenance"
    assert result.logs[0].category_language == "en"


@pytest.mark.parametrize(
    "overrides",
    [
        {"page": 0},
        {"page_size": 0},
        {"page_size": 101},
        {"language": "xx"},
        {"plant": ""},
        {"plant": "TOOLONG"},
    ],
)
def test_invalid_requests_are_rejected_before_storage(overrides):
    log_repo = MagicMock()
    category_repo = MagicMock()
    request = PaginatedLogsRequest(**{"plant": "1000", **overrides})

    with pytest.raises(ValidationException):
        LogQueryService(log_repo, category_repo).get_paginated_logs(request)

    log_repo.summarize_logs.assert_not_called()
    log_repo.query_logs.assert_not_called()


def test_last_change_timestamp(service, make_log):
    make_log(workcenter="WC001", log_dt=BASE_TIME)
    newest = make_log(workcenter="WC002", log_dt=BASE_TIME + timedelta(hours=2))

    assert service.get_last_change_timestamp("1000") == newest.log_dt
    assert service.get_last_change_timestamp("1000", workcenter="WC001") == BASE_TIME
    assert service.get_last_change_timestamp("1000", workcenter="WC404") is None
