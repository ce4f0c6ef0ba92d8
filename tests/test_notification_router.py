from types import SimpleNamespace

import pytest

from shiftbook.application.services.notification_router import channels_for, route_for
from shiftbook.domain.schemas.notification import Channel, NotificationRoute


@pytest.mark.parametrize(
    "mode,expected",
    [
        ("EMAIL", NotificationRoute.EMAIL_ONLY),
        ("TEAMS", NotificationRoute.TEAMS_ONLY),
        ("BOTH", NotificationRoute.BOTH),
        ("both", NotificationRoute.BOTH),
        (None, NotificationRoute.EMAIL_ONLY),
        ("", NotificationRoute.EMAIL_ONLY),
        ("FAX", NotificationRoute.EMAIL_ONLY),
    ],
)
def test_route_for(mode, expected):
    assert route_for(SimpleNamespace(notification_mode=mode)) is expected


def test_missing_category_routes_to_email():
    assert route_for(None) is NotificationRoute.EMAIL_ONLY


def test_channels_for_every_route():
    assert channels_for(NotificationRoute.EMAIL_ONLY) == (Channel.EMAIL,)
    assert channels_for(NotificationRoute.TEAMS_ONLY) == (Channel.TEAMS,)
    assert channels_for(NotificationRoute.BOTH) == (Channel.EMAIL, Channel.TEAMS)
