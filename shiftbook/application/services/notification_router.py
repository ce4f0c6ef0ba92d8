"""Notification routing: which channel(s) a category asks for."""

from typing import Optional

from shiftbook.domain.models.category import ShiftBookCategory
from shiftbook.domain.schemas.notification import Channel, NotificationMode, NotificationRoute


def route_for(category: Optional[ShiftBookCategory]) -> NotificationRoute:
    """Route stored on the category; legacy rows without a valid mode fall back to email."""
    mode = (getattr(category, "notification_mode", None) or "").upper()
    if mode == NotificationMode.TEAMS.value:
        return NotificationRoute.TEAMS_ONLY
    if mode == NotificationMode.BOTH.value:
        return NotificationRoute.BOTH
    return NotificationRoute.EMAIL_ONLY


def channels_for(route: NotificationRoute) -> tuple[Channel, ...]:
    match route:
        case NotificationRoute.EMAIL_ONLY:
            return (Channel.EMAIL,)
        case NotificationRoute.TEAMS_ONLY:
            return (Channel.TEAMS,)
        case NotificationRoute.BOTH:
            return (Channel.EMAIL, Channel.TEAMS)
        case _:
            raise ValueError(f"Unhandled notification route: {route!r}")
