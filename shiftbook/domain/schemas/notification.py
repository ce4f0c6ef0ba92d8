"""Pydantic schemas for notification routing and dispatch outcomes."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class NotificationMode(str, Enum):
    """Mode stored on a category."""
    EMAIL = "EMAIL"
    TEAMS = "TEAMS"
    BOTH = "BOTH"


class NotificationRoute(str, Enum):
    EMAIL_ONLY = "EMAIL_ONLY"
    TEAMS_ONLY = "TEAMS_ONLY"
    BOTH = "BOTH"


class Channel(str, Enum):
    EMAIL = "email"
    TEAMS = "teams"


class ChannelOutcome(BaseModel):
    sent: bool
    error: Optional[str] = None


class DispatchResult(BaseModel):
    route: NotificationRoute
    email: Optional[ChannelOutcome] = None
    teams: Optional[ChannelOutcome] = None

    @property
    def outcomes(self) -> dict[Channel, ChannelOutcome]:
        result = {}
        if self.email is not None:
            result[Channel.EMAIL] = self.email
        if self.teams is not None:
            result[Channel.TEAMS] = self.teams
        return result

    @computed_field
    @property
    def success(self) -> bool:
        """At least one requested channel went out."""
        return any(outcome.sent for outcome in self.outcomes.values())


class AuditEvent(BaseModel):
    actor: str
    action: str
    entity: str
    entity_id: Optional[str] = None
    channel: Optional[Channel] = None
    result: str
    error: Optional[str] = None
    details: dict = {}
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
