"""Pydantic schemas for shift book logs: filters, requests and responses."""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any, Optional

from shiftbook.domain.schemas.notification import DispatchResult


class LogFilter(BaseModel):
    """Conjunctive predicate evaluated by the log store.

    Workcenter matching applies only when ``workcenter`` is set and at least one
    of ``match_origin`` / ``match_destination`` is true; both true means either role.
    """
    plant: str
    category_id: Optional[str] = None
    workcenter: Optional[str] = None
    match_origin: bool = True
    match_destination: bool = True
    after_timestamp: Optional[datetime] = None
    until_timestamp: Optional[datetime] = None

    model_config = {"frozen": True}

    @property
    def filters_workcenter(self) -> bool:
        return bool(self.workcenter) and (self.match_origin or self.match_destination)


class LogSummary(BaseModel):
    total: int = 0
    read_count: int = 0
    last_change_timestamp: Optional[datetime] = None

    @property
    def unread_count(self) -> int:
        return self.total - self.read_count


class LogEntryCreate(BaseModel):
    plant: str = Field(min_length=1, max_length=4, pattern=r"^[A-Z0-9]+$")
    shop_order: str = Field(min_length=1, max_length=30)
    step_id: str = Field(min_length=1, max_length=4)
    split: str = Field(default="", max_length=3)
    workcenter: str = Field(min_length=1, max_length=36)
    user_id: str = Field(min_length=1, max_length=512)
    category_id: str = Field(min_length=1, max_length=36)
    subject: str = Field(min_length=1, max_length=1024)
    message: str = Field(min_length=1, max_length=4096)


class LogRead(BaseModel):
    id: str
    plant: str
    shop_order: str
    step_id: str
    split: Optional[str] = ""
    workcenter: str
    user_id: str
    log_dt: datetime
    category_id: str
    subject: str
    message: str
    is_read: bool = False
    read_at: Optional[datetime] = None
    destination_workcenters: list[str] = []
    category_desc: Optional[str] = None
    category_language: Optional[str] = None

    model_config = {"from_attributes": True}


class PaginatedLogsRequest(BaseModel):
    plant: str
    category_id: Optional[str] = None
    workcenter: Optional[str] = None
    include_origin: Optional[bool] = None
    include_destination: Optional[bool] = None
    page: int = 1
    page_size: int = 20
    after_timestamp: Optional[datetime] = None
    language: Optional[str] = None


class PaginatedLogsResult(BaseModel):
    logs: list[LogRead]
    total: int
    page: int
    page_size: int
    total_pages: int
    last_change_timestamp: Optional[datetime] = None
    read_count: int
    unread_count: int


class SearchLogsRequest(BaseModel):
    plant: str
    search_string: Optional[str] = None
    category_id: Optional[str] = None
    workcenter: Optional[str] = None
    include_origin: Optional[bool] = None
    include_destination: Optional[bool] = None
    language: Optional[str] = None


class SearchLogsResult(BaseModel):
    logs: list[LogRead]
    count: int
    read_count: int
    unread_count: int
    match_mode: str


class LastChangeRead(BaseModel):
    last_change_timestamp: Optional[datetime] = None


class ReadStateRead(BaseModel):
    id: str
    is_read: bool
    read_at: Optional[datetime] = None


class LogEntryCreated(BaseModel):
    log: LogRead
    notification: DispatchResult


class BatchLogEntriesCreate(BaseModel):
    # Entries are validated one by one so a bad entry does not reject the batch
    logs: list[Any]


class BatchLogEntriesResult(BaseModel):
    success: bool
    count: int
    errors: list[str] = []
    logs: list[LogEntryCreated] = []


class BatchReadStateRequest(BaseModel):
    log_ids: list[str]


class BatchReadStateResult(BaseModel):
    success: bool
    total_count: int
    success_count: int
    failed_count: int
    errors: list[str] = []
    logs: list[ReadStateRead] = []
