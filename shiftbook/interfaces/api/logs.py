"""Shift book log API routes: paginated polling, search, single and batch creation, read state."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from shiftbook.application.services.log_query_service import LogQueryService
from shiftbook.application.services.log_search_service import LogSearchService
from shiftbook.application.services.shiftbook_service import ShiftBookService
from shiftbook.config import get_settings
from shiftbook.domain.schemas.shiftbook import (
    BatchLogEntriesCreate,
    BatchLogEntriesResult,
    BatchReadStateRequest,
    BatchReadStateResult,
    LastChangeRead,
    LogEntryCreate,
    LogEntryCreated,
    LogRead,
    PaginatedLogsRequest,
    PaginatedLogsResult,
    ReadStateRead,
    SearchLogsRequest,
    SearchLogsResult,
)
from shiftbook.interfaces.deps import (
    get_actor,
    get_log_query_service,
    get_log_search_service,
    get_shiftbook_service,
)

settings = get_settings()

router = APIRouter(prefix="/api/logs", tags=["Logs"])


@router.get("", response_model=PaginatedLogsResult)
def list_logs(
    plant: str = Query(..., description="Plant code"),
    category: Optional[str] = None,
    workcenter: Optional[str] = None,
    include_orig_work_center: Optional[bool] = None,
    include_dest_work_center: Optional[bool] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    after_timestamp: Optional[datetime] = Query(None, description="Only logs created strictly after this instant"),
    language: Optional[str] = None,
    service: LogQueryService = Depends(get_log_query_service),
):
    request = PaginatedLogsRequest(
        plant=plant,
        category_id=category,
        workcenter=workcenter,
        include_origin=include_orig_work_center,
        include_destination=include_dest_work_center,
        page=page,
        page_size=page_size,
        after_timestamp=after_timestamp,
        language=language,
    )
    return service.get_paginated_logs(request)


@router.get("/search", response_model=SearchLogsResult)
def search_logs(
    plant: str = Query(...),
    search_string: Optional[str] = None,
    category: Optional[str] = None,
    workcenter: Optional[str] = None,
    include_orig_work_center: Optional[bool] = None,
    include_dest_work_center: Optional[bool] = None,
    language: Optional[str] = None,
    service: LogSearchService = Depends(get_log_search_service),
):
    request = SearchLogsRequest(
        plant=plant,
        search_string=search_string,
        category_id=category,
        workcenter=workcenter,
        include_origin=include_orig_work_center,
        include_destination=include_dest_work_center,
        language=language,
    )
    return service.search(request)


@router.get("/last-change", response_model=LastChangeRead)
def last_change(
    plant: str = Query(...),
    category: Optional[str] = None,
    workcenter: Optional[str] = None,
    include_orig_work_center: Optional[bool] = None,
    include_dest_work_center: Optional[bool] = None,
    service: LogQueryService = Depends(get_log_query_service),
):
    """Newest log timestamp of the filtered set; cheap check before a full poll."""
    timestamp = service.get_last_change_timestamp(
        plant,
        category_id=category,
        workcenter=workcenter,
        include_origin=include_orig_work_center,
        include_destination=include_dest_work_center,
    )
    return LastChangeRead(last_change_timestamp=timestamp)


@router.get("/latest", response_model=LogRead)
def latest_log(
    plant: str = Query(...),
    workcenter: str = Query(...),
    language: Optional[str] = None,
    service: ShiftBookService = Depends(get_shiftbook_service),
):
    return service.get_latest_log(plant, workcenter, language)


@router.post("", response_model=LogEntryCreated, status_code=status.HTTP_201_CREATED)
async def create_log(
    payload: LogEntryCreate,
    actor: str = Depends(get_actor),
    service: ShiftBookService = Depends(get_shiftbook_service),
):
    return await service.add_log_entry(payload, actor)


@router.post("/batch", response_model=BatchLogEntriesResult)
async def create_logs(
    payload: BatchLogEntriesCreate,
    actor: str = Depends(get_actor),
    service: ShiftBookService = Depends(get_shiftbook_service),
):
    """Create up to MAX_BATCH_SIZE logs; per-entry failures are listed in ``errors``."""
    return await service.add_log_entries(payload.logs, actor)


@router.post("/read", response_model=BatchReadStateResult)
def mark_many_read(
    payload: BatchReadStateRequest,
    actor: str = Depends(get_actor),
    service: ShiftBookService = Depends(get_shiftbook_service),
):
    return service.mark_logs_read_state(payload.log_ids, True, actor)


@router.post("/unread", response_model=BatchReadStateResult)
def mark_many_unread(
    payload: BatchReadStateRequest,
    actor: str = Depends(get_actor),
    service: ShiftBookService = Depends(get_shiftbook_service),
):
    return service.mark_logs_read_state(payload.log_ids, False, actor)


@router.post("/{log_id}/read", response_model=ReadStateRead)
def mark_read(
    log_id: str,
    actor: str = Depends(get_actor),
    service: ShiftBookService = Depends(get_shiftbook_service),
):
    return service.mark_log_as_read(log_id, actor)


@router.post("/{log_id}/unread", response_model=ReadStateRead)
def mark_unread(
    log_id: str,
    actor: str = Depends(get_actor),
    service: ShiftBookService = Depends(get_shiftbook_service),
):
    return service.mark_log_as_unread(log_id, actor)
