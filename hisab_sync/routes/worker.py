"""
Worker API routes used by the host UI.
"""

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional

from ..dependencies import get_store, get_worker, get_current_job, set_current_job
from ..db import HostMessage, StoreError
from ..processor import WorkerBusyError, start_job, get_data_stats, clear_offline_data

router = APIRouter(prefix="/api/worker")


class WorkerResponse(BaseModel):
    message: str
    success: bool


class EventsResponse(BaseModel):
    events: List[Dict[str, Any]]
    next: int
    done: bool


class StatusResponse(BaseModel):
    state: str
    operation: Optional[str] = None
    user_id: Optional[str] = None
    events: int = 0


@router.post("/messages", response_model=WorkerResponse)
async def post_message(message: HostMessage):
    """Start an UPLOAD_DATA or DOWNLOAD_DATA run in the background."""
    worker = get_worker()

    job = get_current_job()
    if worker.is_running or (job is not None and not job.done):
        raise HTTPException(status_code=409, detail="Sync already running")

    try:
        job = start_job(worker, message)
    except WorkerBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    set_current_job(job)

    return WorkerResponse(
        message=f"{job.operation.value.capitalize()} started for user {job.user_id}",
        success=True
    )


@router.get("/events", response_model=EventsResponse)
async def get_events(since: int = Query(0, ge=0)):
    """Messages emitted by the current (or last) run, starting at `since`."""
    job = get_current_job()
    if job is None:
        return EventsResponse(events=[], next=0, done=True)

    events = job.messages[since:]
    return EventsResponse(events=events, next=since + len(events), done=job.done)


@router.get("/status", response_model=StatusResponse)
async def get_status():
    """Current worker state."""
    worker = get_worker()
    job = get_current_job()

    return StatusResponse(
        state=worker.state.value,
        operation=worker.operation.value if worker.operation else None,
        user_id=job.user_id if job else None,
        events=len(job.messages) if job else 0
    )


@router.post("/cancel", response_model=WorkerResponse)
async def cancel_run():
    """Ask the running job to stop at its next step."""
    job = get_current_job()
    if job is None or job.done:
        raise HTTPException(status_code=409, detail="No sync running")

    job.cancel.set()
    return WorkerResponse(message="Cancellation requested", success=True)


class ClearRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)


class StatsResponse(BaseModel):
    user_id: str
    collections: Dict[str, int]
    total: int


@router.get("/stats", response_model=StatsResponse)
async def get_stats(user_id: str = Query(..., alias="userId", min_length=1)):
    """Local record counts per collection for one user."""
    counts = await get_data_stats(get_store(), user_id)
    return StatsResponse(user_id=user_id, collections=counts, total=sum(counts.values()))


@router.post("/clear", response_model=StatsResponse)
async def clear_data(request: ClearRequest):
    """Remove a user's offline records without downloading from the server."""
    worker = get_worker()

    job = get_current_job()
    if job is not None and not job.done:
        raise HTTPException(status_code=409, detail="Sync already running")

    try:
        removed = await clear_offline_data(worker, request.user_id)
    except WorkerBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return StatsResponse(user_id=request.user_id, collections=removed, total=sum(removed.values()))
