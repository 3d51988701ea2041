"""
Dispatch of host messages to the sync worker.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..db import COLLECTIONS, HostMessage, ProgressEvent, SyncOperation
from .worker import SyncWorker, WorkerBusyError, EventCallback, LocalStore

logger = logging.getLogger(__name__)


@dataclass
class SyncJob:
    """Host-side record of one background run and the messages it produced."""
    operation: SyncOperation
    user_id: str
    messages: List[Dict[str, Any]] = field(default_factory=list)
    cancel: asyncio.Event = field(default_factory=asyncio.Event)
    result: Optional[ProgressEvent] = None
    task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self.result is not None

    def record(self, event: ProgressEvent) -> None:
        self.messages.append(event.to_message())


def parse_host_message(message: Dict[str, Any]) -> HostMessage:
    """
    Validate a host message of the form
    {"type": "UPLOAD_DATA" | "DOWNLOAD_DATA", "data": {"userId", "apiUrl", "authToken"}}.

    Raises:
        ValueError: If the message is malformed or of an unknown type
    """
    if isinstance(message, HostMessage):
        return message
    try:
        return HostMessage.model_validate(message)
    except ValidationError as e:
        raise ValueError(f"Invalid host message: {e.errors()}") from e


async def handle_message(
    worker: SyncWorker,
    message: Dict[str, Any],
    on_event: Optional[EventCallback] = None,
    cancel: Optional[asyncio.Event] = None
) -> ProgressEvent:
    """Run the operation a host message asks for and return its terminal event."""
    parsed = parse_host_message(message)
    logger.info(f"Host requested {parsed.type} for user {parsed.data.user_id}")

    return await worker.run(
        parsed.operation,
        parsed.data.user_id,
        parsed.transport_config,
        on_event=on_event,
        cancel=cancel
    )


def start_job(worker: SyncWorker, message: Dict[str, Any]) -> SyncJob:
    """
    Start a run in the background and return its job record.

    Raises:
        ValueError: If the message is invalid
        WorkerBusyError: If the worker is already running
    """
    parsed = parse_host_message(message)
    if worker.is_running:
        # Reject before scheduling so the caller gets the error synchronously
        raise WorkerBusyError(f"Sync already running ({worker.operation.value})")

    job = SyncJob(operation=parsed.operation, user_id=parsed.data.user_id)

    async def run_job() -> None:
        try:
            job.result = await handle_message(worker, parsed, on_event=job.record, cancel=job.cancel)
        except asyncio.CancelledError:
            job.result = ProgressEvent.error("Sync cancelled")
            job.record(job.result)
            raise
        except Exception as e:
            logger.exception(f"Background {job.operation.value} crashed")
            job.result = ProgressEvent.error(f"Unexpected error: {e}")
            job.record(job.result)

    job.task = asyncio.create_task(run_job())
    return job


async def get_data_stats(store: LocalStore, owner_id: str) -> Dict[str, int]:
    """Number of local records per known collection for one user."""
    return {name: await store.count(name, owner_id) for name in COLLECTIONS}


async def clear_offline_data(worker: SyncWorker, owner_id: str) -> Dict[str, int]:
    """
    Remove a user's records from every known collection without downloading.

    Returns:
        Number of records removed per collection

    Raises:
        WorkerBusyError: If a sync is running against the same store
    """
    if worker.is_running:
        raise WorkerBusyError(f"Sync already running ({worker.operation.value})")

    removed = {}
    for name in COLLECTIONS:
        removed[name] = await worker.store.delete_by_owner(name, owner_id)

    logger.info(f"Cleared {sum(removed.values())} offline records for user {owner_id}")
    return removed
