"""
Sync worker: one UPLOAD or DOWNLOAD run at a time, reporting progress.
"""

import asyncio
import inspect
import logging
import traceback
from typing import Awaitable, Callable, Optional, Protocol, Union

from ..db import (
    COLLECTIONS, Snapshot, SyncOperation, WorkerState, ProgressEvent,
    TransportConfig
)
from ..remote import SyncClient

logger = logging.getLogger(__name__)

EventCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


class SyncError(Exception):
    """Error during a sync run."""
    pass


class WorkerBusyError(SyncError):
    """A run was requested while another one is in flight."""
    pass


class SyncCancelled(SyncError):
    """The host asked the run to stop."""

    def __init__(self):
        super().__init__("Sync cancelled")


class LocalStore(Protocol):
    async def get_by_owner(self, collection: str, owner_id: str) -> list: ...
    async def delete_by_owner(self, collection: str, owner_id: str) -> int: ...
    async def insert_all(self, collection: str, records: list) -> int: ...
    async def count(self, collection: str, owner_id: Optional[str] = None) -> int: ...


class SyncTransport(Protocol):
    async def upload(self, user_id: str, snapshot: Snapshot) -> None: ...
    async def download(self, user_id: str) -> Snapshot: ...
    async def close(self) -> None: ...


TransportFactory = Callable[[TransportConfig], SyncTransport]


def _interpolate(start: float, end: float, index: int, total: int) -> float:
    """Percent for step `index` of `total`, spread linearly over [start, end)."""
    if total <= 0:
        return start
    return start + (index / total) * (end - start)


class SyncWorker:
    """
    Runs sync operations against an injected local store.

    The worker only holds its lifecycle state between runs. Snapshots,
    transports and callbacks live for the duration of a single run.
    """

    def __init__(
        self,
        store: LocalStore,
        transport_factory: Optional[TransportFactory] = None
    ):
        self.store = store
        self.transport_factory = transport_factory or SyncClient
        self.state = WorkerState.IDLE
        self.operation: Optional[SyncOperation] = None

    @property
    def is_running(self) -> bool:
        return self.state == WorkerState.RUNNING

    async def run(
        self,
        operation: SyncOperation,
        owner_id: str,
        config: TransportConfig,
        on_event: Optional[EventCallback] = None,
        cancel: Optional[asyncio.Event] = None
    ) -> ProgressEvent:
        """
        Run one sync operation to completion.

        Every event is passed to `on_event`; exactly one terminal event
        (SUCCESS or ERROR) is emitted and returned.

        Raises:
            WorkerBusyError: If another run is in progress
        """
        if self.is_running:
            raise WorkerBusyError(f"Sync already running ({self.operation.value})")

        operation = SyncOperation(operation)
        self.state = WorkerState.RUNNING
        self.operation = operation
        logger.info(f"Starting {operation.value} for user {owner_id}")

        async def emit(event: ProgressEvent) -> None:
            if on_event is None:
                return
            result = on_event(event)
            if inspect.isawaitable(result):
                await result

        def check_cancelled() -> None:
            if cancel is not None and cancel.is_set():
                raise SyncCancelled()

        transport = None
        try:
            transport = self.transport_factory(config)

            if operation == SyncOperation.UPLOAD:
                terminal = await self._upload(transport, owner_id, emit, check_cancelled)
            else:
                terminal = await self._download(transport, owner_id, emit, check_cancelled)

            self.state = WorkerState.SUCCEEDED
            logger.info(f"{operation.value.capitalize()} completed for user {owner_id}")

        except Exception as e:
            logger.error(f"{operation.value.capitalize()} failed for user {owner_id}: {e}")
            logger.debug(traceback.format_exc())
            self.state = WorkerState.FAILED
            terminal = ProgressEvent.error(str(e) or e.__class__.__name__)

        except BaseException:
            # Cancelled or timed out from outside; no terminal event
            logger.warning(f"{operation.value.capitalize()} aborted for user {owner_id}")
            self.state = WorkerState.FAILED
            raise

        finally:
            if transport is not None:
                try:
                    await transport.close()
                except Exception as e:
                    logger.warning(f"Failed to close transport: {e}")

        await emit(terminal)
        return terminal

    async def _upload(self, transport, owner_id, emit, check_cancelled) -> ProgressEvent:
        snapshot: Snapshot = {}

        check_cancelled()
        await emit(ProgressEvent.progress("Collecting data...", 10))

        for i, name in enumerate(COLLECTIONS):
            check_cancelled()
            await emit(ProgressEvent.progress(
                f"Collecting {name}...", _interpolate(10, 50, i, len(COLLECTIONS))
            ))
            snapshot[name] = await self.store.get_by_owner(name, owner_id)

        check_cancelled()
        await emit(ProgressEvent.progress("Uploading to server...", 60))
        await transport.upload(owner_id, snapshot)

        return ProgressEvent.success("Data uploaded successfully")

    async def _download(self, transport, owner_id, emit, check_cancelled) -> ProgressEvent:
        check_cancelled()
        await emit(ProgressEvent.progress("Downloading from server...", 10))
        snapshot = await transport.download(owner_id) or {}

        # Every known collection is cleared before anything is inserted
        check_cancelled()
        await emit(ProgressEvent.progress("Clearing local data...", 30))
        for name in COLLECTIONS:
            await self.store.delete_by_owner(name, owner_id)

        check_cancelled()
        await emit(ProgressEvent.progress("Storing downloaded data...", 50))

        names = list(snapshot.keys())
        for i, name in enumerate(names):
            check_cancelled()
            await emit(ProgressEvent.progress(
                f"Storing {name}...", _interpolate(50, 90, i, len(names))
            ))

            records = snapshot[name]
            if not isinstance(records, list):
                logger.warning(f"Skipping {name}: expected a list, got {type(records).__name__}")
                continue

            inserted = await self.store.insert_all(name, records)
            if inserted < len(records):
                logger.warning(f"Stored {inserted}/{len(records)} {name} records")

        return ProgressEvent.success("Data downloaded successfully")
