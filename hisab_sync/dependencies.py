"""
FastAPI dependency injection.
Simple setup - the local store, one worker and the current job.
"""

from typing import Optional

from .config import settings
from .db import SQLiteLocalStore
from .processor import SyncWorker, SyncJob


# Global instances (initialized on startup)
_store: Optional[SQLiteLocalStore] = None
_worker: Optional[SyncWorker] = None
_current_job: Optional[SyncJob] = None


async def init_dependencies(store: Optional[SQLiteLocalStore] = None, worker: Optional[SyncWorker] = None):
    """Initialize global dependencies. Called on app startup."""
    global _store, _worker, _current_job

    _store = store or SQLiteLocalStore(settings.database_path)
    await _store.initialize()

    _worker = worker or SyncWorker(_store)
    _current_job = None


async def close_dependencies():
    """Close global dependencies. Called on app shutdown."""
    global _store, _worker, _current_job
    if _current_job and _current_job.task and not _current_job.task.done():
        _current_job.cancel.set()
        await _current_job.task
    if _store:
        await _store.close()
    _store = None
    _worker = None
    _current_job = None


def get_store() -> SQLiteLocalStore:
    """Get the local store instance."""
    if _store is None:
        raise RuntimeError("Local store not initialized")
    return _store


def get_worker() -> SyncWorker:
    """Get the sync worker instance."""
    if _worker is None:
        raise RuntimeError("Sync worker not initialized")
    return _worker


def get_current_job() -> Optional[SyncJob]:
    """Get the most recent background job, if any."""
    return _current_job


def set_current_job(job: SyncJob) -> None:
    global _current_job
    _current_job = job
