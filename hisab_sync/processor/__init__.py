"""
Processor package for sync operations.
"""

from .worker import (
    SyncWorker,
    SyncError,
    WorkerBusyError,
    SyncCancelled,
    LocalStore,
    SyncTransport,
)
from .runner import (
    SyncJob, handle_message, parse_host_message, start_job, get_data_stats,
    clear_offline_data
)

__all__ = [
    "SyncWorker",
    "SyncError",
    "WorkerBusyError",
    "SyncCancelled",
    "LocalStore",
    "SyncTransport",
    "handle_message",
    "parse_host_message",
    "SyncJob",
    "start_job",
    "get_data_stats",
    "clear_offline_data",
]
