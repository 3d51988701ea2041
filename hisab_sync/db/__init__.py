"""
Database package - local offline store (SQLite only).
"""

from .models import (
    COLLECTIONS, UNINDEXED_COLLECTIONS, OFFLINE_USER, Record, Snapshot,
    SyncOperation, WorkerState, EventKind, ProgressEvent, TransportConfig,
    HostMessage, HostMessageData, generate_uuid, utc_timestamp
)
from .sqlite import SQLiteLocalStore, StoreError

__all__ = [
    "SQLiteLocalStore",
    "StoreError",
    "COLLECTIONS",
    "UNINDEXED_COLLECTIONS",
    "OFFLINE_USER",
    "Record",
    "Snapshot",
    "SyncOperation",
    "WorkerState",
    "EventKind",
    "ProgressEvent",
    "TransportConfig",
    "HostMessage",
    "HostMessageData",
    "generate_uuid",
    "utc_timestamp",
]
