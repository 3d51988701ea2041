"""
Remote sync API module.
"""

from hisab_sync.remote.client import SyncClient, TransportError

__all__ = [
    "SyncClient",
    "TransportError",
]
