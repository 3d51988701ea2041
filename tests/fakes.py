"""
In-memory fakes for the local store and the sync server, plus record
builders shared by the test modules.
"""

import copy

from hisab_sync.db import TransportConfig

CONFIG = TransportConfig(api_url="https://sync.example.com", auth_token="secret-token")


class FakeStore:
    """In-memory LocalStore that records every call."""

    def __init__(self, data=None):
        self.data = {name: list(records) for name, records in (data or {}).items()}
        self.calls = []
        self.failures = {}  # (method, collection) -> exception

    def _record_call(self, method, collection):
        self.calls.append((method, collection))
        error = self.failures.get((method, collection))
        if error is not None:
            raise error

    async def get_by_owner(self, collection, owner_id):
        self._record_call("get_by_owner", collection)
        return [dict(r) for r in self.data.get(collection, []) if r.get("userId") == owner_id]

    async def delete_by_owner(self, collection, owner_id):
        self._record_call("delete_by_owner", collection)
        before = self.data.get(collection, [])
        self.data[collection] = [r for r in before if r.get("userId") != owner_id]
        return len(before) - len(self.data[collection])

    async def insert_all(self, collection, records):
        self._record_call("insert_all", collection)
        self.data.setdefault(collection, []).extend(dict(r) for r in records)
        return len(records)

    async def count(self, collection, owner_id=None):
        self._record_call("count", collection)
        records = self.data.get(collection, [])
        if owner_id is None:
            return len(records)
        return sum(1 for r in records if r.get("userId") == owner_id)


class FakeServer:
    """Stand-in for SyncClient that keeps the last uploaded snapshot."""

    def __init__(self, snapshot=None, upload_error=None, download_error=None):
        self.snapshot = snapshot
        self.upload_error = upload_error
        self.download_error = download_error
        self.uploads = []
        self.downloads = []
        self.configs = []
        self.closed = 0

    def factory(self, config):
        self.configs.append(config)
        return self

    async def upload(self, user_id, snapshot):
        if self.upload_error is not None:
            raise self.upload_error
        self.uploads.append((user_id, copy.deepcopy(snapshot)))
        self.snapshot = copy.deepcopy(snapshot)

    async def download(self, user_id):
        self.downloads.append(user_id)
        if self.download_error is not None:
            raise self.download_error
        return copy.deepcopy(self.snapshot) if self.snapshot else {}

    async def close(self):
        self.closed += 1


def make_records(count, owner="u1", prefix="p"):
    return [
        {
            "id": f"{prefix}{i}",
            "userId": owner,
            "name": f"Item {i}",
            "createdAt": "2024-05-01T10:00:00.000Z",
            "updatedAt": "2024-05-01T10:00:00.000Z",
        }
        for i in range(1, count + 1)
    ]
