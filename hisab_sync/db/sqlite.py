"""
SQLite-backed local offline store.
One table per collection; the full record is kept as JSON in `body`.
"""

import aiosqlite
import json
import logging
import os
import re
from typing import Dict, Iterable, List, Optional, Set

from .models import (
    COLLECTIONS, UNINDEXED_COLLECTIONS, ID_FIELD, OWNER_FIELD, CREATED_FIELD,
    UPDATED_FIELD, OFFLINE_USER, Record, generate_uuid, utc_timestamp
)

logger = logging.getLogger(__name__)

_COLLECTION_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class StoreError(Exception):
    """Local storage operation failed."""
    pass


class SQLiteLocalStore:
    """Per-device store of sync records, scoped by owning user."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._tables: Set[str] = set()
        self._owner_index: Dict[str, bool] = {}

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Create tables for all known collections."""
        conn = await self._get_connection()
        try:
            for name in COLLECTIONS:
                await self._ensure_collection(conn, name)
            await conn.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to initialize local store: {e}") from e

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
        self._tables.clear()
        self._owner_index.clear()

    # ===== Helper Methods =====

    @staticmethod
    def _table(collection: str) -> str:
        if not isinstance(collection, str) or not _COLLECTION_NAME.match(collection):
            raise StoreError(f"Invalid collection name: {collection!r}")
        return f'"{collection}"'

    async def _ensure_collection(self, conn: aiosqlite.Connection, collection: str) -> None:
        """Create the collection's table on first write."""
        table = self._table(collection)
        if collection in self._tables:
            return

        await conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                body TEXT NOT NULL
            )
        """)
        if collection not in UNINDEXED_COLLECTIONS:
            await conn.execute(
                f'CREATE INDEX IF NOT EXISTS "idx_{collection}_owner" ON {table}(user_id)'
            )

        self._tables.add(collection)
        self._owner_index.pop(collection, None)

    async def _table_exists(self, conn: aiosqlite.Connection, collection: str) -> bool:
        self._table(collection)
        if collection in self._tables:
            return True
        cursor = await conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (collection,)
        )
        exists = await cursor.fetchone() is not None
        if exists:
            self._tables.add(collection)
        return exists

    async def _has_owner_index(self, conn: aiosqlite.Connection, collection: str) -> bool:
        """Check the catalog for an index whose leading column is user_id."""
        if collection in self._owner_index:
            return self._owner_index[collection]

        table = self._table(collection)
        found = False
        cursor = await conn.execute(f"PRAGMA index_list({table})")
        for index_row in await cursor.fetchall():
            info = await conn.execute(f'PRAGMA index_info("{index_row["name"]}")')
            columns = [row["name"] for row in await info.fetchall()]
            if columns and columns[0] == "user_id":
                found = True
                break

        self._owner_index[collection] = found
        return found

    @staticmethod
    def _prepare_record(record: Record) -> Record:
        """Copy a record and fill in owner/timestamps when they are missing."""
        prepared = dict(record)
        now = utc_timestamp()

        if prepared.get(ID_FIELD) in (None, ""):
            prepared[ID_FIELD] = generate_uuid()
        if not prepared.get(OWNER_FIELD):
            prepared[OWNER_FIELD] = OFFLINE_USER
        if not prepared.get(CREATED_FIELD):
            prepared[CREATED_FIELD] = now
        if not prepared.get(UPDATED_FIELD):
            prepared[UPDATED_FIELD] = now

        return prepared

    # ===== Record Operations =====

    async def get_by_owner(self, collection: str, owner_id: str) -> List[Record]:
        """All records in `collection` owned by `owner_id`, in insertion order."""
        conn = await self._get_connection()
        try:
            if not await self._table_exists(conn, collection):
                return []

            table = self._table(collection)
            if await self._has_owner_index(conn, collection):
                cursor = await conn.execute(
                    f"SELECT body FROM {table} WHERE user_id = ? ORDER BY rowid", (owner_id,)
                )
                return [json.loads(row["body"]) for row in await cursor.fetchall()]

            # No owner index: scan and filter
            cursor = await conn.execute(f"SELECT body FROM {table} ORDER BY rowid")
            records = [json.loads(row["body"]) for row in await cursor.fetchall()]
            return [r for r in records if str(r.get(OWNER_FIELD)) == owner_id]

        except aiosqlite.Error as e:
            raise StoreError(f"Failed to read {collection}: {e}") from e

    async def delete_by_owner(self, collection: str, owner_id: str) -> int:
        """Remove every record of `owner_id` in one transaction."""
        conn = await self._get_connection()
        try:
            if not await self._table_exists(conn, collection):
                return 0

            cursor = await conn.execute(
                f"DELETE FROM {self._table(collection)} WHERE user_id = ?", (owner_id,)
            )
            await conn.commit()
            return cursor.rowcount

        except aiosqlite.Error as e:
            await conn.rollback()
            raise StoreError(f"Failed to clear {collection}: {e}") from e

    async def insert_all(self, collection: str, records: Iterable[Record]) -> int:
        """
        Insert records into `collection`, creating it if needed.

        Records that collide with an existing id are logged and skipped;
        the rest of the batch is still committed.

        Returns:
            Number of records inserted
        """
        conn = await self._get_connection()
        inserted = 0

        try:
            await self._ensure_collection(conn, collection)
            table = self._table(collection)

            for record in records:
                if not isinstance(record, dict):
                    logger.warning(f"Skipping non-object record in {collection}: {record!r}")
                    continue

                prepared = self._prepare_record(record)
                try:
                    await conn.execute(
                        f"""
                        INSERT INTO {table} (id, user_id, created_at, updated_at, body)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (
                            str(prepared[ID_FIELD]),
                            str(prepared[OWNER_FIELD]),
                            str(prepared[CREATED_FIELD]),
                            str(prepared[UPDATED_FIELD]),
                            json.dumps(prepared, default=str)
                        )
                    )
                except aiosqlite.IntegrityError as e:
                    logger.warning(
                        f"Skipping {collection} record {prepared[ID_FIELD]!r}: {e}"
                    )
                    continue

                inserted += 1

            await conn.commit()

        except aiosqlite.Error as e:
            await conn.rollback()
            raise StoreError(f"Failed to store {collection}: {e}") from e

        return inserted

    async def count(self, collection: str, owner_id: Optional[str] = None) -> int:
        """Number of records in a collection, optionally for one owner."""
        if owner_id is not None:
            return len(await self.get_by_owner(collection, owner_id))

        conn = await self._get_connection()
        try:
            if not await self._table_exists(conn, collection):
                return 0
            cursor = await conn.execute(f"SELECT COUNT(*) FROM {self._table(collection)}")
            row = await cursor.fetchone()
            return row[0]
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to count {collection}: {e}") from e
