#!/usr/bin/env python3
"""
Run a single UPLOAD or DOWNLOAD against the local offline store.

  python scripts/run_sync.py upload
  python scripts/run_sync.py download --user-id u1 --api-url https://api.example.com

Credentials default to the values in .env (USER_ID, API_URL, AUTH_TOKEN).
This runs the worker as a standalone script, not through the web server.
"""

import argparse
import asyncio
import logging
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hisab_sync.config import settings
from hisab_sync.db import SQLiteLocalStore, SyncOperation, EventKind, ProgressEvent, TransportConfig
from hisab_sync.processor import SyncWorker

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Sync the offline store with the server")
    parser.add_argument("operation", choices=[op.value for op in SyncOperation])
    parser.add_argument("--user-id", default=settings.user_id)
    parser.add_argument("--api-url", default=settings.api_url)
    parser.add_argument("--auth-token", default=settings.auth_token)
    parser.add_argument("--database", default=settings.database_path)
    return parser.parse_args(argv)


def log_event(event: ProgressEvent) -> None:
    if event.kind == EventKind.ERROR:
        logger.error(event.message)
    else:
        logger.info(f"[{event.percent:5.1f}%] {event.message}")


async def main(argv=None) -> int:
    args = parse_args(argv)

    if not args.user_id:
        logger.error("No user id given (use --user-id or USER_ID in .env)")
        return 2

    store = SQLiteLocalStore(args.database)
    await store.initialize()

    try:
        worker = SyncWorker(store)
        result = await worker.run(
            SyncOperation(args.operation),
            args.user_id,
            TransportConfig(api_url=args.api_url, auth_token=args.auth_token),
            on_event=log_event
        )
        return 0 if result.kind == EventKind.SUCCESS else 1

    finally:
        await store.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
