"""
HTTP client for the Hisab Ghar sync API.
"""

import logging
import urllib.parse
from typing import Optional

import httpx

from hisab_sync.config import settings
from hisab_sync.db.models import Snapshot, TransportConfig, utc_timestamp

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Sync request failed or the server answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        status_text: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text


class SyncClient:
    """
    Async HTTP client for bulk upload/download of a user's snapshot.

    No retries here: a failed request is reported to the caller, and
    re-running the sync is up to the host.
    """

    UPLOAD_PATH = "/api/sync/upload"
    DOWNLOAD_PATH = "/api/sync/download/{user_id}"

    def __init__(
        self,
        config: TransportConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize sync client.

        Args:
            config: Server base URL (e.g. "https://api.example.com") and bearer token
            transport: Optional httpx transport, used to stub the server in tests
        """
        self.api_url = config.api_url.rstrip("/")
        self.auth_token = config.auth_token
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.request_timeout, connect=settings.connect_timeout),
                headers={"Authorization": f"Bearer {self.auth_token}"},
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def upload(self, user_id: str, snapshot: Snapshot) -> None:
        """
        Send the full local snapshot for a user.

        Raises:
            TransportError: On network failure or non-2xx response
        """
        client = await self._get_client()
        payload = {
            "userId": user_id,
            "data": snapshot,
            "timestamp": utc_timestamp(),
        }

        try:
            response = await client.post(f"{self.api_url}{self.UPLOAD_PATH}", json=payload)
        except httpx.RequestError as e:
            raise TransportError(f"Upload failed: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Upload failed: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase
            )

        total = sum(len(items) for items in snapshot.values())
        logger.info(f"Uploaded {total} records for user {user_id}")

    async def download(self, user_id: str) -> Snapshot:
        """
        Fetch the server's snapshot for a user.

        Returns:
            Mapping of collection name to records; empty if the server has nothing

        Raises:
            TransportError: On network failure, non-2xx response or a malformed body
        """
        client = await self._get_client()
        path = self.DOWNLOAD_PATH.format(user_id=urllib.parse.quote(user_id, safe=""))

        try:
            response = await client.get(f"{self.api_url}{path}")
        except httpx.RequestError as e:
            raise TransportError(f"Download failed: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Download failed: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"Download failed: invalid JSON response ({e})") from e

        data = body.get("data") if isinstance(body, dict) else None
        if not data:
            logger.info(f"Server has no data for user {user_id}")
            return {}
        if not isinstance(data, dict):
            raise TransportError("Download failed: unexpected data format")

        return data

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
