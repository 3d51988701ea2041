"""
Pydantic models and constants shared by the store, transport and worker.
Records themselves stay plain dicts: the sync layer never interprets them
beyond id, owner and timestamps.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
import uuid


# Fixed collection list. Order drives UPLOAD progress reporting.
COLLECTIONS = (
    "products",
    "contacts",
    "sales",
    "saleItems",
    "bulkPurchases",
    "bulkPurchaseItems",
    "branches",
    "employees",
    "expenses",
    "saleReturns",
    "saleReturnItems",
    "loanTransactions",
    "shopSettings",
)

# Line-item collections are keyed by their parent, not by owner
UNINDEXED_COLLECTIONS = frozenset({"saleItems", "bulkPurchaseItems", "saleReturnItems"})

# Record field names as exchanged with the server
ID_FIELD = "id"
OWNER_FIELD = "userId"
CREATED_FIELD = "createdAt"
UPDATED_FIELD = "updatedAt"

OFFLINE_USER = "offline-user"

Record = Dict[str, Any]
Snapshot = Dict[str, List[Record]]


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid.uuid4())


def utc_timestamp(value: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2024-05-01T10:00:00.000Z"""
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class SyncOperation(str, Enum):
    """Operations the worker can run."""
    UPLOAD = "upload"
    DOWNLOAD = "download"


class WorkerState(str, Enum):
    """Lifecycle of a SyncWorker."""
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class EventKind(str, Enum):
    """Kind of a progress event sent to the host."""
    PROGRESS = "PROGRESS"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class ProgressEvent(BaseModel):
    """A transient progress/terminal notification for the host."""
    kind: EventKind
    message: str
    percent: Optional[float] = None

    @property
    def is_terminal(self) -> bool:
        return self.kind != EventKind.PROGRESS

    @classmethod
    def progress(cls, message: str, percent: float) -> "ProgressEvent":
        return cls(kind=EventKind.PROGRESS, message=message, percent=percent)

    @classmethod
    def success(cls, message: str) -> "ProgressEvent":
        return cls(kind=EventKind.SUCCESS, message=message, percent=100)

    @classmethod
    def error(cls, message: str) -> "ProgressEvent":
        return cls(kind=EventKind.ERROR, message=message)

    def to_message(self) -> Dict[str, Any]:
        """Render as the message shape the host UI consumes."""
        if self.kind == EventKind.ERROR:
            return {"type": self.kind.value, "error": self.message}
        return {"type": self.kind.value, "message": self.message, "progress": self.percent}


class TransportConfig(BaseModel):
    """Where and how to reach the sync server for one run."""
    api_url: str
    auth_token: str


class HostMessageData(BaseModel):
    """Payload of a host -> worker message."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)
    api_url: str = Field(alias="apiUrl", min_length=1)
    auth_token: str = Field(alias="authToken")


class HostMessage(BaseModel):
    """A request from the host UI: {type, data: {userId, apiUrl, authToken}}."""
    type: Literal["UPLOAD_DATA", "DOWNLOAD_DATA"]
    data: HostMessageData

    @property
    def operation(self) -> SyncOperation:
        if self.type == "UPLOAD_DATA":
            return SyncOperation.UPLOAD
        return SyncOperation.DOWNLOAD

    @property
    def transport_config(self) -> TransportConfig:
        return TransportConfig(api_url=self.data.api_url, auth_token=self.data.auth_token)
