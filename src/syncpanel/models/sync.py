"""Sync request audit log model."""
from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class SyncRequestLog(SQLModel, table=True):
    """Records each manual sync/cancel request for audit and debugging."""

    id: Optional[int] = Field(default=None, primary_key=True)
    action: str  # "sync", "cancel"
    account_type: Optional[str] = None
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    status: str = "running"  # "running", "success", "error"
    accounts_considered: int = 0
    requests_issued: int = 0
    error_message: Optional[str] = None
