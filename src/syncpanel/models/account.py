"""Account registry and per-authority sync state."""
from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class Account(SQLModel, table=True):
    """One row per (name, type) account known to the device."""

    __table_args__ = (UniqueConstraint("name", "account_type"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    account_type: str = Field(index=True)  # "com.google", "com.example.mail", etc.
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Authenticator(SQLModel, table=True):
    """Human-readable label for an account type."""

    account_type: str = Field(primary_key=True)
    label: str


class SyncAdapter(SQLModel, table=True):
    """An authority that accounts of `account_type` can sync."""

    __table_args__ = (UniqueConstraint("authority", "account_type"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    authority: str = Field(index=True)  # "contacts", "com.android.calendar", etc.
    account_type: str = Field(index=True)
    user_visible: bool = True


class SyncState(SQLModel, table=True):
    """Sync settings and last-known status for one (account, authority) pair."""

    __table_args__ = (UniqueConstraint("account_id", "authority"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="account.id", index=True)
    authority: str

    # Settings
    sync_automatically: bool = True
    syncable: int = 1  # > 0 syncable, 0 not syncable, < 0 unknown

    # Status (epoch milliseconds; 0 = never)
    pending: bool = False
    last_success_time: int = 0
    last_failure_time: int = 0
    last_failure_mesg: Optional[str] = None  # numeric error code as text

    def last_failure_mesg_as_int(self, default: int = 0) -> int:
        try:
            return int(self.last_failure_mesg)
        except (TypeError, ValueError):
            return default


class ActiveSync(SQLModel, table=True):
    """A sync operation currently running."""

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="account.id", index=True)
    authority: str
    started_at: datetime = Field(default_factory=datetime.utcnow)


class MasterSync(SQLModel, table=True):
    """Global auto-sync switch. Absent row means enabled."""

    id: Optional[int] = Field(default=1, primary_key=True)
    enabled: bool = True
