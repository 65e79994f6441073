"""
SyncManager — reads and updates account sync state in the database.

This is the panel's view of the account registry and the sync subsystem:
which accounts exist, which authorities they sync, whether each pair is
enabled, pending or running, and how its last sync went. It also issues
manual sync/cancel requests, recording each one in SyncRequestLog.

Flow for a manual request:
  1. Create SyncRequestLog (status="running")
  2. For every account, for every adapter of its type with auto-sync on:
     mark the pair pending (sync) or clear pending and running rows (cancel)
  3. Update SyncRequestLog (status="success")

On any exception: update SyncRequestLog (status="error") and re-raise.
"""
import logging
import time
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Set

from sqlmodel import Session, select

from syncpanel.core.status import SnapshotLookup, SyncStatusSnapshot
from syncpanel.models.account import (
    Account,
    ActiveSync,
    Authenticator,
    MasterSync,
    SyncAdapter,
    SyncState,
)
from syncpanel.models.sync import SyncRequestLog

logger = logging.getLogger(__name__)


class AccountNotFoundError(LookupError):
    """No account with the given (type, name) exists."""


def _now_ms() -> int:
    return int(time.time() * 1000)


class SyncManager:
    """Database-backed account registry and sync state."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine (SQLModel create_engine result).
        """
        self.engine = engine

    # ─── Accounts and adapters ────────────────────────────────────────────────

    def get_accounts(self) -> List[Account]:
        with Session(self.engine) as s:
            return list(s.exec(select(Account).order_by(Account.id)).all())

    def get_account(self, account_type: str, name: str) -> Account:
        with Session(self.engine) as s:
            account = s.exec(
                select(Account).where(
                    Account.account_type == account_type, Account.name == name
                )
            ).first()
        if account is None:
            raise AccountNotFoundError(f"{account_type}/{name}")
        return account

    def get_authorities_for_account_type(self, account_type: str) -> List[str]:
        with Session(self.engine) as s:
            adapters = s.exec(
                select(SyncAdapter)
                .where(SyncAdapter.account_type == account_type)
                .order_by(SyncAdapter.id)
            ).all()
        return [a.authority for a in adapters]

    def get_user_facing_authorities(self) -> Set[str]:
        """Authorities of every user-visible adapter, across all account types."""
        with Session(self.engine) as s:
            adapters = s.exec(
                select(SyncAdapter).where(SyncAdapter.user_visible == True)  # noqa: E712
            ).all()
        return {a.authority for a in adapters}

    def get_label_for_type(self, account_type: str) -> str:
        """Authenticator label for an account type, falling back to the type itself."""
        with Session(self.engine) as s:
            auth = s.get(Authenticator, account_type)
        return auth.label if auth else account_type

    # ─── Sync state ───────────────────────────────────────────────────────────

    def get_sync_status(self, account: Account, authority: str) -> Optional[SyncState]:
        with Session(self.engine) as s:
            return s.exec(
                select(SyncState).where(
                    SyncState.account_id == account.id,
                    SyncState.authority == authority,
                )
            ).first()

    def is_master_sync_enabled(self) -> bool:
        with Session(self.engine) as s:
            master = s.get(MasterSync, 1)
        return master.enabled if master else True

    def set_master_sync_enabled(self, enabled: bool) -> None:
        with Session(self.engine) as s:
            master = s.get(MasterSync, 1) or MasterSync(id=1)
            master.enabled = enabled
            s.add(master)
            s.commit()

    def is_sync_enabled(
        self,
        account: Account,
        authority: str,
        state: Optional[SyncState] = None,
        master_enabled: Optional[bool] = None,
    ) -> bool:
        """Auto-sync is on for the pair, master sync is on, and the pair is syncable."""
        if state is None:
            state = self.get_sync_status(account, authority)
        if state is None:
            return False
        if master_enabled is None:
            master_enabled = self.is_master_sync_enabled()
        return state.sync_automatically and master_enabled and state.syncable > 0

    def is_sync_pending(self, account: Account, authority: str) -> bool:
        state = self.get_sync_status(account, authority)
        return bool(state and state.pending)

    def get_current_syncs(self) -> List[ActiveSync]:
        with Session(self.engine) as s:
            return list(s.exec(select(ActiveSync).order_by(ActiveSync.id)).all())

    @staticmethod
    def is_syncing(
        current_syncs: Sequence[ActiveSync], account: Account, authority: str
    ) -> bool:
        return any(
            sync.account_id == account.id and sync.authority == authority
            for sync in current_syncs
        )

    def snapshot(
        self,
        account: Account,
        authority: str,
        current_syncs: Sequence[ActiveSync],
        master_enabled: Optional[bool] = None,
    ) -> Optional[SyncStatusSnapshot]:
        """Build the aggregator's view of one pair, or None if it has no state."""
        state = self.get_sync_status(account, authority)
        if state is None:
            return None
        return SyncStatusSnapshot(
            last_success_time=state.last_success_time,
            last_failure_time=state.last_failure_time,
            last_failure_code=state.last_failure_mesg_as_int(0),
            is_enabled=self.is_sync_enabled(
                account, authority, state=state, master_enabled=master_enabled
            ),
            is_pending=state.pending,
            is_active=self.is_syncing(current_syncs, account, authority),
        )

    def snapshot_lookup(self, current_syncs: Sequence[ActiveSync]) -> SnapshotLookup:
        """Return a lookup bound to one refresh (master switch read once)."""
        master_enabled = self.is_master_sync_enabled()

        def lookup(account: Account, authority: str) -> Optional[SyncStatusSnapshot]:
            return self.snapshot(
                account, authority, current_syncs, master_enabled=master_enabled
            )

        return lookup

    # ─── Status reporting from the sync subsystem ────────────────────────────

    def record_sync_started(self, account: Account, authority: str) -> None:
        with Session(self.engine) as s:
            s.add(ActiveSync(account_id=account.id, authority=authority))
            state = self._get_or_create_state(s, account, authority)
            state.pending = False
            s.add(state)
            s.commit()

    def record_sync_finished(
        self,
        account: Account,
        authority: str,
        *,
        success: bool,
        error_code: Optional[int] = None,
        at_ms: Optional[int] = None,
    ) -> None:
        """Clear the running row and stamp the success or failure time."""
        at_ms = at_ms if at_ms is not None else _now_ms()
        with Session(self.engine) as s:
            self._delete_active(s, account, authority)
            state = self._get_or_create_state(s, account, authority)
            if success:
                state.last_success_time = at_ms
                state.last_failure_time = 0
                state.last_failure_mesg = None
            else:
                state.last_failure_time = at_ms
                state.last_failure_mesg = str(error_code) if error_code is not None else None
            s.add(state)
            s.commit()

    # ─── Manual sync / cancel ─────────────────────────────────────────────────

    def request_or_cancel_sync_for_accounts(
        self,
        accounts: Iterable[Account],
        account_type: Optional[str],
        sync: bool,
    ) -> int:
        """
        Request (sync=True) or cancel (sync=False) sync for every adapter of
        `account_type` that has auto-sync on for each account.

        With account_type None, each account uses the adapters of its own type.

        Returns:
            Number of (account, authority) pairs touched.

        Raises:
            Any database error (after recording the error log).
        """
        accounts = list(accounts)
        log = self._create_request_log("sync" if sync else "cancel", account_type)

        try:
            issued = 0
            with Session(self.engine) as s:
                for account in accounts:
                    if account_type is not None and account.account_type != account_type:
                        continue
                    adapters = s.exec(
                        select(SyncAdapter).where(
                            SyncAdapter.account_type == account.account_type
                        )
                    ).all()
                    for adapter in adapters:
                        state = s.exec(
                            select(SyncState).where(
                                SyncState.account_id == account.id,
                                SyncState.authority == adapter.authority,
                            )
                        ).first()
                        if state is None or not state.sync_automatically:
                            continue
                        if sync:
                            state.pending = True
                        else:
                            state.pending = False
                            self._delete_active(s, account, adapter.authority)
                        s.add(state)
                        issued += 1
                s.commit()

            self._finish_request_log(
                log,
                status="success",
                accounts_considered=len(accounts),
                requests_issued=issued,
            )
            logger.info(
                "%s issued for %d authorities across %d accounts",
                "Sync" if sync else "Cancel",
                issued,
                len(accounts),
            )
            return issued

        except Exception as exc:
            self._finish_request_log(log, status="error", error_message=str(exc))
            raise

    def latest_request_log(self) -> Optional[SyncRequestLog]:
        with Session(self.engine) as s:
            return s.exec(
                select(SyncRequestLog).order_by(
                    SyncRequestLog.started_at.desc(), SyncRequestLog.id.desc()
                )
            ).first()

    # ─── Internal helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _get_or_create_state(s: Session, account: Account, authority: str) -> SyncState:
        state = s.exec(
            select(SyncState).where(
                SyncState.account_id == account.id, SyncState.authority == authority
            )
        ).first()
        return state or SyncState(account_id=account.id, authority=authority)

    @staticmethod
    def _delete_active(s: Session, account: Account, authority: str) -> None:
        running = s.exec(
            select(ActiveSync).where(
                ActiveSync.account_id == account.id, ActiveSync.authority == authority
            )
        ).all()
        for row in running:
            s.delete(row)

    def _create_request_log(self, action: str, account_type: Optional[str]) -> SyncRequestLog:
        log = SyncRequestLog(
            action=action,
            account_type=account_type,
            started_at=datetime.utcnow(),
            status="running",
        )
        with Session(self.engine) as s:
            s.add(log)
            s.commit()
            s.refresh(log)
        return log

    def _finish_request_log(
        self,
        log: SyncRequestLog,
        *,
        status: str,
        accounts_considered: int = 0,
        requests_issued: int = 0,
        error_message: Optional[str] = None,
    ) -> None:
        with Session(self.engine) as s:
            db_log = s.get(SyncRequestLog, log.id)
            db_log.status = status
            db_log.finished_at = datetime.utcnow()
            db_log.accounts_considered = accounts_considered
            db_log.requests_issued = requests_issued
            db_log.error_message = error_message
            s.add(db_log)
            s.commit()
