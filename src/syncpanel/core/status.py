"""
Per-account sync status aggregation.

Given the authorities an account syncs and a snapshot lookup, decide what the
accounts panel shows for that account:

  1. ERROR       — some enabled authority last failed and is neither running
                   nor pending a retry. Scanning stops at the first failure.
  2. DISABLED    — no authority is both enabled and user-facing.
  3. IN_PROGRESS — an authority is syncing right now. Scanning stops at the
                   first active authority, so later failures go unreported.
  4. ENABLED     — otherwise; carries the newest successful sync time.

Everything here is pure: callers pre-fetch snapshots and pass them in.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Hashable, Iterable, List, Optional, Sequence, Tuple

# Failure code reported when a sync was refused because one was already running.
# Such failures are not real errors and never mark an account as failing.
SYNC_ERROR_SYNC_ALREADY_IN_PROGRESS = 1


class DisplayStatus(str, Enum):
    ERROR = "error"
    DISABLED = "disabled"
    IN_PROGRESS = "in_progress"
    ENABLED = "enabled"


@dataclass(frozen=True)
class SyncStatusSnapshot:
    """Point-in-time sync status for one (account, authority) pair.

    Timestamps are milliseconds since the epoch; 0 or None means "never".
    """

    last_success_time: Optional[int] = None
    last_failure_time: Optional[int] = None
    last_failure_code: Optional[int] = None
    is_enabled: bool = False
    is_pending: bool = False
    is_active: bool = False

    @property
    def last_sync_failed(self) -> bool:
        if not self.is_enabled or not self.last_failure_time:
            return False
        code = self.last_failure_code if isinstance(self.last_failure_code, int) else 0
        return code != SYNC_ERROR_SYNC_ALREADY_IN_PROGRESS


@dataclass(frozen=True)
class AccountSyncStatus:
    """Aggregated display status for one account."""

    status: DisplayStatus
    last_success_time: Optional[int] = None

    @property
    def failed(self) -> bool:
        """True when this account should raise the global sync-error banner."""
        return self.status is DisplayStatus.ERROR


SnapshotLookup = Callable[[Hashable, str], Optional[SyncStatusSnapshot]]


def aggregate_account_status(
    account: Hashable,
    authorities: Optional[Sequence[str]],
    lookup: SnapshotLookup,
    user_facing_authorities: Iterable[str],
) -> AccountSyncStatus:
    """
    Compute the display status for a single account.

    Args:
        account: Opaque account identity, passed through to `lookup`.
        authorities: Authorities synced by this account, in display order.
            None or empty means the account has no sync adapters.
        lookup: Returns the snapshot for (account, authority), or None when
            the sync subsystem has no status for the pair.
        user_facing_authorities: Authorities that count towards "enabled".

    Returns:
        AccountSyncStatus. Never raises for missing or malformed snapshots.
    """
    user_facing = set(user_facing_authorities)
    sync_count = 0
    last_success_time = 0
    syncing_now = False

    for authority in authorities or ():
        snapshot = lookup(account, authority)
        if snapshot is None:
            continue

        if (
            snapshot.last_sync_failed
            and not snapshot.is_active
            and not snapshot.is_pending
        ):
            return AccountSyncStatus(DisplayStatus.ERROR)

        if snapshot.last_success_time and snapshot.last_success_time > last_success_time:
            last_success_time = snapshot.last_success_time
        if snapshot.is_enabled and authority in user_facing:
            sync_count += 1
        syncing_now = syncing_now or snapshot.is_active
        if syncing_now:
            break

    if sync_count == 0:
        return AccountSyncStatus(DisplayStatus.DISABLED)
    if syncing_now:
        return AccountSyncStatus(DisplayStatus.IN_PROGRESS)
    return AccountSyncStatus(
        DisplayStatus.ENABLED,
        last_success_time=last_success_time if last_success_time > 0 else None,
    )


def aggregate_accounts(
    accounts: Iterable[Tuple[Hashable, Optional[Sequence[str]]]],
    lookup: SnapshotLookup,
    user_facing_authorities: Iterable[str],
) -> Tuple[List[AccountSyncStatus], bool]:
    """
    Aggregate every (account, authorities) pair.

    Returns:
        (statuses in input order, any_sync_failed)
    """
    user_facing = frozenset(user_facing_authorities)
    statuses = [
        aggregate_account_status(account, authorities, lookup, user_facing)
        for account, authorities in accounts
    ]
    return statuses, any(s.failed for s in statuses)
