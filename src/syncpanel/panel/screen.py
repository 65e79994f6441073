"""
AccountsPanel — the "accounts & sync" screen as a view model.

Lists accounts (optionally of one type, optionally filtered by authority),
computes each row's sync status through the aggregator, and decides whether
the sync-error banner and the "sync now" / "cancel" menu entries show.
Renderers (HTTP routes, CLI) consume PanelState; listeners registered with
add_listener() are told whenever the state is recomputed.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from syncpanel.core.accounts import visible_accounts
from syncpanel.core.status import DisplayStatus, aggregate_accounts
from syncpanel.models.account import Account
from syncpanel.sync.manager import SyncManager

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    DisplayStatus.ERROR: "sync_problem",
    DisplayStatus.DISABLED: "sync_disabled",
    DisplayStatus.IN_PROGRESS: "sync_in_progress",
    DisplayStatus.ENABLED: "sync_enabled",
}


def format_sync_date(ms: int) -> str:
    """Render an epoch-milliseconds timestamp as 'YYYY-MM-DD HH:MM' (UTC)."""
    dt = datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%d %H:%M")


@dataclass
class AccountRow:
    account: Account
    authorities: List[str]
    status: DisplayStatus
    summary: str
    icon: str
    last_success_time: Optional[int] = None


@dataclass
class MenuState:
    sync_now_visible: bool = True
    cancel_visible: bool = False


@dataclass
class PanelState:
    rows: List[AccountRow] = field(default_factory=list)
    show_error_banner: bool = False
    sync_active: bool = False
    menu: MenuState = field(default_factory=MenuState)
    first_account: Optional[Account] = None


PanelListener = Callable[[PanelState], None]


class AccountsPanel:
    """View model for the accounts & sync screen."""

    def __init__(
        self,
        manager: SyncManager,
        account_type: Optional[str] = None,
        authorities_filter: Optional[Sequence[str]] = None,
        verbose: bool = False,
    ):
        self.manager = manager
        self.account_type = account_type
        self.authorities_filter = list(authorities_filter) if authorities_filter else None
        self.verbose = verbose
        self.state = PanelState()
        self._listeners: List[PanelListener] = []
        self._user_facing_authorities: Optional[frozenset] = None

    def add_listener(self, listener: PanelListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: PanelListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ─── Refresh ──────────────────────────────────────────────────────────────

    def show_accounts(self) -> None:
        """Rebuild the row list from the account registry (no status yet)."""
        pairs = visible_accounts(
            self.manager.get_accounts(),
            self.manager.get_authorities_for_account_type,
            account_type=self.account_type,
            authorities_filter=self.authorities_filter,
        )
        self.state.rows = [
            AccountRow(
                account=account,
                authorities=authorities,
                status=DisplayStatus.DISABLED,
                summary=self.manager.get_label_for_type(account.account_type),
                icon=STATUS_ICONS[DisplayStatus.DISABLED],
            )
            for account, authorities in pairs
        ]
        self.state.first_account = pairs[0][0] if pairs else None

    def show_sync_state(self) -> PanelState:
        """
        Recompute every row's status. Must be called after show_accounts().

        Returns:
            The updated PanelState.
        """
        if self._user_facing_authorities is None:
            self._user_facing_authorities = frozenset(
                self.manager.get_user_facing_authorities()
            )

        current_syncs = self.manager.get_current_syncs()
        lookup = self.manager.snapshot_lookup(current_syncs)

        if self.verbose:
            for row in self.state.rows:
                if not row.authorities:
                    logger.debug("no sync adapters found for %s", row.account.name)

        statuses, any_failed = aggregate_accounts(
            ((row.account, row.authorities) for row in self.state.rows),
            lookup,
            self._user_facing_authorities,
        )
        for row, result in zip(self.state.rows, statuses):
            row.status = result.status
            row.icon = STATUS_ICONS[result.status]
            row.last_success_time = result.last_success_time
            if result.status is DisplayStatus.ENABLED and result.last_success_time:
                row.summary = f"Last synced {format_sync_date(result.last_success_time)}"
            else:
                row.summary = self.manager.get_label_for_type(row.account.account_type)

        sync_active = bool(current_syncs)
        self.state.show_error_banner = any_failed
        self.state.sync_active = sync_active
        self.state.menu = MenuState(
            sync_now_visible=not sync_active, cancel_visible=sync_active
        )
        return self.state

    def refresh(self) -> PanelState:
        """Full refresh: accounts, then sync state. Notifies listeners."""
        self.show_accounts()
        self.show_sync_state()
        self._notify()
        return self.state

    def on_sync_state_updated(self) -> None:
        self.show_sync_state()
        self._notify()

    def on_accounts_update(self) -> None:
        self.refresh()

    # ─── Menu actions ─────────────────────────────────────────────────────────

    def sync_now(self) -> int:
        return self._request_or_cancel(sync=True)

    def cancel_sync(self) -> int:
        return self._request_or_cancel(sync=False)

    def _request_or_cancel(self, sync: bool) -> int:
        issued = self.manager.request_or_cancel_sync_for_accounts(
            [row.account for row in self.state.rows], self.account_type, sync
        )
        self.on_sync_state_updated()
        return issued

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)
