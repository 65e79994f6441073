"""Accounts panel, per-account detail, and manual sync routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from syncpanel.config import get_settings
from syncpanel.db.engine import get_engine
from syncpanel.panel.screen import AccountsPanel, PanelState
from syncpanel.sync.manager import AccountNotFoundError, SyncManager

router = APIRouter()


def get_manager() -> SyncManager:
    """FastAPI dependency that yields a SyncManager on the shared engine."""
    return SyncManager(get_engine())


class AccountRowResponse(BaseModel):
    name: str
    account_type: str
    authorities: List[str]
    status: str
    summary: str
    icon: str
    last_success_time: Optional[int]


class PanelResponse(BaseModel):
    accounts: List[AccountRowResponse]
    show_error_banner: bool
    sync_active: bool
    sync_now_visible: bool
    cancel_visible: bool


class AuthorityDetail(BaseModel):
    authority: str
    enabled: bool
    pending: bool
    active: bool
    last_success_time: Optional[int]
    last_failure_time: Optional[int]
    last_failure_code: Optional[int]


class AccountDetailResponse(BaseModel):
    name: str
    account_type: str
    label: str
    authorities: List[AuthorityDetail]


class SyncRequest(BaseModel):
    account_type: Optional[str] = None  # If None, uses the configured panel type


class SyncRequestResponse(BaseModel):
    message: str
    requests_issued: int


def _panel_response(state: PanelState) -> PanelResponse:
    return PanelResponse(
        accounts=[
            AccountRowResponse(
                name=row.account.name,
                account_type=row.account.account_type,
                authorities=row.authorities,
                status=row.status.value,
                summary=row.summary,
                icon=row.icon,
                last_success_time=row.last_success_time,
            )
            for row in state.rows
        ],
        show_error_banner=state.show_error_banner,
        sync_active=state.sync_active,
        sync_now_visible=state.menu.sync_now_visible,
        cancel_visible=state.menu.cancel_visible,
    )


def _build_panel(
    manager: SyncManager,
    account_type: Optional[str],
    authorities: Optional[List[str]],
) -> AccountsPanel:
    settings = get_settings()
    return AccountsPanel(
        manager,
        account_type=account_type or settings.account_type,
        authorities_filter=authorities or settings.authorities_filter,
        verbose=settings.verbose,
    )


@router.get("", response_model=PanelResponse)
def list_accounts(
    account_type: Optional[str] = None,
    authority: Optional[List[str]] = Query(default=None),
    manager: SyncManager = Depends(get_manager),
):
    """Return every visible account with its aggregated sync status."""
    panel = _build_panel(manager, account_type, authority)
    return _panel_response(panel.refresh())


@router.get("/{account_type}/{name}", response_model=AccountDetailResponse)
def account_detail(
    account_type: str,
    name: str,
    manager: SyncManager = Depends(get_manager),
):
    """Per-authority sync detail for one account."""
    try:
        account = manager.get_account(account_type, name)
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail="Account not found")

    current_syncs = manager.get_current_syncs()
    lookup = manager.snapshot_lookup(current_syncs)
    details = []
    for authority in manager.get_authorities_for_account_type(account_type):
        snap = lookup(account, authority)
        details.append(
            AuthorityDetail(
                authority=authority,
                enabled=bool(snap and snap.is_enabled),
                pending=bool(snap and snap.is_pending),
                active=manager.is_syncing(current_syncs, account, authority),
                last_success_time=snap.last_success_time if snap else None,
                last_failure_time=snap.last_failure_time if snap else None,
                last_failure_code=snap.last_failure_code if snap else None,
            )
        )
    return AccountDetailResponse(
        name=account.name,
        account_type=account.account_type,
        label=manager.get_label_for_type(account_type),
        authorities=details,
    )


@router.post("/sync", response_model=SyncRequestResponse)
def sync_now(request: SyncRequest, manager: SyncManager = Depends(get_manager)):
    """Request a manual sync for every visible account."""
    panel = _build_panel(manager, request.account_type, None)
    panel.show_accounts()
    issued = panel.sync_now()
    return SyncRequestResponse(message="Sync requested", requests_issued=issued)


@router.post("/cancel", response_model=SyncRequestResponse)
def cancel_sync(request: SyncRequest, manager: SyncManager = Depends(get_manager)):
    """Cancel pending and running syncs for every visible account."""
    panel = _build_panel(manager, request.account_type, None)
    panel.show_accounts()
    issued = panel.cancel_sync()
    return SyncRequestResponse(message="Sync cancelled", requests_issued=issued)
