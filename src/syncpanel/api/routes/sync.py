"""Sync request status route."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select

from syncpanel.db.engine import get_session
from syncpanel.models.sync import SyncRequestLog

router = APIRouter()


class SyncStatusResponse(BaseModel):
    status: str
    action: Optional[str]
    started_at: Optional[datetime]
    finished_at: Optional[datetime]
    requests_issued: Optional[int]
    error_message: Optional[str]


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(session: Session = Depends(get_session)):
    """Return the status of the most recent manual sync/cancel request."""
    log = session.exec(
        select(SyncRequestLog).order_by(
            SyncRequestLog.started_at.desc(), SyncRequestLog.id.desc()
        )
    ).first()
    if not log:
        return SyncStatusResponse(
            status="never_run",
            action=None,
            started_at=None,
            finished_at=None,
            requests_issued=None,
            error_message=None,
        )
    return SyncStatusResponse(
        status=log.status,
        action=log.action,
        started_at=log.started_at,
        finished_at=log.finished_at,
        requests_issued=log.requests_issued,
        error_message=log.error_message,
    )
