"""
APScheduler jobs for background panel refresh.

Sync state changes underneath the panel (syncs start, finish, fail). The
refresh job recomputes the panel on an interval so listeners and logs see
new failures without anyone reopening the screen.
"""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from syncpanel.config import get_settings
from syncpanel.core.status import DisplayStatus
from syncpanel.panel.screen import AccountsPanel

logger = logging.getLogger(__name__)


def build_scheduler(panel: AccountsPanel) -> AsyncIOScheduler:
    """
    Create and configure the APScheduler.

    Args:
        panel: AccountsPanel refreshed by the job.

    Returns:
        Configured AsyncIOScheduler (not yet started).
    """
    settings = get_settings()
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        _refresh_sync_state,
        trigger="interval",
        minutes=settings.refresh_interval_minutes,
        id="refresh_sync_state",
        replace_existing=True,
        kwargs={"panel": panel},
    )

    return scheduler


async def _refresh_sync_state(panel: AccountsPanel) -> None:
    """Interval job: recompute the panel and log accounts in error."""
    try:
        state = panel.refresh()
    except Exception as exc:
        logger.error("Sync state refresh failed: %s", exc)
        return

    if state.show_error_banner:
        failing = [r.account.name for r in state.rows if r.status is DisplayStatus.ERROR]
        logger.warning("Sync failing for %d account(s): %s", len(failing), ", ".join(failing))
    else:
        logger.info("Sync state refreshed for %d account(s)", len(state.rows))
