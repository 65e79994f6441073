"""
Main entrypoint: inspect and drive account sync from the command line.

FastAPI runs separately under uvicorn.

Usage:
    python -m syncpanel status                  # print every account row
    python -m syncpanel sync --account-type T   # request a manual sync
    python -m syncpanel cancel                  # cancel pending/running syncs
    python -m syncpanel watch                   # refresh on an interval
    uvicorn syncpanel.api.main:app --host 0.0.0.0 --port 8000  # starts API
"""
import argparse
import asyncio
import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _build_panel(account_type=None):
    from syncpanel.config import get_settings
    from syncpanel.db.engine import get_engine
    from syncpanel.panel.screen import AccountsPanel
    from syncpanel.sync.manager import SyncManager

    settings = get_settings()
    if settings.verbose:
        logging.getLogger("syncpanel").setLevel(logging.DEBUG)
    return AccountsPanel(
        SyncManager(get_engine()),
        account_type=account_type or settings.account_type,
        authorities_filter=settings.authorities_filter,
        verbose=settings.verbose,
    )


def _print_state(state) -> None:
    for row in state.rows:
        print(f"{row.account.name:<32} {row.account.account_type:<24} "
              f"{row.status.value:<12} {row.summary}")
    if not state.rows:
        print("No accounts.")
    if state.show_error_banner:
        print("Sync is currently experiencing problems.")


def _run_status(args) -> None:
    _print_state(_build_panel(args.account_type).refresh())


def _run_sync(args, sync: bool) -> None:
    panel = _build_panel(args.account_type)
    panel.show_accounts()
    issued = panel.sync_now() if sync else panel.cancel_sync()
    logger.info("%s %d authorities", "Requested" if sync else "Cancelled", issued)
    _print_state(panel.state)


async def _run_watch(args) -> None:
    from syncpanel.scheduler.jobs import build_scheduler

    panel = _build_panel(args.account_type)
    panel.add_listener(_print_state)
    panel.refresh()

    scheduler = build_scheduler(panel)
    scheduler.start()
    logger.info("Watching sync state. Press Ctrl+C to stop.")
    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down...")
    finally:
        scheduler.shutdown()


def main() -> None:
    parser = argparse.ArgumentParser(prog="syncpanel", description="Accounts & sync panel")
    parser.add_argument(
        "command",
        nargs="?",
        default="status",
        choices=["status", "sync", "cancel", "watch"],
    )
    parser.add_argument(
        "--account-type",
        default=None,
        help="Only show accounts of this type (default: SYNCPANEL_ACCOUNT_TYPE)",
    )
    args = parser.parse_args()

    if args.command == "sync":
        _run_sync(args, sync=True)
    elif args.command == "cancel":
        _run_sync(args, sync=False)
    elif args.command == "watch":
        asyncio.run(_run_watch(args))
    else:
        _run_status(args)


if __name__ == "__main__":
    main()
