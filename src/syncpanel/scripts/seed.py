"""
Seed script: load accounts, authenticators and sync adapters from JSON.

Usage:
    python -m syncpanel.scripts.seed registry.json

File shape:
    {
      "authenticators": [{"account_type": "com.example", "label": "Example"}],
      "adapters": [{"authority": "contacts", "account_type": "com.example",
                    "user_visible": true}],
      "accounts": [{"name": "me@example.com", "account_type": "com.example",
                    "authorities": ["contacts"]}]
    }

Every listed account authority gets a SyncState row with auto-sync on.
Rows already in the DB are left unchanged (idempotent).
"""
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict

from sqlmodel import Session, select

from syncpanel.models.account import Account, Authenticator, SyncAdapter, SyncState

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def seed_registry(engine, data: Dict[str, Any]) -> Dict[str, int]:
    """
    Insert registry rows missing from the DB.

    Returns:
        Counts of rows created: {authenticators, adapters, accounts, states}
    """
    created = {"authenticators": 0, "adapters": 0, "accounts": 0, "states": 0}

    with Session(engine) as s:
        for entry in data.get("authenticators", []):
            if s.get(Authenticator, entry["account_type"]) is None:
                s.add(Authenticator(account_type=entry["account_type"], label=entry["label"]))
                created["authenticators"] += 1

        for entry in data.get("adapters", []):
            exists = s.exec(
                select(SyncAdapter).where(
                    SyncAdapter.authority == entry["authority"],
                    SyncAdapter.account_type == entry["account_type"],
                )
            ).first()
            if not exists:
                s.add(SyncAdapter(
                    authority=entry["authority"],
                    account_type=entry["account_type"],
                    user_visible=entry.get("user_visible", True),
                ))
                created["adapters"] += 1
        s.commit()

        for entry in data.get("accounts", []):
            account = s.exec(
                select(Account).where(
                    Account.name == entry["name"],
                    Account.account_type == entry["account_type"],
                )
            ).first()
            if account is None:
                account = Account(name=entry["name"], account_type=entry["account_type"])
                s.add(account)
                s.commit()
                s.refresh(account)
                created["accounts"] += 1

            for authority in entry.get("authorities", []):
                state = s.exec(
                    select(SyncState).where(
                        SyncState.account_id == account.id,
                        SyncState.authority == authority,
                    )
                ).first()
                if state is None:
                    s.add(SyncState(account_id=account.id, authority=authority))
                    created["states"] += 1
        s.commit()

    return created


def main() -> None:
    from syncpanel.db.engine import get_engine

    parser = argparse.ArgumentParser(description="Seed the account registry")
    parser.add_argument("path", type=Path, help="Registry JSON file")
    args = parser.parse_args()

    data = json.loads(args.path.read_text())
    created = seed_registry(get_engine(), data)
    logger.info(
        "Seed complete. Authenticators: %d, adapters: %d, accounts: %d, states: %d",
        created["authenticators"],
        created["adapters"],
        created["accounts"],
        created["states"],
    )


if __name__ == "__main__":
    main()
