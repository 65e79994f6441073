"""Tests for the registry seed script."""
import json
from unittest.mock import patch

from sqlmodel import Session, select

from syncpanel.models.account import Account, SyncAdapter, SyncState
from syncpanel.scripts.seed import main, seed_registry

DATA = {
    "authenticators": [{"account_type": "com.example", "label": "Example"}],
    "adapters": [
        {"authority": "contacts", "account_type": "com.example"},
        {"authority": "sync.hidden", "account_type": "com.example", "user_visible": False},
    ],
    "accounts": [
        {"name": "me@example.com", "account_type": "com.example",
         "authorities": ["contacts", "sync.hidden"]},
    ],
}


class TestSeedRegistry:
    def test_creates_rows(self, engine):
        created = seed_registry(engine, DATA)
        assert created == {"authenticators": 1, "adapters": 2, "accounts": 1, "states": 2}

        with Session(engine) as s:
            hidden = s.exec(
                select(SyncAdapter).where(SyncAdapter.authority == "sync.hidden")
            ).one()
            assert hidden.user_visible is False
            states = s.exec(select(SyncState)).all()
            assert all(st.sync_automatically for st in states)

    def test_idempotent(self, engine):
        seed_registry(engine, DATA)
        created = seed_registry(engine, DATA)
        assert created == {"authenticators": 0, "adapters": 0, "accounts": 0, "states": 0}
        with Session(engine) as s:
            assert len(s.exec(select(Account)).all()) == 1

    def test_empty_file(self, engine):
        assert seed_registry(engine, {}) == {
            "authenticators": 0, "adapters": 0, "accounts": 0, "states": 0,
        }


class TestMain:
    def test_reads_file_and_seeds(self, engine, tmp_path):
        path = tmp_path / "registry.json"
        path.write_text(json.dumps(DATA))
        with patch("syncpanel.db.engine.get_engine", return_value=engine), \
                patch("sys.argv", ["seed", str(path)]):
            main()
        with Session(engine) as s:
            assert s.exec(select(Account)).one().name == "me@example.com"
