"""Shared test fixtures."""
import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

# Import all models so SQLModel.metadata knows about them
from syncpanel.models.account import (  # noqa: F401
    Account, ActiveSync, Authenticator, MasterSync, SyncAdapter, SyncState,
)
from syncpanel.models.sync import SyncRequestLog  # noqa: F401
from syncpanel.scripts.seed import seed_registry
from syncpanel.sync.manager import SyncManager

REGISTRY = {
    "authenticators": [{"account_type": "com.example", "label": "Example"}],
    "adapters": [
        {"authority": "contacts", "account_type": "com.example"},
        {"authority": "calendar", "account_type": "com.example"},
        {"authority": "com.example.internal", "account_type": "com.example",
         "user_visible": False},
        {"authority": "mail", "account_type": "com.other"},
    ],
    "accounts": [
        {"name": "alice@example.com", "account_type": "com.example",
         "authorities": ["contacts", "calendar", "com.example.internal"]},
        {"name": "bob@other.com", "account_type": "com.other",
         "authorities": ["mail"]},
    ],
}


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="manager")
def manager_fixture(engine) -> SyncManager:
    """SyncManager over a seeded registry (alice: com.example, bob: com.other)."""
    seed_registry(engine, REGISTRY)
    return SyncManager(engine)


@pytest.fixture(name="alice")
def alice_fixture(manager) -> Account:
    return manager.get_account("com.example", "alice@example.com")


@pytest.fixture(name="bob")
def bob_fixture(manager) -> Account:
    return manager.get_account("com.other", "bob@other.com")


@pytest.fixture(name="state_of")
def state_of_fixture(engine):
    """Reader for the SyncState row of an (account, authority) pair."""
    def state_of(account: Account, authority: str) -> SyncState:
        with Session(engine) as s:
            return s.exec(
                select(SyncState).where(
                    SyncState.account_id == account.id,
                    SyncState.authority == authority,
                )
            ).first()
    return state_of
