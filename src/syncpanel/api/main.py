"""FastAPI application factory."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlmodel import SQLModel

from syncpanel.db.engine import get_engine
from syncpanel.api.routes import accounts, sync as sync_routes


def create_app() -> FastAPI:
    """Build and return the FastAPI app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables on startup (idempotent)
        SQLModel.metadata.create_all(get_engine())
        yield

    app = FastAPI(
        title="Sync Panel API",
        description="Accounts & sync management backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
    app.include_router(sync_routes.router, prefix="/sync", tags=["sync"])

    return app


# Module-level app instance for uvicorn
app = create_app()
