"""FastAPI example app demonstrating fastapi-trackmark."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fastapi_trackmark import (
    TrackmarkConfig,
    create_bookmarks_router,
    register_exception_handlers,
)
from fastapi_trackmark.contrib.sqlalchemy.models import Base, StatusModel
from fastapi_trackmark.contrib.sqlalchemy.repository import (
    SQLAlchemyShipmentRepository,
    SQLAlchemyStatusRepository,
    SQLAlchemyUserRepository,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# --- Database setup ---

DATABASE_URL = "sqlite+aiosqlite:///./example.db"
engine = create_async_engine(DATABASE_URL, echo=False)
async_session = async_sessionmaker(engine, class_=AsyncSession)

# Reference statuses seeded on startup.
STATUSES = {
    "accepted": "accepted at warehouse",
    "in-transit": "in transit",
    "arrived": "arrived at pickup point",
    "ready": "ready for pickup",
}

# --- Library integration ---

config = TrackmarkConfig()
users = SQLAlchemyUserRepository(async_session)
shipments = SQLAlchemyShipmentRepository(async_session)
statuses = SQLAlchemyStatusRepository(async_session)

bookmarks_router = create_bookmarks_router(
    config=config,
    users=users,
    shipments=shipments,
    statuses=statuses,
)


async def seed_statuses() -> None:
    async with async_session() as session:
        for status_id, text in STATUSES.items():
            if await session.get(StatusModel, status_id) is None:
                session.add(StatusModel(id=status_id, status_text=text))
        await session.commit()


# --- FastAPI app ---


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_statuses()
    yield
    await engine.dispose()


app = FastAPI(
    title="fastapi-trackmark demo",
    lifespan=lifespan,
)
register_exception_handlers(app)
app.include_router(bookmarks_router, prefix="/api/trackmark")
