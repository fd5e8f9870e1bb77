import os
import logging
from contextlib import asynccontextmanager

from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy import create_engine as create_sync_engine

from clutchline_backend.core.config import DB_PATH, SQL_ECHO

logger = logging.getLogger(__name__)

# Ensure DB file exists (prevents async context errors)
if not os.path.exists(DB_PATH):
    logger.info("📂 Database file not found at %s. Creating a new one...", DB_PATH)
    open(DB_PATH, "a").close()

# --- Database URLs ---
DATABASE_URL = f"sqlite+aiosqlite:///{DB_PATH}"    # Async engine (routes, day loop)
SYNC_DATABASE_URL = f"sqlite:///{DB_PATH}"         # Sync engine (seeding/scripts)

# --- Engines ---
engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO, future=True)
sync_engine = create_sync_engine(SYNC_DATABASE_URL, echo=SQL_ECHO, future=True)

# --- Async session maker ---
async_session_maker = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# --- Async DB session (used in routes) ---
async def get_db():
    async with async_session_maker() as session:
        yield session


# --- Initialize DB tables ---
async def init_db(bind=None):
    """Create tables asynchronously if they don't exist."""
    from clutchline_backend import models  # noqa: F401  registers every table on the metadata

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def atomic(db: AsyncSession):
    """
    Commit everything written inside the block as one transaction.
    Any error rolls the whole batch back and is re-raised.
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise
