from fastapi import FastAPI
from sqlmodel import Session, select

from clutchline_backend.core.config import TEST_MODE, configure_logging
from clutchline_backend.core.database import init_db, sync_engine
from clutchline_backend.models.league_model import League
from clutchline_backend.seed.seed_all import seed_all

# --- Routers ---
from clutchline_backend.routes.calendar_routes import router as calendar_router
from clutchline_backend.routes.competition_routes import router as competition_router
from clutchline_backend.routes.profile_routes import router as profile_router
from clutchline_backend.routes.sponsorship_routes import router as sponsorship_router
from clutchline_backend.routes.transfer_routes import router as transfer_router

import logging

logger = logging.getLogger(__name__)

app = FastAPI()


@app.on_event("startup")
async def on_startup():
    configure_logging()
    if TEST_MODE:
        logger.info("🧪 Test mode: skipping table creation and auto-seed")
        return

    # 1️⃣ Init DB tables async
    await init_db()

    # 2️⃣ Auto-seed DB in sync mode
    with Session(sync_engine) as session:
        if session.exec(select(League)).first() is None:
            logger.info("🌱 No leagues found. Auto-seeding database...")
            seed_all(session)
        else:
            logger.info("✅ Database already seeded. Skipping auto-seed.")


# Routers
app.include_router(profile_router, prefix="/profile", tags=["Profile"])
app.include_router(calendar_router, prefix="/calendar", tags=["Calendar"])
app.include_router(transfer_router, prefix="/transfers", tags=["Transfers"])
app.include_router(competition_router, prefix="/competitions", tags=["Competitions"])
app.include_router(sponsorship_router, prefix="/sponsorships", tags=["Sponsorships"])
