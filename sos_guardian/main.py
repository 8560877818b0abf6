# main.py
import logging
from fastapi import FastAPI
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager
from sos_guardian.config import LOG_LEVEL
from sos_guardian.database import database
from sos_guardian.routers import (
    emergency_contacts,
    location,
    motion,
    notifications,
    onboarding,
    sos,
)
from sos_guardian.models import models  # noqa: F401  registers tables on Base.metadata
from sos_guardian.utils.sos import EmergencySOS

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------- Lifespan context ----------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handles startup and shutdown events.
    Creates all tables on startup, builds the session-wide EmergencySOS,
    logs registered routes, and stops any running countdown on shutdown.
    """
    # Create all tables
    database.Base.metadata.create_all(bind=database.engine)

    app.state.sos = EmergencySOS(database.SessionLocal)
    prefs = app.state.sos.preferences.snapshot()
    logger.info(
        "✅ SOS ready (onboarded=%s, contacts=%d, shake=%s)",
        prefs.onboarding_complete, len(app.state.sos.registry), prefs.shake_enabled,
    )

    # Log registered routes
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = ",".join(sorted(route.methods))
            logger.debug(f"{methods:10} -> {route.path}")

    yield

    await app.state.sos.shutdown()


# ---------------- FastAPI instance ----------------
app = FastAPI(title="SOS Guardian", lifespan=lifespan)

# ---------------- Include routers ----------------
app.include_router(onboarding.router)
app.include_router(emergency_contacts.router)
app.include_router(sos.router)
app.include_router(location.router)
app.include_router(motion.router)
app.include_router(notifications.router)


@app.get("/ping", tags=["Health"])
def ping():
    return {"status": "ok"}
