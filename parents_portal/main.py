import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Import models to ensure they're registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import FRONTEND_URL, REMINDER_INTERVALS_DAYS, RESEND_API_KEY
from .database import Base, engine
from .domain.events import router as cron_router
from .domain.events import webhooks_router as events_webhooks_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    if not RESEND_API_KEY:
        logger.warning("⚠️ RESEND_API_KEY not set - notification emails will be simulated")
    logger.info(f"Reminder offsets (days before event): {REMINDER_INTERVALS_DAYS}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Parents Portal API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cron_router, prefix="/api")
app.include_router(events_webhooks_router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "healthy"}
