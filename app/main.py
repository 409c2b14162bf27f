"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.infrastructure.database import engine, Base, SessionLocal
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.core.exceptions import setup_exception_handlers

# Import all models so SQLAlchemy knows about them
from app.domain.models.user import User, Role
from app.domain.models.restaurant import Restaurant
from app.domain.models.verification import EmailVerification, OtpVerification
from app.domain.models.notification_log import NotificationLog

from app.interfaces.api.auth import router as auth_router
from app.interfaces.api.users import router as users_router

settings = get_settings()

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting YemekTaxi backend...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only — use migrations in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    from app.application.services.auth_service import seed_defaults
    db = SessionLocal()
    try:
        seed_defaults(db)
    finally:
        db.close()

    if settings.SCHEDULER_ENABLED:
        from app.scheduler.jobs import start_scheduler
        start_scheduler()

    yield

    if settings.SCHEDULER_ENABLED:
        from app.scheduler.jobs import stop_scheduler
        stop_scheduler()
    logger.info("YemekTaxi backend stopped")


app = FastAPI(
    title="YemekTaxi Backend",
    description="Authentication, verification and restaurant onboarding API",
    version="1.0.0",
    lifespan=lifespan,
)

setup_middleware(app)
setup_exception_handlers(app)

# Added last so it runs first
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(users_router)


@app.get("/")
def root():
    return {
        "name": "YemekTaxi Backend",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
