"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from reminder_service.api.realtime import router as realtime_router
from reminder_service.api.reminders import router as reminders_router
from reminder_service.clock import SystemClock
from reminder_service.config import get_settings
from reminder_service.db.session import engine
from reminder_service.errors import AuthorizationError, NotFoundError, ValidationError
from reminder_service.realtime.manager import ConnectionManager
from reminder_service.services.dispatcher import DeliveryDispatcher
from reminder_service.workers.scheduler import ReminderScheduler, configure_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, wire the notifier and run the scheduler for the app's lifetime."""
    settings.validate()
    configure_logging(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # Import models to register them with SQLModel
    from reminder_service.models import AuditLog, NotificationDelivery, Reminder, User  # noqa: F401
    SQLModel.metadata.create_all(engine)

    clock = SystemClock()
    notifier = ConnectionManager()
    dispatcher = DeliveryDispatcher.from_settings(settings, notifier, clock=clock)
    scheduler = ReminderScheduler(
        dispatcher,
        clock=clock,
        interval_seconds=settings.SCHEDULER_INTERVAL_SECONDS,
        batch_size=settings.SCHEDULER_BATCH_SIZE,
    )

    app.state.clock = clock
    app.state.notifier = notifier
    app.state.scheduler = scheduler

    if settings.SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.info("Reminder scheduler disabled")

    yield

    scheduler.stop()


app = FastAPI(
    title="Reminder Service API",
    description="Reminder scheduling and multi-channel delivery",
    version="1.0.0",
    lifespan=lifespan,
)

cors_origins = [origin for origin in {settings.FRONTEND_URL, "http://localhost:3000"} if origin]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


@app.exception_handler(AuthorizationError)
async def handle_authorization_error(request: Request, exc: AuthorizationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message})


# Register routers
app.include_router(reminders_router)
app.include_router(realtime_router)


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
