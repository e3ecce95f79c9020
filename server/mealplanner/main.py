import logging

import mealplanner.models
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mealplanner import __version__
from mealplanner.core.config import settings
from mealplanner.core.db import Base, SessionLocal, engine
from mealplanner.core.logging import configure_logging
from mealplanner.core.time import now_utc
from mealplanner.routers import admin as admin_router
from mealplanner.routers import alerts as alerts_router
from mealplanner.routers import audit_logs as audit_logs_router
from mealplanner.routers import auth as auth_router
from mealplanner.routers import kitchen as kitchen_router
from mealplanner.routers import meal_orders as meal_orders_router
from mealplanner.routers import reports as reports_router
from mealplanner.routers import residents as residents_router
from mealplanner.routers import users as users_router
from mealplanner.routers import versioned_records as versioned_records_router
from mealplanner.services.escalation import escalate_unacknowledged_alerts

configure_logging()

app = FastAPI(title="Meal Planner API", version=__version__)

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(timezone="UTC")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Auth routes share the /api/users prefix and must match before /{user_id}
app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(residents_router.router)
app.include_router(meal_orders_router.router)
app.include_router(kitchen_router.router)
app.include_router(alerts_router.router)
app.include_router(audit_logs_router.router)
app.include_router(versioned_records_router.router)
app.include_router(reports_router.router)
app.include_router(admin_router.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", extra={"path": request.url.path, "method": request.method})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.on_event("startup")
def create_tables() -> None:
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


def _run_alert_escalation() -> None:
    with SessionLocal() as session:
        escalated = escalate_unacknowledged_alerts(session)
        if escalated:
            logger.info("alert_escalation_job", extra={"escalated": escalated})


@app.on_event("startup")
def start_scheduled_jobs() -> None:
    if not settings.ENABLE_SCHEDULER:
        return
    if not scheduler.running:
        scheduler.start()
    scheduler.add_job(
        _run_alert_escalation,
        trigger="interval",
        minutes=settings.ALERT_ESCALATION_INTERVAL_MINUTES,
        id="alert_escalation",
        replace_existing=True,
        next_run_time=now_utc(),
    )


@app.on_event("shutdown")
def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
