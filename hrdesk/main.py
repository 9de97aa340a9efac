import logging
import subprocess
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hrdesk.api.alerts import router as alerts_router
from hrdesk.api.attendance import router as attendance_router
from hrdesk.api.auth import router as auth_router
from hrdesk.api.employees import router as employees_router
from hrdesk.api.files import router as files_router
from hrdesk.api.health import router as health_router
from hrdesk.api.leave import router as leave_router
from hrdesk.api.positions import router as positions_router
from hrdesk.core.config import settings
from hrdesk.core.exceptions import HRDeskError
from hrdesk.core.logging import setup_logging
from hrdesk.db.session import AsyncSessionLocal
from hrdesk.services.sweeper import AbsenceSweeper

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def run_migrations() -> None:
    logger.info("Running Alembic migrations...")
    result = subprocess.run(
        ["alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        cwd=PROJECT_ROOT,
    )
    if result.returncode != 0:
        logger.error("Alembic migration failed:\n%s", result.stderr)
        raise RuntimeError("Database migration failed")
    logger.info("Migrations applied successfully:\n%s", result.stdout)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Apply migrations if configured and run the absence sweeper while serving."""
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        run_migrations()

    sweeper = AbsenceSweeper(AsyncSessionLocal)
    app.state.absence_sweeper = sweeper
    if settings.ABSENCE_SWEEPER_ENABLED:
        sweeper.start()

    yield

    await sweeper.stop()
    logger.info("Shutting down HRDesk backend.")


setup_logging()

app = FastAPI(
    title="HRDesk API",
    description="Attendance, leave and alerts for the HR back office.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HRDeskError)
async def hrdesk_error_handler(request: Request, exc: HRDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind, "code": exc.code},
    )


app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(employees_router, prefix="/api/employees", tags=["Employees"])
app.include_router(positions_router, prefix="/api/positions", tags=["Positions"])
app.include_router(attendance_router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(leave_router, prefix="/api/leave", tags=["Leave"])
app.include_router(alerts_router, prefix="/api/alerts", tags=["Alerts"])
app.include_router(files_router, prefix="/api/files", tags=["Files"])
app.include_router(health_router, prefix="/api/health", tags=["System"])


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok"}
