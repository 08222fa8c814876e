from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.logging import configure_logging
from app.models import employee, payroll_record, payroll_transaction, timesheet  # noqa: F401
from app.routers.auth import router as auth_router
from app.routers.connecteam import router as connecteam_router
from app.routers.employees import router as employees_router
from app.routers.payroll import router as payroll_router
from app.routers.reports import router as reports_router
from app.routers.timesheets import router as timesheets_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    title="Cleaning Ops Payroll",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(employees_router)
app.include_router(connecteam_router)
app.include_router(timesheets_router)
app.include_router(payroll_router)
app.include_router(reports_router)


@app.get("/")
def root():
    return {"status": "Cleaning Ops Payroll running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
