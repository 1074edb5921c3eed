import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import init_db
from api.applications import router as applications_router
from api.fee_rates import router as fee_rates_router
from api.fees import router as fees_router
from domain.exceptions import (
    ConcurrencyConflictError,
    DomainRuleViolation,
    InvalidArgumentError,
    InvalidTransitionError,
    NotFoundError,
    PermitError,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("%s started (database: %s)", settings.app_name, "sqlite" if settings.is_sqlite else "postgresql")
    yield


app = FastAPI(
    title=settings.app_name,
    description="Foreign Operator Permit applications and airport fee calculation API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(applications_router)
app.include_router(fees_router)
app.include_router(fee_rates_router)

# most specific first; PermitError catches anything left
ERROR_STATUS = (
    (InvalidArgumentError, 400),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConcurrencyConflictError, 409),
    (DomainRuleViolation, 422),
    (PermitError, 400),
)


def status_for(exc: PermitError) -> int:
    for exc_type, status_code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return 400


@app.exception_handler(PermitError)
async def permit_error_handler(request: Request, exc: PermitError):
    status_code = status_for(exc)
    body = {"detail": str(exc), "error": type(exc).__name__}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(status_code=status_code, content=body)


@app.get("/health")
async def health():
    return {"status": "ok"}
