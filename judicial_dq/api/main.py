"""FastAPI application — main entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from judicial_dq.api.routers.v1 import router as v1_router
from judicial_dq.api.schemas import ErrorResponse, HealthResponse
from judicial_dq.config import get_settings
from judicial_dq.logger import get_logger, setup_logging
from judicial_dq.store.base import RecordNotFoundError, StoreError

setup_logging()
logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.ensure_dirs()
    logger.info("Data-quality API starting", environment=settings.environment)
    yield
    logger.info("Data-quality API shutting down")


app = FastAPI(
    title="Judicial Data Quality Remediation",
    description="Remediation planning, auto-remediation and data snapshots",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(v1_router)


# ── Error mapping ────────────────────────────────────────────────────────────


def _error(status_code: int, error: str, exc: Exception) -> JSONResponse:
    body = ErrorResponse(error=error, message=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(RecordNotFoundError)
async def _not_found(request: Request, exc: RecordNotFoundError):
    return _error(404, "not_found", exc)


@app.exception_handler(StoreError)
async def _store_error(request: Request, exc: StoreError):
    logger.error("Store failure", path=request.url.path, error=str(exc))
    return _error(500, "store_error", exc)


@app.exception_handler(ValueError)
async def _bad_request(request: Request, exc: ValueError):
    return _error(400, "bad_request", exc)


# ── Health ───────────────────────────────────────────────────────────────────


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", environment=settings.environment)
