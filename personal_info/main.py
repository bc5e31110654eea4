from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from personal_info.api.persons import router as persons_router
from personal_info.core.logger import setup_logger
from personal_info.core.settings import settings
from personal_info.db.models import Base
from personal_info.db.session import get_engine
from personal_info.persistence.errors import ConcurrencyConflictError

setup_logger(level=settings.log_level, log_file=settings.log_file)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Ensure database tables exist before serving requests."""
    logger.info("Ensuring database tables exist")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables verified")
    yield
    logger.info("Shutting down")


app = FastAPI(title="Personal Info API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(persons_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.exception_handler(ConcurrencyConflictError)
async def concurrency_conflict_handler(request: Request, exc: ConcurrencyConflictError) -> JSONResponse:
    """A write raced with another writer on a row that still exists."""
    logger.opt(exception=exc).error(f"Concurrency conflict on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "The record was modified concurrently. Reload and try again."})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
