import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy import text

from dutrel.config import settings
from dutrel.core.clock import utcnow
from dutrel.core.middleware import ExceptionHandlingMiddleware, install_exception_handlers
from dutrel.database import engine, get_db
from dutrel.models import Base
from dutrel.schemas.health import HealthResult

# Import routes
from dutrel.api.v1 import attachments, buckets, credit, households, identity, obligations, receipts, users

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="Dutrel API - household bills, obligations and receipts",
    lifespan=lifespan,
)

# Add exception handling middleware FIRST
app.add_middleware(ExceptionHandlingMiddleware, log_internal_errors=True)
install_exception_handlers(app)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(users.router, prefix=f"{settings.API_V1_STR}/users", tags=["users"])
app.include_router(
    households.router,
    prefix=f"{settings.API_V1_STR}/households",
    tags=["households"]
)
app.include_router(
    buckets.router,
    prefix=f"{settings.API_V1_STR}/buckets",
    tags=["buckets"]
)
app.include_router(
    attachments.router,
    prefix=f"{settings.API_V1_STR}/buckets/{{bucket_id}}/attachments",
    tags=["attachments"]
)
app.include_router(
    obligations.router,
    prefix=f"{settings.API_V1_STR}/obligations",
    tags=["obligations"]
)
app.include_router(
    receipts.router,
    prefix=f"{settings.API_V1_STR}/receipts",
    tags=["receipts"]
)
app.include_router(
    identity.router,
    prefix=f"{settings.API_V1_STR}/identity",
    tags=["identity"]
)
app.include_router(
    credit.router,
    prefix=f"{settings.API_V1_STR}/credit",
    tags=["credit"]
)


@app.get("/health", response_model=HealthResult)
@app.get(f"{settings.API_V1_STR}/health", response_model=HealthResult, include_in_schema=False)
async def health_check(db: Session = Depends(get_db)):
    """Liveness plus a database ping. Always 200; ``dbOk`` reports the ping."""
    started = time.perf_counter()
    db_ok, db_error = True, None
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Health check database ping failed: %s", e)
        db_ok, db_error = False, str(e)

    return HealthResult.successful(
        service="dutrel",
        status="up",
        db_ok=db_ok,
        db_error=db_error,
        ms=int((time.perf_counter() - started) * 1000),
        time=utcnow(),
    )
