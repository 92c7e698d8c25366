import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from trust_engine.core.config import get_settings
from trust_engine.core.exceptions import register_exception_handlers
from trust_engine.core.logging_config import setup_logging
from trust_engine.core.middleware import CorrelationIDMiddleware, JWTValidationMiddleware
from trust_engine.core.rate_limit import limiter, rate_limit_exceeded_handler
from trust_engine.core.redis import close_redis
from trust_engine.routers import admin, health, reports

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    logger.info("Starting %s...", settings.app_name)
    yield
    logger.info("Shutting down %s...", settings.app_name)
    close_redis()
    logger.info("Redis connection closed")


app = FastAPI(
    title=settings.app_name,
    description="Trust & safety engine: report intake, review queue and enforcement",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# JWT validation middleware (runs after CORS, before routes)
app.add_middleware(JWTValidationMiddleware)

# Outermost: every log line of the request carries the correlation ID
app.add_middleware(CorrelationIDMiddleware)

# Rate limiting (slowapi + Redis)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Global exception handlers (domain exceptions → HTTP responses)
register_exception_handlers(app)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(reports.router, prefix=f"{settings.api_prefix}/reports", tags=["Reports"])
app.include_router(admin.router, prefix=f"{settings.api_prefix}/admin", tags=["Admin"])
