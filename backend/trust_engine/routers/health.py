from fastapi import APIRouter

from trust_engine.core.redis import ping_redis

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "trust-engine-api"}


@router.get("/health/redis")
async def redis_health_check():
    """Redis health check endpoint (rate limiter + Celery broker)."""
    if ping_redis():
        return {"status": "healthy", "service": "redis"}
    return {"status": "unhealthy", "service": "redis"}


@router.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Welcome to the Trust Engine API", "docs": "/docs"}
