from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, Request
from sqlalchemy import text
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint for monitoring"""
    settings = request.app.state.settings
    try:
        # Check database connection
        with request.app.state.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

        # Check Redis connection
        if request.app.state.redis is not None:
            await request.app.state.redis.ping()

        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc),
            "version": settings.APP_VERSION
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        raise HTTPException(
            status_code=503,
            detail="Service unavailable"
        )
