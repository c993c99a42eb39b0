"""
Health check API route
"""

from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, Depends
from database.connection import get_db_pool
from utils.auth import AuthConfig

router = APIRouter()

@router.get("/")
async def health_check(
    _=Depends(AuthConfig.get_auth_dependency())
):
    """Health check - verifies database connectivity"""
    db_pool = get_db_pool()
    if db_pool is None:
        raise HTTPException(status_code=503, detail="Health check failed: database not initialized")

    try:
        async with db_pool.acquire() as conn:
            await conn.fetchval("SELECT 1")

        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "connected"
        }

    except Exception as e:
        # Only report unhealthy for actual infrastructure issues
        raise HTTPException(status_code=503, detail=f"Health check failed: {str(e)}")
