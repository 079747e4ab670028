from datetime import datetime, timezone

from fastapi import APIRouter

from config.settings import SERVICE_NAME, SERVICE_VERSION

router = APIRouter()


@router.get("/status")
async def get_status():
    """Public liveness endpoint; no authentication."""
    return {
        "status": "operational",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": SERVICE_VERSION,
    }
