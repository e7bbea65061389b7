from datetime import datetime, timezone

from fastapi import APIRouter

from app.config import APP_VERSION, settings
from app.database import ping_database
from app.utils.response import send_success

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
async def health_check():
    await ping_database()
    return send_success({
        "status": "healthy",
        "timestamp": _now(),
        "database": "connected",
        "cache": "memory",
    })


@router.get("/ping")
async def ping():
    return {"success": True, "message": "pong", "timestamp": _now()}


@router.get("/version")
async def get_version():
    return {
        "success": True,
        "data": {
            "version": APP_VERSION,
            "apiVersion": "v1",
            "environment": settings.ENVIRONMENT,
        },
    }
