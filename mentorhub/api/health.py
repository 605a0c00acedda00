"""
Health check endpoints
"""

from fastapi import APIRouter

from mentorhub.core.config import settings
from mentorhub.core.deps import StoreDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(store: StoreDep):
    """
    Check health of the document store
    """
    status = {
        "api": "ok",
        "store": "unknown",
        "store_provider": settings.store_provider,
        "push_provider": settings.push_provider,
    }

    try:
        await store.get("health", "ping")
        status["store"] = "ok"
    except Exception as e:
        status["store"] = f"error: {str(e)}"

    return status
