"""
API Router
"""

from fastapi import APIRouter, Depends

from mentorhub.api.chat import router as chat_router
from mentorhub.api.connections import router as connections_router
from mentorhub.api.devices import router as devices_router
from mentorhub.api.events import router as events_router
from mentorhub.api.groups import router as groups_router
from mentorhub.api.health import router as health_router
from mentorhub.core.token import security_scheme

api_router = APIRouter()

# 1. Routes without a user token (health, change-feed webhook)
api_router.include_router(health_router)
api_router.include_router(events_router)

# 2. Routes that need a caller identity
api_router.include_router(connections_router, dependencies=[Depends(security_scheme)])
api_router.include_router(groups_router, dependencies=[Depends(security_scheme)])
api_router.include_router(chat_router, dependencies=[Depends(security_scheme)])
api_router.include_router(devices_router, dependencies=[Depends(security_scheme)])
