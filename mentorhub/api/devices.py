from fastapi import APIRouter
from pydantic import Field

from mentorhub.api.schemas import CamelModel, SuccessResponse
from mentorhub.core.deps import CurrentUserDep, DeviceTokenServiceDep

router = APIRouter(prefix="/devices", tags=["devices"])


class DeviceTokenPayload(CamelModel):
    fcm_token: str = Field(min_length=1)


@router.post("/token", response_model=SuccessResponse)
async def save_device_token(payload: DeviceTokenPayload, user_id: CurrentUserDep, service: DeviceTokenServiceDep):
    return await service.save(user_id, payload.fcm_token)
