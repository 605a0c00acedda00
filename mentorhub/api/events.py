"""
Change-feed webhook

Called by the store's change feed (or a relay) once per created message.
Not behind user auth; a shared secret header is checked when configured.
"""

import hmac
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Header
from pydantic import Field

from mentorhub.api.schemas import CamelModel
from mentorhub.core.config import settings
from mentorhub.core.deps import IngestSubscriberDep
from mentorhub.core.errors import AuthenticationError, internal_errors

router = APIRouter(prefix="/events", tags=["events"])


class MessageCreatedEvent(CamelModel):
    chat_id: str = Field(min_length=1)
    message_id: str = Field(min_length=1)


class MessageCreatedResponse(CamelModel):
    chat_id: str
    message_id: str
    recipients: List[str]
    dispatched: List[str]
    skipped: List[str]
    dropped: bool
    already_notified: bool


def _check_secret(provided: Optional[str]) -> None:
    expected = settings.event_webhook_secret
    if not expected:
        return
    if not provided or not hmac.compare_digest(provided, expected):
        raise AuthenticationError("Invalid event secret.")


@router.post("/message-created", response_model=MessageCreatedResponse)
async def message_created(
    event: MessageCreatedEvent,
    subscriber: IngestSubscriberDep,
    x_event_secret: Optional[str] = Header(default=None),
):
    _check_secret(x_event_secret)
    with internal_errors("ingest.event", "Failed to process message event.", chat_id=event.chat_id, message_id=event.message_id):
        result = await subscriber.handle(event.chat_id, event.message_id)
    return asdict(result)
