"""
Notification dispatch

Best-effort, one push per recipient. A dead token is removed from the
recipient's profile so later messages skip it; every other delivery
failure is logged and dropped.
"""

from dataclasses import dataclass
from typing import Optional

from mentorhub.core.config import settings
from mentorhub.core.errors import internal_errors, require_caller, require_id
from mentorhub.core.logging import get_logger
from mentorhub.infra.push import PushMessage, PushSender, TokenNotRegisteredError
from mentorhub.repositories.users import UserRepository

logger = get_logger(__name__)

ELLIPSIS = "..."


def truncate_body(text: Optional[str], limit: Optional[int] = None) -> str:
    limit = limit or settings.notification_body_limit
    text = text or ""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


@dataclass
class ChatNotification:
    title: str
    body: str
    chat_id: str
    sender_id: str

    @classmethod
    def for_message(cls, title: str, text: Optional[str], chat_id: str, sender_id: str) -> "ChatNotification":
        return cls(title=title, body=truncate_body(text), chat_id=chat_id, sender_id=sender_id)

    def data(self) -> dict:
        return {"type": "CHAT", "chatId": self.chat_id, "senderId": self.sender_id}


class NotificationDispatcher:
    def __init__(self, sender: PushSender, users: UserRepository):
        self.sender = sender
        self.users = users

    async def dispatch(self, recipient_id: str, token: str, notification: ChatNotification) -> bool:
        """Deliver to one device. Never raises; returns whether delivery succeeded."""
        message = PushMessage(
            token=token,
            title=notification.title,
            body=notification.body,
            data=notification.data(),
        )
        try:
            message_id = await self.sender.send(message)
        except TokenNotRegisteredError as exc:
            logger.warning("push.token_invalid", recipient=recipient_id, chat_id=notification.chat_id, error=str(exc))
            await self._remove_token(recipient_id)
            return False
        except Exception as exc:
            logger.error("push.failed", recipient=recipient_id, chat_id=notification.chat_id, error=str(exc))
            return False

        logger.info("push.sent", recipient=recipient_id, chat_id=notification.chat_id, message_id=message_id)
        return True

    async def _remove_token(self, recipient_id: str) -> None:
        try:
            await self.users.clear_device_token(recipient_id)
        except Exception as exc:
            logger.error("push.token_cleanup_failed", recipient=recipient_id, error=str(exc))
            return
        logger.info("push.token_removed", recipient=recipient_id)


class DeviceTokenService:
    def __init__(self, users: UserRepository):
        self.users = users

    async def save(self, caller_id: Optional[str], fcm_token) -> dict:
        uid = require_caller(caller_id)
        token = require_id(fcm_token, "A device token is required.")

        with internal_errors("device.token_save", "Failed to save device token.", uid=uid):
            await self.users.save_device_token(uid, token)

        logger.info("device.token_saved", uid=uid)
        return {"success": True}
