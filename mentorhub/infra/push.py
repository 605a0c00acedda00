"""
Push delivery adapters

FcmPushSender delivers through Firebase Cloud Messaging (firebase-admin);
MockPushSender records messages in memory for development and tests.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from mentorhub.core.logging import get_logger

logger = get_logger(__name__)


class PushDeliveryError(Exception):
    """Delivery failed for a reason other than a dead token"""


class TokenNotRegisteredError(PushDeliveryError):
    """The device token is permanently invalid"""


@dataclass
class PushMessage:
    token: str
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)


class PushSender(ABC):
    @abstractmethod
    async def send(self, message: PushMessage) -> str:
        """Deliver one message and return the provider message id."""


class FcmPushSender(PushSender):
    def __init__(self, app=None):
        self._app = app

    @classmethod
    def from_settings(cls, project_id: Optional[str], credentials_path: Optional[str]) -> "FcmPushSender":
        import firebase_admin
        from firebase_admin import credentials

        if firebase_admin._apps:
            return cls(firebase_admin.get_app())
        cred = credentials.Certificate(credentials_path) if credentials_path else None
        options = {"projectId": project_id} if project_id else None
        return cls(firebase_admin.initialize_app(cred, options))

    async def send(self, message: PushMessage) -> str:
        from firebase_admin import exceptions as fb_exceptions
        from firebase_admin import messaging

        fcm_message = messaging.Message(
            token=message.token,
            notification=messaging.Notification(title=message.title, body=message.body),
            data=message.data,
        )
        try:
            # firebase-admin is synchronous
            return await asyncio.to_thread(messaging.send, fcm_message, False, self._app)
        except messaging.UnregisteredError as exc:
            raise TokenNotRegisteredError(str(exc)) from exc
        except fb_exceptions.FirebaseError as exc:
            raise PushDeliveryError(str(exc)) from exc


class MockPushSender(PushSender):
    def __init__(self):
        self.sent: List[PushMessage] = []
        # token -> exception factory, for simulating provider failures
        self.failures: Dict[str, Callable[[], Exception]] = {}

    async def send(self, message: PushMessage) -> str:
        factory = self.failures.get(message.token)
        if factory is not None:
            raise factory()
        self.sent.append(message)
        logger.info("push.mock.sent", title=message.title, data=message.data)
        return f"mock-{len(self.sent)}"
