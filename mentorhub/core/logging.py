"""
Logging configuration for mentorhub Backend

structlog on top of stdlib logging. Correlation keys live in structlog's
contextvars and are merged into every line logged while they are bound:

    request_id   per HTTP request (RequestContextMiddleware)
    uid          once the bearer token is verified (bind_caller)
    group_id, chat_id, message_id
                 around group operations, chat initialisation and
                 change-feed events (log_context)

Event names follow {domain}.{action}[.{detail}], e.g. connection.accept.ok,
group.delete.cascade_failed, push.token_removed.
"""

import logging
import re
import sys
import time
import uuid
from contextlib import contextmanager
from typing import Optional

import structlog
from pythonjsonlogger import jsonlogger

from mentorhub.core.config import settings

REQUEST_ID_HEADER = b"x-request-id"

# Relays forwarding change-feed events may supply their own id
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Client libraries that log every RPC or poll at INFO
_QUIET_LOGGERS = (
    "uvicorn.access",
    "google.api_core",
    "google.auth",
    "urllib3",
    "firebase_admin",
    "rq.worker",
)


def setup_logging() -> None:
    """Configure structured logging for the API and the workers"""

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.is_production:
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s"
        )
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
            if settings.is_production
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance"""
    return structlog.get_logger(name)


def bind_caller(uid: str) -> None:
    """Attach the verified caller uid to the rest of the request's log lines."""
    structlog.contextvars.bind_contextvars(uid=uid)


@contextmanager
def log_context(**keys):
    """Bind correlation keys for the duration of a block. None values are skipped."""
    bound = {key: value for key, value in keys.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def _incoming_request_id(scope) -> Optional[str]:
    for name, value in scope.get("headers", []):
        if name == REQUEST_ID_HEADER:
            candidate = value.decode("latin-1")
            return candidate if _REQUEST_ID_PATTERN.match(candidate) else None
    return None


class RequestContextMiddleware:
    """
    Binds request_id for the request, echoes it as X-Request-ID and logs
    one request.done line with status and duration. Keys bound further down
    (uid, group_id, ...) are cleared when the request ends.
    """

    def __init__(self, app):
        self.app = app
        self.logger = get_logger("mentorhub.request")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        status_code = 500

        async def send_with_request_id(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, request_id.encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            log = self.logger.error if status_code >= 500 else self.logger.info
            log(
                "request.done",
                method=scope.get("method"),
                path=scope.get("path"),
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            structlog.contextvars.clear_contextvars()


class LatencyLogger:
    """Context manager logging {operation}.done with latency and outcome"""

    def __init__(self, operation: str, logger: structlog.stdlib.BoundLogger, **context):
        self.operation = operation
        self.logger = logger
        self.context = context
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        fields = dict(
            self.context,
            latency_ms=round((time.perf_counter() - self.start_time) * 1000, 2),
            success=exc_type is None,
        )
        if exc_type is None:
            self.logger.info(f"{self.operation}.done", **fields)
        else:
            self.logger.warning(f"{self.operation}.done", error=exc_type.__name__, **fields)
