"""
HTTP request logging.

``fire`` logs one request/response pair with the HTTP keys the line
formatter renders (status, client ip, method and url). The starlette
middleware calls it for every request.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .core import Logger, get_default
from .errors import StructuredError
from .types import (
    CLIENT_IP_KEY,
    ERROR_KEY,
    MESSAGE_KEY,
    REQUEST_METHOD_KEY,
    REQUEST_URL_KEY,
    STATUS_CODE_KEY,
)

INTERNAL_SERVER_ERROR = 500


def _now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class RequestRecord:
    """What is logged for one HTTP request."""

    method: str = ""
    url: str = ""
    client_ip: str = ""
    status: int = 0
    message: str = ""
    referer: str = ""
    user_agent: str = ""
    request_time: datetime = field(default_factory=_now)
    response_time: Optional[datetime] = None
    data: Any = None

    @classmethod
    def from_request(cls, request: Request, **kwargs: Any) -> RequestRecord:
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        return cls(
            method=request.method,
            url=url,
            client_ip=request.client.host if request.client else "",
            referer=request.headers.get("referer", ""),
            user_agent=request.headers.get("user-agent", ""),
            **kwargs,
        )


def fire(logger: Logger, record: RequestRecord) -> None:
    """Log a request at info level for 2xx statuses, error level otherwise."""
    end = _now()
    latency = end - record.request_time
    err = record.data if isinstance(record.data, StructuredError) else None

    bound = logger.bind(
        **{
            STATUS_CODE_KEY: record.status,
            "latency_time": latency,
            CLIENT_IP_KEY: record.client_ip,
            REQUEST_METHOD_KEY: record.method,
            REQUEST_URL_KEY: record.url,
            "referer": record.referer,
            "user_agent": record.user_agent,
            "request_time": record.request_time,
            "response_time": record.response_time,
            "duration": latency.total_seconds() * 1_000_000,
            MESSAGE_KEY: record.message,
            ERROR_KEY: err,
        }
    )

    if 200 <= record.status < 300:
        bound.info()
        return
    bound.error()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request through ``fire``.

    Args:
        app: The ASGI app to wrap.
        logger: Logger to use, the process default when None.
    """

    def __init__(self, app, logger: Optional[Logger] = None):
        super().__init__(app)
        self._logger = logger

    @property
    def logger(self) -> Logger:
        if self._logger is not None:
            return self._logger
        return get_default()

    async def dispatch(self, request: Request, call_next):
        record = RequestRecord.from_request(request)
        try:
            response = await call_next(request)
        except Exception as exc:
            record.status = INTERNAL_SERVER_ERROR
            record.response_time = _now()
            record.message = str(exc)
            fire(self.logger, record)
            raise

        record.status = response.status_code
        record.response_time = _now()
        fire(self.logger, record)
        return response
