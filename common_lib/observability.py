"""관찰성 및 구조화 로깅(Observability and structured logging)."""
from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Request ID (or webhook delivery ID) carried through logs and spawned tasks
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="system")


def get_request_id() -> str:
    """요청 ID 조회(Retrieve the current request ID)."""
    return request_id_ctx.get()


def bind_request_id(request_id: str) -> Token:
    """요청 ID 설정(Bind a request ID to the current context).

    Tasks created after this call inherit the binding, so background
    pipeline runs keep logging under the delivery that triggered them.
    """
    return request_id_ctx.set(request_id)


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """사용자 정의 JSON 포매터(JSON formatter with request ID injection)."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record.pop("asctime", None)

        log_record["request_id"] = get_request_id()
        log_record.setdefault("level", record.levelname)
        log_record.setdefault("name", record.name)
        if "message" not in log_record:
            log_record["message"] = record.getMessage()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """요청 ID 추적 미들웨어(Middleware for request ID tracking and correlation)."""

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        token = bind_request_id(request_id)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_ctx.reset(token)
