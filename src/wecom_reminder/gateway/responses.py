"""统一响应体 + 异常处理器

成功：{"code": 200, "message": "success", "data": ...}
失败：{"error": ..., "message": ..., "timestamp": ...}，状态码 400 / 404 / 500
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from wecom_reminder.core.exceptions import ReminderError

log = structlog.get_logger()


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def success(data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"code": status_code, "message": "success", "data": jsonable_encoder(data)},
    )


def failure(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "message": message, "timestamp": now_iso()},
    )


def _describe_request_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # 去掉 body / query 前缀，只保留字段名
        loc = [str(item) for item in err.get("loc", ()) if item not in ("body", "query", "path")]
        field = ".".join(loc)
        parts.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return "; ".join(parts) or "请求参数非法"


async def reminder_error_handler(request: Request, exc: ReminderError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(
            "request_failed",
            error_type=type(exc).__name__,
            error=exc.message,
        )
    else:
        log.info(
            "request_rejected",
            error_type=type(exc).__name__,
            error=exc.message,
        )
    return failure(exc.status_code, exc.error, exc.message)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    message = _describe_request_errors(exc)
    log.info("request_rejected", error_type="RequestValidationError", error=message)
    return failure(400, "参数校验失败", message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", error_type=type(exc).__name__)
    return failure(500, "服务器内部错误", str(exc) or type(exc).__name__)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReminderError, reminder_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
