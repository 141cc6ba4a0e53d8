"""TraceMiddleware -- 为 /api/tasks/{task_id} 请求绑定 task_id

绑定后该请求内的任务服务、调度表日志都带上同一个 task_id。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_TASKS_PREFIX = "/api/tasks/"


def extract_task_id(path: str) -> str | None:
    """从 /api/tasks/{task_id} 路径提取 task_id，其他路径返回 None"""
    if not path.startswith(_TASKS_PREFIX):
        return None
    task_id = path[len(_TASKS_PREFIX):].split("/", 1)[0]
    return task_id or None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(task_id=task_id)

        return await call_next(request)
