"""发送日志查询路由

GET /api/logs?keyword=&limit=&offset=&operation=
先按手机号匹配，匹配总数为 0 时回退到按任务名精确匹配。
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from wecom_reminder.core.config import DISPLAY_TIME_FORMAT
from wecom_reminder.core.exceptions import ValidationError
from wecom_reminder.core.models import DispatchLogEntry, LogOperation

from ..deps import get_log_service, get_registry
from ..responses import now_iso, success
from ..services.dispatch_log import DispatchLogService
from ..services.schedule_registry import ScheduleRegistry

router = APIRouter()


class LogView(BaseModel):
    """日志展示模型"""

    log_id: str
    task_name: str
    mobile_list: list[str]
    operation: LogOperation
    message: str
    details: dict
    ts: datetime
    ts_formatted: str


def build_log_view(entry: DispatchLogEntry, registry: ScheduleRegistry) -> LogView:
    return LogView(
        **entry.model_dump(),
        ts_formatted=entry.ts.astimezone(registry.timezone).strftime(DISPLAY_TIME_FORMAT),
    )


@router.get("/api/logs")
async def query_logs(
    keyword: str | None = Query(default=None, description="手机号或任务名称（必填）"),
    limit: int = Query(default=100, ge=1, le=1000, description="每页条数"),
    offset: int = Query(default=0, ge=0, description="跳过条数"),
    operation: LogOperation | None = Query(default=None, description="按操作类型过滤"),
    log_service: DispatchLogService = Depends(get_log_service),
    registry: ScheduleRegistry = Depends(get_registry),
):
    """按手机号或任务名称查询日志（新 -> 旧）"""
    if not keyword:
        raise ValidationError("请根据手机号或任务名称查询")

    page = await log_service.search(keyword, limit=limit, offset=offset, operation=operation)
    return success(
        {
            "logs": [build_log_view(e, registry) for e in page.logs],
            "total": page.total,
            "limit": limit,
            "offset": offset,
            "matched_by": page.matched_by,
            "timestamp": now_iso(),
        }
    )
