"""任务管理路由

GET    /api/tasks?phone=      按手机号查询任务列表
GET    /api/tasks/{task_id}   任务详情
POST   /api/tasks             创建任务
PUT    /api/tasks/{task_id}   部分更新任务
DELETE /api/tasks/{task_id}   删除任务

请求体字段同时接受 snake_case 与 camelCase（cronExpression / cron、mobileNumbers、activeDays）。
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field

from wecom_reminder.core.config import DISPLAY_TIME_FORMAT
from wecom_reminder.core.describe import describe_cron, format_active_days
from wecom_reminder.core.exceptions import ValidationError
from wecom_reminder.core.models import ReminderTask, TaskDraft, TaskPatch, Weekday

from ..deps import get_registry, get_task_service
from ..responses import now_iso, success
from ..services.schedule_registry import ScheduleRegistry
from ..services.task_service import TaskService

router = APIRouter()

_CRON_ALIASES = AliasChoices("cron_expression", "cronExpression", "cron")
_MOBILE_ALIASES = AliasChoices("mobile_numbers", "mobileNumbers")
_DAYS_ALIASES = AliasChoices("active_days", "activeDays")


class CreateTaskRequest(TaskDraft):
    """创建任务请求体"""

    cron_expression: str = Field(validation_alias=_CRON_ALIASES)
    mobile_numbers: list[str] = Field(default_factory=list, validation_alias=_MOBILE_ALIASES)
    active_days: list[Weekday] = Field(default_factory=list, validation_alias=_DAYS_ALIASES)


class UpdateTaskRequest(TaskPatch):
    """更新任务请求体（只合并显式传入的字段）"""

    cron_expression: str | None = Field(default=None, validation_alias=_CRON_ALIASES)
    mobile_numbers: list[str] | None = Field(default=None, validation_alias=_MOBILE_ALIASES)
    active_days: list[Weekday] | None = Field(default=None, validation_alias=_DAYS_ALIASES)


class TaskView(BaseModel):
    """任务展示模型（持久化字段 + 展示用派生字段）"""

    task_id: str
    name: str
    message: str
    cron_expression: str
    mobile_numbers: list[str]
    active_days: list[int]
    enabled: bool
    created_at: datetime
    is_active: bool
    next_fire_time: datetime | None
    cron_description: str
    mobile_numbers_count: int
    active_days_text: str
    created_at_formatted: str


def _describe(expression: str) -> str:
    try:
        return describe_cron(expression)
    except ValidationError:
        return "无法解析的表达式"


def build_task_view(task: ReminderTask, registry: ScheduleRegistry) -> TaskView:
    created_local = task.created_at.astimezone(registry.timezone)
    return TaskView(
        **task.model_dump(),
        is_active=registry.is_live(task.task_id),
        next_fire_time=registry.next_fire_time(task.task_id),
        cron_description=_describe(task.cron_expression),
        mobile_numbers_count=len(task.mobile_numbers),
        active_days_text=format_active_days(task.active_days),
        created_at_formatted=created_local.strftime(DISPLAY_TIME_FORMAT),
    )


@router.get("/api/tasks")
async def list_tasks(
    phone: str | None = Query(default=None, description="需要 @ 的手机号（必填）"),
    service: TaskService = Depends(get_task_service),
    registry: ScheduleRegistry = Depends(get_registry),
):
    """按手机号查询任务列表（按创建顺序）"""
    if not phone:
        raise ValidationError("必须提供手机号参数")

    tasks = await service.list_tasks(phone)
    return success(
        {
            "tasks": [build_task_view(t, registry) for t in tasks],
            "total_tasks": len(tasks),
            "phone": phone,
            "timestamp": now_iso(),
        }
    )


@router.get("/api/tasks/{task_id}")
async def get_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
    registry: ScheduleRegistry = Depends(get_registry),
):
    """任务详情"""
    task = await service.get_task(task_id)
    return success(build_task_view(task, registry))


@router.post("/api/tasks")
async def create_task(
    body: CreateTaskRequest,
    service: TaskService = Depends(get_task_service),
    registry: ScheduleRegistry = Depends(get_registry),
):
    """创建任务；启用时立即开始调度"""
    task = await service.create_task(body)
    return success(build_task_view(task, registry))


@router.put("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    service: TaskService = Depends(get_task_service),
    registry: ScheduleRegistry = Depends(get_registry),
):
    """部分更新任务；变更从下一次触发开始生效"""
    task = await service.update_task(task_id, body)
    return success(build_task_view(task, registry))


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """删除任务并停止调度"""
    await service.delete_task(task_id)
    return success(None)
