"""TaskService -- 任务存储与调度表的同步

所有管理操作遵循同一顺序：持久化写入在前，调度表变更在后。
写入失败（PersistenceError）时不做任何调度表变更；
写入成功后生命周期日志写入失败只记运行日志，不影响操作结果。
"""

import asyncio
from datetime import UTC, datetime, tzinfo

import pydantic
import structlog
from ulid import ULID

from wecom_reminder.core.exceptions import NotFoundError, PersistenceError, ValidationError
from wecom_reminder.core.models import LogOperation, ReminderTask, TaskDraft, TaskPatch
from wecom_reminder.core.schedule import validate_cron
from wecom_reminder.core.store import TaskStore

from .dispatch_log import DispatchLogService
from .schedule_registry import ScheduleRegistry

log = structlog.get_logger()


def _format_validation_error(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(item) for item in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


class TaskService:
    """任务管理业务服务"""

    def __init__(
        self,
        task_store: TaskStore,
        registry: ScheduleRegistry,
        log_service: DispatchLogService,
        timezone: tzinfo,
    ) -> None:
        self._task_store = task_store
        self._registry = registry
        self._log_service = log_service
        self._timezone = timezone
        self._lock = asyncio.Lock()

    async def reconcile_on_startup(self) -> int:
        """启动时加载任务并注册所有启用的任务

        表达式已失效的任务记录错误日志后跳过，不中断启动。

        Returns:
            成功注册的任务数
        """
        async with self._lock:
            tasks = await self._task_store.load_tasks()
            registered = 0
            for task in tasks:
                if not task.enabled:
                    continue
                try:
                    self._registry.register(task)
                except ValidationError as e:
                    log.error(
                        "task_schedule_invalid",
                        task_id=task.task_id,
                        cron=task.cron_expression,
                        error=e.message,
                    )
                    continue
                registered += 1

        log.info("tasks_reconciled", total=len(tasks), registered=registered)
        return registered

    async def list_tasks(self, phone: str | None = None) -> list[ReminderTask]:
        """列出任务（按创建顺序），phone 非空时只返回 @ 了该手机号的任务"""
        tasks = await self._task_store.load_tasks()
        if phone:
            tasks = [task for task in tasks if phone in task.mobile_numbers]
        return tasks

    async def get_task(self, task_id: str) -> ReminderTask:
        """Raises: NotFoundError"""
        for task in await self._task_store.load_tasks():
            if task.task_id == task_id:
                return task
        raise NotFoundError(task_id)

    async def create_task(self, draft: TaskDraft) -> ReminderTask:
        """创建任务

        Raises:
            ValidationError: cron 表达式非法
            PersistenceError: 持久化失败（此时任务不会被调度）
        """
        validate_cron(draft.cron_expression, self._timezone)
        task = ReminderTask(
            task_id=str(ULID()),
            created_at=datetime.now(UTC),
            **draft.model_dump(),
        )

        async with self._lock:
            tasks = await self._task_store.load_tasks()
            await self._task_store.save_tasks([*tasks, task])
            if task.enabled:
                self._registry.register(task)

        log.info("task_created", task_id=task.task_id, task_name=task.name)
        await self._record_lifecycle(task, LogOperation.TASK_ADDED)
        return task

    async def update_task(self, task_id: str, patch: TaskPatch) -> ReminderTask:
        """部分更新任务

        task_id 与 created_at 保持不变；更新后无条件重新注册（若仍启用），
        新的表达式和生效星期从下一次触发开始生效。

        Raises:
            NotFoundError: 任务不存在
            ValidationError: 合并后的任务非法
            PersistenceError: 持久化失败（此时调度表保持原状）
        """
        async with self._lock:
            tasks = await self._task_store.load_tasks()
            index = next((i for i, t in enumerate(tasks) if t.task_id == task_id), None)
            if index is None:
                raise NotFoundError(task_id)

            current = tasks[index]
            changes = patch.changes()
            # task_id 与 created_at 不允许被覆盖
            changes.pop("task_id", None)
            changes.pop("created_at", None)
            try:
                updated = ReminderTask.model_validate({**current.model_dump(), **changes})
            except pydantic.ValidationError as e:
                raise ValidationError(_format_validation_error(e)) from e
            validate_cron(updated.cron_expression, self._timezone)

            tasks[index] = updated
            await self._task_store.save_tasks(tasks)

            self._registry.unregister(task_id)
            if updated.enabled:
                self._registry.register(updated)

        log.info(
            "task_updated",
            task_id=task_id,
            fields=sorted(changes),
            enabled=updated.enabled,
        )
        if updated.enabled != current.enabled:
            operation = LogOperation.TASK_ENABLED if updated.enabled else LogOperation.TASK_DISABLED
            await self._record_lifecycle(updated, operation)
        return updated

    async def delete_task(self, task_id: str) -> ReminderTask:
        """删除任务并停止调度

        Raises:
            NotFoundError: 任务不存在
            PersistenceError: 持久化失败（此时任务仍保持调度）
        """
        async with self._lock:
            tasks = await self._task_store.load_tasks()
            removed = next((t for t in tasks if t.task_id == task_id), None)
            if removed is None:
                raise NotFoundError(task_id)

            await self._task_store.save_tasks([t for t in tasks if t.task_id != task_id])
            self._registry.unregister(task_id)

        log.info("task_deleted", task_id=task_id, task_name=removed.name)
        await self._record_lifecycle(removed, LogOperation.DELETE_TASK)
        return removed

    async def _record_lifecycle(self, task: ReminderTask, operation: LogOperation) -> None:
        try:
            await self._log_service.record_task_event(task, operation)
        except PersistenceError as e:
            log.error(
                "lifecycle_log_write_failed",
                task_id=task.task_id,
                operation=operation.value,
                error=str(e),
            )
