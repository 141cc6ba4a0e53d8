"""DispatchLogService -- 发送结果记录 + 日志查询

record() 为每一次发送尝试和每一次任务生命周期变更追加一条日志。
search() 先按手机号匹配；匹配总数为 0 时回退到按任务名精确匹配。
"""

from datetime import UTC, datetime
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field
from ulid import ULID

from wecom_reminder.core.models import DispatchLogEntry, LogOperation, ReminderTask
from wecom_reminder.core.store import DispatchLogStore

log = structlog.get_logger()


class LogPage(BaseModel):
    """日志分页结果"""

    logs: list[DispatchLogEntry]
    total: int = Field(ge=0, description="匹配总数（分页前）")
    matched_by: Literal["phone", "task_name", "none"] = Field(
        description="命中方式：手机号 / 任务名 / 均未命中",
    )


class DispatchLogService:
    """发送日志业务服务"""

    def __init__(self, log_store: DispatchLogStore) -> None:
        self._log_store = log_store

    async def record(
        self,
        task_name: str,
        mobile_list: list[str],
        operation: LogOperation,
        message: str = "",
        details: dict[str, Any] | None = None,
    ) -> DispatchLogEntry:
        """追加一条日志

        Raises:
            PersistenceError: 写入失败
        """
        entry = DispatchLogEntry(
            log_id=str(ULID()),
            task_name=task_name,
            mobile_list=list(mobile_list),
            operation=operation,
            message=message,
            details=details or {},
            ts=datetime.now(UTC),
        )
        await self._log_store.append(entry)
        log.debug(
            "dispatch_log_recorded",
            log_id=entry.log_id,
            operation=operation.value,
            task_name=task_name,
        )
        return entry

    async def record_task_event(
        self,
        task: ReminderTask,
        operation: LogOperation,
    ) -> DispatchLogEntry:
        """记录任务生命周期日志（details 携带 task_id 与 cron）"""
        return await self.record(
            task.name,
            task.mobile_numbers,
            operation,
            task.message,
            {"task_id": task.task_id, "cron": task.cron_expression},
        )

    async def search(
        self,
        keyword: str,
        limit: int = 100,
        offset: int = 0,
        operation: LogOperation | None = None,
    ) -> LogPage:
        """按手机号或任务名查询日志（新 -> 旧）

        Args:
            keyword: 手机号（子串匹配）或任务名（精确匹配）
            limit: 每页条数
            offset: 跳过条数
            operation: 可选的操作类型过滤
        """
        logs, total = await self._log_store.query(
            phone=keyword,
            operation=operation,
            limit=limit,
            offset=offset,
        )
        if total:
            return LogPage(logs=logs, total=total, matched_by="phone")

        logs, total = await self._log_store.query(
            task_name=keyword,
            operation=operation,
            limit=limit,
            offset=offset,
        )
        if total:
            return LogPage(logs=logs, total=total, matched_by="task_name")
        return LogPage(logs=[], total=0, matched_by="none")
