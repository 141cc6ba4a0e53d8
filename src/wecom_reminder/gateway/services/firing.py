"""FiringPipeline -- 单次触发的处理流程

Triggered -> Gate -> Dispatching -> Recorded
                 \\-> Suppressed（不发送、不记日志）

发送失败只记录 send_failure 日志，不重试；任务保持调度，等待下一次自然触发。
"""

from datetime import datetime, tzinfo
from typing import Protocol

import structlog

from wecom_reminder.core.exceptions import PersistenceError
from wecom_reminder.core.models import LogOperation, ReminderTask
from wecom_reminder.core.schedule import should_fire
from wecom_reminder.notifier import DispatchOutcome

from .dispatch_log import DispatchLogService

log = structlog.get_logger()


class Dispatcher(Protocol):
    async def dispatch(self, message: str, recipients: list[str]) -> DispatchOutcome: ...


class FiringPipeline:
    """触发处理：星期门控 + 发送 + 结果记录"""

    def __init__(
        self,
        dispatcher: Dispatcher,
        log_service: DispatchLogService,
        timezone: tzinfo,
    ) -> None:
        self._dispatcher = dispatcher
        self._log_service = log_service
        self._timezone = timezone

    @property
    def timezone(self) -> tzinfo:
        return self._timezone

    async def fire(
        self,
        task: ReminderTask,
        now: datetime | None = None,
    ) -> DispatchOutcome | None:
        """处理一次触发

        Args:
            task: 注册时刻的任务快照
            now: 触发时刻，默认取当前时间

        Returns:
            发送结果；被星期门控拦截时返回 None
        """
        now = now or datetime.now(self._timezone)

        if not should_fire(task, now, self._timezone):
            log.info(
                "reminder_suppressed",
                task_id=task.task_id,
                task_name=task.name,
                active_days=task.active_days,
            )
            return None

        log.info(
            "reminder_dispatching",
            task_id=task.task_id,
            task_name=task.name,
            recipient_count=len(task.mobile_numbers),
        )
        outcome = await self._dispatcher.dispatch(task.message, task.mobile_numbers)

        if outcome.success:
            operation = LogOperation.SEND_SUCCESS
            details = {"task_id": task.task_id, "response": outcome.response}
            log.info(
                "reminder_sent",
                task_id=task.task_id,
                duration_ms=outcome.duration_ms,
            )
        else:
            operation = LogOperation.SEND_FAILURE
            details = {"task_id": task.task_id, "error": outcome.error}
            log.warning(
                "reminder_failed",
                task_id=task.task_id,
                error=outcome.error,
                duration_ms=outcome.duration_ms,
            )

        try:
            await self._log_service.record(
                task.name,
                task.mobile_numbers,
                operation,
                task.message,
                details,
            )
        except PersistenceError as e:
            # 后台触发没有调用方可以上报，只能落到运行日志
            log.error(
                "dispatch_log_write_failed",
                task_id=task.task_id,
                operation=operation.value,
                error=str(e),
            )

        return outcome
