"""ScheduleRegistry -- 任务 ID -> 调度句柄的映射

每个启用的任务在 APScheduler 中对应一个 job（job id = task_id），
同一 task_id 最多存在一个 job。触发回调持有注册时刻的任务快照，
任务变更后需要重新 register 才会生效。
"""

from datetime import datetime, tzinfo

import structlog
from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler

from wecom_reminder.core.config import MISFIRE_GRACE_TIME_S
from wecom_reminder.core.models import ReminderTask
from wecom_reminder.core.schedule import build_cron_trigger

from .firing import FiringPipeline

log = structlog.get_logger()


class ScheduleRegistry:
    """调度表"""

    def __init__(
        self,
        scheduler: BaseScheduler,
        pipeline: FiringPipeline,
        timezone: tzinfo,
        misfire_grace_time: int = MISFIRE_GRACE_TIME_S,
    ) -> None:
        self._scheduler = scheduler
        self._pipeline = pipeline
        self._timezone = timezone
        self._misfire_grace_time = misfire_grace_time

    @property
    def timezone(self) -> tzinfo:
        return self._timezone

    @property
    def scheduler(self) -> BaseScheduler:
        return self._scheduler

    def register(self, task: ReminderTask) -> None:
        """注册（或替换）任务的调度句柄

        先构造触发器再替换旧句柄：表达式非法时旧句柄保持不变。

        新句柄沿用 task_id 作为 job id。APScheduler 按 job id 统计运行中的实例，
        若替换时旧快照仍在发送，新句柄恰在此刻到期的那次触发会因
        max_instances=1 被跳过（日志 "maximum number of running instances reached"），
        之后的触发不受影响。

        Raises:
            ValidationError: cron 表达式非法
        """
        trigger = build_cron_trigger(task.cron_expression, self._timezone)
        replaced = self._remove_job(task.task_id)
        self._scheduler.add_job(
            self._pipeline.fire,
            trigger=trigger,
            args=[task],
            id=task.task_id,
            name=task.name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self._misfire_grace_time,
        )
        log.info(
            "task_scheduled",
            task_id=task.task_id,
            task_name=task.name,
            cron=task.cron_expression,
            replaced=replaced,
        )

    def unregister(self, task_id: str) -> bool:
        """停止并移除任务的调度句柄；不存在时为 no-op

        Returns:
            是否确实移除了句柄
        """
        removed = self._remove_job(task_id)
        if removed:
            log.info("task_unscheduled", task_id=task_id)
        return removed

    def is_live(self, task_id: str) -> bool:
        return self.get_job(task_id) is not None

    def live_task_ids(self) -> set[str]:
        return {job.id for job in self._scheduler.get_jobs()}

    def get_job(self, task_id: str) -> Job | None:
        return self._scheduler.get_job(task_id)

    def next_fire_time(self, task_id: str) -> datetime | None:
        """任务的下一次触发时间（未注册时返回 None）

        调度器启动前 job 还没有 next_run_time，此时直接由触发器推算。
        """
        job = self.get_job(task_id)
        if job is None:
            return None
        next_run = getattr(job, "next_run_time", None)
        if next_run is not None:
            return next_run
        return job.trigger.get_next_fire_time(None, datetime.now(self._timezone))

    def clear(self) -> None:
        """移除全部调度句柄"""
        for job in self._scheduler.get_jobs():
            self._remove_job(job.id)

    def _remove_job(self, task_id: str) -> bool:
        try:
            self._scheduler.remove_job(task_id)
        except JobLookupError:
            return False
        return True
