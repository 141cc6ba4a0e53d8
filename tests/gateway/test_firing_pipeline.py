"""FiringPipeline 测试

测试内容：
1. 星期门控拦截：不发送、不记日志
2. 发送成功 -> send_success（details 含 task_id + response）
3. 发送失败 -> send_failure（details 含 task_id + error），不抛异常
4. 周三/周六站会场景
5. 日志写入失败不影响触发流程
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from wecom_reminder.core.models import LogOperation
from wecom_reminder.notifier import DispatchOutcome

SHANGHAI = ZoneInfo("Asia/Shanghai")
MONDAY = datetime(2026, 10, 19, 9, 0, tzinfo=SHANGHAI)
WEDNESDAY = datetime(2026, 10, 21, 9, 0, tzinfo=SHANGHAI)
SATURDAY = datetime(2026, 10, 24, 9, 0, tzinfo=SHANGHAI)


class TestGate:
    async def test_suppressed_outside_active_days(
        self, pipeline, fake_dispatcher, store_group, make_task
    ):
        task = make_task(active_days=[3])

        assert await pipeline.fire(task, now=SATURDAY) is None
        assert fake_dispatcher.calls == []
        assert await store_group.log_store.count() == 0

    async def test_standup_wednesday_and_saturday(
        self, pipeline, fake_dispatcher, store_group, make_task
    ):
        task = make_task(
            name="站会",
            message="站会时间到",
            cron_expression="0 9 * * *",
            active_days=[3, 6],
        )

        for now in (MONDAY, WEDNESDAY, SATURDAY):
            await pipeline.fire(task, now=now)

        assert len(fake_dispatcher.calls) == 2
        logs, total = await store_group.log_store.query(
            task_name="站会",
            operation=LogOperation.SEND_SUCCESS,
        )
        assert total == 2


class TestRecord:
    async def test_success_recorded(self, pipeline, fake_dispatcher, store_group, make_task):
        task = make_task(mobile_numbers=["13800000001", "13900000002"])

        outcome = await pipeline.fire(task, now=MONDAY)

        assert outcome.success
        assert fake_dispatcher.calls == [(task.message, ["13800000001", "13900000002"])]
        logs, total = await store_group.log_store.query(phone="13900000002")
        assert total == 1
        entry = logs[0]
        assert entry.operation == LogOperation.SEND_SUCCESS
        assert entry.task_name == task.name
        assert entry.message == task.message
        assert entry.details == {
            "task_id": task.task_id,
            "response": {"errcode": 0, "errmsg": "ok"},
        }

    async def test_failure_recorded(self, pipeline, fake_dispatcher, store_group, make_task):
        fake_dispatcher.outcome = DispatchOutcome(
            success=False,
            response={"errcode": 93000, "errmsg": "invalid webhook url"},
            error="invalid webhook url",
        )
        task = make_task()

        outcome = await pipeline.fire(task, now=MONDAY)

        assert outcome.success is False
        logs, total = await store_group.log_store.query(task_name=task.name)
        assert total == 1
        assert logs[0].operation == LogOperation.SEND_FAILURE
        assert logs[0].details == {"task_id": task.task_id, "error": "invalid webhook url"}

    async def test_log_write_failure_does_not_raise(
        self, pipeline, fake_dispatcher, store_group, make_task
    ):
        await store_group.conn.close()

        outcome = await pipeline.fire(make_task(), now=MONDAY)

        assert outcome.success
        assert len(fake_dispatcher.calls) == 1

    async def test_default_now(self, pipeline, fake_dispatcher, make_task):
        """active_days 为空时任意时刻都放行"""
        await pipeline.fire(make_task(active_days=[]))
        assert len(fake_dispatcher.calls) == 1
