"""公共测试配置 -- 时区、临时数据库、任务工厂、假发送器"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from wecom_reminder.core.models import ReminderTask
from wecom_reminder.core.store import StoreGroup, create_store_group
from wecom_reminder.notifier import DispatchOutcome

SHANGHAI = ZoneInfo("Asia/Shanghai")


class FakeDispatcher:
    """记录调用参数并返回预设结果的发送器"""

    def __init__(self, outcome: DispatchOutcome | None = None) -> None:
        self.outcome = outcome or DispatchOutcome(
            success=True,
            response={"errcode": 0, "errmsg": "ok"},
        )
        self.calls: list[tuple[str, list[str]]] = []

    async def dispatch(self, message: str, recipients: list[str]) -> DispatchOutcome:
        self.calls.append((message, list(recipients)))
        return self.outcome


@pytest.fixture
def tz() -> ZoneInfo:
    return SHANGHAI


@pytest.fixture
def make_task() -> Callable[..., ReminderTask]:
    """任务工厂：默认工作日 9 点提醒，字段可覆盖"""
    counter = {"n": 0}

    def _make(**overrides) -> ReminderTask:
        counter["n"] += 1
        fields = {
            "task_id": f"01JTASK{counter['n']:019d}",
            "name": f"提醒任务{counter['n']}",
            "message": "该开站会了",
            "cron_expression": "0 9 * * 1-5",
            "mobile_numbers": ["13800000001"],
            "active_days": [],
            "enabled": True,
            "created_at": datetime(2026, 10, 1, 1, 0, tzinfo=UTC),
        }
        fields.update(overrides)
        return ReminderTask(**fields)

    return _make


@pytest.fixture
def fake_dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """已初始化的 StoreGroup（临时 SQLite 文件）"""
    group = await create_store_group(str(tmp_path / "sqlite" / "test.db"))
    yield group
    try:
        await group.conn.close()
    except ValueError:
        # 部分测试会主动关闭连接
        pass
