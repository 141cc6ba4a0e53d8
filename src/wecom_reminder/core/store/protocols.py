"""Store Protocol 接口定义

定义 TaskStore、DispatchLogStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Protocol

from ..models.dispatch_log import DispatchLogEntry
from ..models.enums import LogOperation
from ..models.task import ReminderTask


class TaskStore(Protocol):
    """Task 存储接口 -- 只支持整体读取与整体替换"""

    async def load_tasks(self) -> list[ReminderTask]:
        """读取全部任务"""
        ...

    async def save_tasks(self, tasks: list[ReminderTask]) -> None:
        """整体替换任务集合"""
        ...


class DispatchLogStore(Protocol):
    """发送日志存储接口

    日志表 append-only：只允许插入，超出保留上限时淘汰最旧的记录。
    """

    async def append(self, entry: DispatchLogEntry) -> None:
        """追加日志"""
        ...

    async def query(
        self,
        phone: str | None = None,
        task_name: str | None = None,
        operation: LogOperation | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[DispatchLogEntry], int]:
        """分页查询，返回 (日志, 匹配总数)"""
        ...

    async def count(self) -> int:
        """日志总条数"""
        ...
