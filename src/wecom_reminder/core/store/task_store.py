"""TaskStore SQLite 实现

对外只提供整体读取（load_tasks）与整体替换（save_tasks）；
增删改由调用方在内存中完成后整体写回（read-modify-write）。
"""

import asyncio
import json
from datetime import datetime

import aiosqlite

from ..exceptions import PersistenceError
from ..models.task import ReminderTask
from .transaction import STORE_ERRORS, write_transaction


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection, write_lock: asyncio.Lock) -> None:
        self._conn = conn
        self._write_lock = write_lock

    async def load_tasks(self) -> list[ReminderTask]:
        """读取全部任务，保持写入顺序

        读取与写事务共用写锁，不会看到 save_tasks 删除后、插入前的中间状态。
        """
        async with self._write_lock:
            try:
                cursor = await self._conn.execute(
                    "SELECT * FROM reminder_tasks ORDER BY position ASC"
                )
                rows = await cursor.fetchall()
            except STORE_ERRORS as e:
                raise PersistenceError("加载任务失败", e) from e
        return [self._row_to_task(row) for row in rows]

    async def save_tasks(self, tasks: list[ReminderTask]) -> None:
        """在单个事务内用 tasks 整体替换任务集合

        Raises:
            PersistenceError: 写入失败（事务已回滚）
        """
        rows = [
            (
                task.task_id,
                position,
                task.name,
                task.message,
                task.cron_expression,
                json.dumps(task.mobile_numbers, ensure_ascii=False),
                json.dumps(task.active_days),
                int(task.enabled),
                task.created_at.isoformat(),
            )
            for position, task in enumerate(tasks)
        ]
        async with write_transaction(self._conn, self._write_lock, "保存任务失败") as conn:
            await conn.execute("DELETE FROM reminder_tasks")
            await conn.executemany(
                """
                INSERT INTO reminder_tasks (task_id, position, name, message,
                                            cron_expression, mobile_numbers,
                                            active_days, enabled, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> ReminderTask:
        """将数据库行转换为 ReminderTask 模型"""
        return ReminderTask(
            task_id=row[0],
            name=row[2],
            message=row[3],
            cron_expression=row[4],
            mobile_numbers=json.loads(row[5]),
            active_days=json.loads(row[6]),
            enabled=bool(row[7]),
            created_at=datetime.fromisoformat(row[8]),
        )
