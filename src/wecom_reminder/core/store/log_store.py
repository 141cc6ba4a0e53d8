"""DispatchLogStore SQLite 实现

日志表 append-only：只允许插入；每次插入后在同一事务内按保留上限淘汰最旧的记录。
查询按 seq 倒序（新 -> 旧），返回当前页与匹配总数。
"""

import asyncio
import json
from datetime import datetime

import aiosqlite

from ..config import LOG_RETENTION_MAX
from ..exceptions import PersistenceError
from ..models.dispatch_log import DispatchLogEntry
from ..models.enums import LogOperation
from .transaction import STORE_ERRORS, write_transaction


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqliteDispatchLogStore:
    """DispatchLogStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock,
        max_entries: int = LOG_RETENTION_MAX,
    ) -> None:
        self._conn = conn
        self._write_lock = write_lock
        self._max_entries = max_entries

    @property
    def max_entries(self) -> int:
        return self._max_entries

    async def append(self, entry: DispatchLogEntry) -> None:
        """追加日志并执行保留上限淘汰

        Raises:
            PersistenceError: 写入失败（事务已回滚）
        """
        async with write_transaction(self._conn, self._write_lock, "保存日志失败") as conn:
            await conn.execute(
                """
                INSERT INTO dispatch_logs (log_id, task_name, mobile_list, operation,
                                           message, details, ts)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.log_id,
                    entry.task_name,
                    json.dumps(entry.mobile_list, ensure_ascii=False),
                    entry.operation.value,
                    entry.message,
                    json.dumps(entry.details, ensure_ascii=False, default=str),
                    entry.ts.isoformat(),
                ),
            )
            # 保留最新的 max_entries 条
            await conn.execute(
                """
                DELETE FROM dispatch_logs
                WHERE seq <= (
                    SELECT seq FROM dispatch_logs
                    ORDER BY seq DESC
                    LIMIT 1 OFFSET ?
                )
                """,
                (self._max_entries,),
            )

    async def query(
        self,
        phone: str | None = None,
        task_name: str | None = None,
        operation: LogOperation | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[DispatchLogEntry], int]:
        """按手机号（子串匹配）/ 任务名（精确匹配）/ 操作类型查询

        Returns:
            (当前页日志, 匹配总数)，日志按写入顺序倒序
        """
        clauses: list[str] = []
        params: list = []
        if phone:
            clauses.append(
                "EXISTS (SELECT 1 FROM json_each(dispatch_logs.mobile_list) "
                "WHERE json_each.value LIKE ? ESCAPE '\\')"
            )
            params.append(f"%{_escape_like(phone)}%")
        if task_name is not None:
            clauses.append("task_name = ?")
            params.append(task_name)
        if operation is not None:
            clauses.append("operation = ?")
            params.append(LogOperation(operation).value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        # 与 append 共用写锁：不会看到插入后、淘汰前的中间状态
        async with self._write_lock:
            try:
                cursor = await self._conn.execute(
                    f"SELECT COUNT(*) FROM dispatch_logs {where}",
                    params,
                )
                row = await cursor.fetchone()
                total = row[0] if row else 0

                cursor = await self._conn.execute(
                    f"SELECT * FROM dispatch_logs {where} ORDER BY seq DESC LIMIT ? OFFSET ?",
                    [*params, limit, offset],
                )
                rows = await cursor.fetchall()
            except STORE_ERRORS as e:
                raise PersistenceError("加载日志失败", e) from e

        return [self._row_to_entry(r) for r in rows], total

    async def count(self) -> int:
        """日志总条数"""
        async with self._write_lock:
            try:
                cursor = await self._conn.execute("SELECT COUNT(*) FROM dispatch_logs")
                row = await cursor.fetchone()
            except STORE_ERRORS as e:
                raise PersistenceError("加载日志失败", e) from e
        return row[0] if row else 0

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> DispatchLogEntry:
        """将数据库行转换为 DispatchLogEntry 模型"""
        return DispatchLogEntry(
            log_id=row[1],
            task_name=row[2],
            mobile_list=json.loads(row[3]),
            operation=LogOperation(row[4]),
            message=row[5],
            details=json.loads(row[6]) if row[6] else {},
            ts=datetime.fromisoformat(row[7]),
        )
