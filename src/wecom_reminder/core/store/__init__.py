"""wecom_reminder Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from ..config import LOG_RETENTION_MAX
from .log_store import SqliteDispatchLogStore
from .protocols import DispatchLogStore, TaskStore
from .sqlite_init import init_db, verify_wal_mode
from .task_store import SqliteTaskStore
from .transaction import write_transaction


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接和写锁"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        log_retention_max: int = LOG_RETENTION_MAX,
    ) -> None:
        self.conn = conn
        self.write_lock = asyncio.Lock()
        self.task_store = SqliteTaskStore(conn, self.write_lock)
        self.log_store = SqliteDispatchLogStore(
            conn,
            self.write_lock,
            max_entries=log_retention_max,
        )


async def create_store_group(
    db_path: str,
    log_retention_max: int = LOG_RETENTION_MAX,
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径
        log_retention_max: 发送日志保留上限

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn, log_retention_max=log_retention_max)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteDispatchLogStore",
    "TaskStore",
    "DispatchLogStore",
    "init_db",
    "verify_wal_mode",
    "write_transaction",
]
