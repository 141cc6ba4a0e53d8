"""写事务封装

两个 Store 共享同一个 aiosqlite 连接；所有写事务在 StoreGroup.write_lock 下执行，
确保不同 Store 的 commit/rollback 不会相互穿插。
同一连接能看到未提交的数据，所以 Store 的读取也在这把锁内执行。
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import aiosqlite
import structlog

from ..exceptions import PersistenceError

log = structlog.get_logger()

# aiosqlite 在连接已关闭时抛出 ValueError
STORE_ERRORS = (aiosqlite.Error, ValueError)


@asynccontextmanager
async def write_transaction(
    conn: aiosqlite.Connection,
    write_lock: asyncio.Lock,
    error_message: str,
) -> AsyncGenerator[aiosqlite.Connection, None]:
    """在写锁内执行事务：正常结束时提交，出错时回滚并抛出 PersistenceError

    Args:
        conn: 数据库连接
        write_lock: 连接级写锁
        error_message: 失败时 PersistenceError 的描述

    Raises:
        PersistenceError: 事务内任一语句或提交失败
    """
    async with write_lock:
        try:
            yield conn
            await conn.commit()
        except STORE_ERRORS as e:
            try:
                await conn.rollback()
            except STORE_ERRORS as rollback_error:
                log.warning(
                    "store_rollback_failed",
                    error_type=type(rollback_error).__name__,
                )
            raise PersistenceError(error_message, e) from e
