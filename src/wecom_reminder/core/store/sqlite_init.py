"""SQLite 数据库初始化

PRAGMA 配置 + 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# reminder_tasks 表 DDL（position 保留任务集合的写入顺序）
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS reminder_tasks (
    task_id          TEXT PRIMARY KEY,
    position         INTEGER NOT NULL,
    name             TEXT NOT NULL,
    message          TEXT NOT NULL,
    cron_expression  TEXT NOT NULL,
    mobile_numbers   TEXT NOT NULL DEFAULT '[]',
    active_days      TEXT NOT NULL DEFAULT '[]',
    enabled          INTEGER NOT NULL DEFAULT 1,
    created_at       TEXT NOT NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_reminder_tasks_position ON reminder_tasks(position);",
]

# dispatch_logs 表 DDL（append-only，seq 决定新旧顺序）
_LOGS_DDL = """
CREATE TABLE IF NOT EXISTS dispatch_logs (
    seq          INTEGER PRIMARY KEY AUTOINCREMENT,
    log_id       TEXT NOT NULL UNIQUE,
    task_name    TEXT NOT NULL,
    mobile_list  TEXT NOT NULL DEFAULT '[]',
    operation    TEXT NOT NULL,
    message      TEXT NOT NULL DEFAULT '',
    details      TEXT NOT NULL DEFAULT '{}',
    ts           TEXT NOT NULL
);
"""

_LOGS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_dispatch_logs_task_name ON dispatch_logs(task_name);",
    "CREATE INDEX IF NOT EXISTS idx_dispatch_logs_operation ON dispatch_logs(operation);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_TASKS_DDL)
    await conn.execute(_LOGS_DDL)

    for idx_sql in _TASKS_INDEXES + _LOGS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
