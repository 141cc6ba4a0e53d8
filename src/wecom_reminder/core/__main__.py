"""CLI 入口模块 -- python -m wecom_reminder.core <command>

支持的命令：
  import-legacy <tasks.json> [logs.json]  导入旧版 JSON 数据
"""

import asyncio
import sys
from pathlib import Path

from .config import LOG_RETENTION_MAX, get_db_path

_USAGE = "  import-legacy <tasks.json> [logs.json]  导入旧版 JSON 数据"


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m wecom_reminder.core <command>")
        print("命令:")
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "import-legacy":
        if len(sys.argv) < 3:
            print("用法: python -m wecom_reminder.core import-legacy <tasks.json> [logs.json]")
            sys.exit(1)
        tasks_file = Path(sys.argv[2])
        logs_file = Path(sys.argv[3]) if len(sys.argv) > 3 else None
        asyncio.run(run_import_legacy(tasks_file, logs_file))
    else:
        print(f"未知命令: {command}")
        print("可用命令: import-legacy")
        sys.exit(1)


async def run_import_legacy(tasks_file: Path, logs_file: Path | None) -> None:
    """执行旧版数据导入"""
    from .legacy import import_legacy
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    print(f"任务文件: {tasks_file}")
    if logs_file is not None:
        print(f"日志文件: {logs_file}")

    store_group = await create_store_group(db_path, LOG_RETENTION_MAX)

    try:
        task_count, log_count = await import_legacy(store_group, tasks_file, logs_file)
        print(f"导入完成：任务 {task_count} 条，日志 {log_count} 条")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
