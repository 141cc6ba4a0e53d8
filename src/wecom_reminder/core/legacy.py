"""旧版 JSON 数据导入

旧版服务把任务和日志分别保存在 tasks.json / logs.json 中，字段为 camelCase：
任务 {id, name, message, cron, mobileNumbers, activeDays, enabled, createdAt}，
日志 {id, taskName, mobileList, operation, message, details, timestamp, ...}。
导入时保留旧的任务 id，使旧日志 details 中的 taskId 仍能对应到任务。
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog
from ulid import ULID

from .models import DispatchLogEntry, LogOperation, ReminderTask
from .store import StoreGroup

log = structlog.get_logger()

# 旧日志 details 的 camelCase 键
_DETAIL_KEYS = {"taskId": "task_id"}


def _parse_timestamp(value: Any) -> datetime:
    if not value:
        return datetime.now(UTC)
    ts = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


def convert_legacy_task(raw: dict[str, Any]) -> ReminderTask:
    """旧版任务 -> ReminderTask

    Raises:
        pydantic.ValidationError: 字段缺失或非法
    """
    return ReminderTask(
        task_id=str(raw.get("id") or ULID()),
        name=raw.get("name", ""),
        message=raw.get("message", ""),
        cron_expression=raw.get("cron") or raw.get("cronExpression", ""),
        mobile_numbers=[str(m) for m in raw.get("mobileNumbers") or []],
        active_days=raw.get("activeDays") or [],
        enabled=bool(raw.get("enabled", True)),
        created_at=_parse_timestamp(raw.get("createdAt")),
    )


def convert_legacy_log(raw: dict[str, Any]) -> DispatchLogEntry:
    """旧版日志 -> DispatchLogEntry

    Raises:
        ValueError: operation 不是已知的操作类型
    """
    details = raw.get("details") or {}
    return DispatchLogEntry(
        log_id=str(raw.get("id") or ULID()),
        task_name=raw.get("taskName", ""),
        mobile_list=[str(m) for m in raw.get("mobileList") or []],
        operation=LogOperation(raw.get("operation")),
        message=raw.get("message") or "",
        details={_DETAIL_KEYS.get(k, k): v for k, v in details.items()},
        ts=_parse_timestamp(raw.get("timestamp")),
    )


def _read_json_list(path: Path) -> list[dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} 顶层必须是数组")
    return data


async def import_legacy(
    store_group: StoreGroup,
    tasks_file: Path,
    logs_file: Path | None = None,
) -> tuple[int, int]:
    """导入旧版数据

    任务集合整体替换为 tasks_file 中的任务；日志按原顺序追加（同样受保留上限约束）。
    无法转换的记录跳过并记录 warning。

    Returns:
        (导入任务数, 导入日志数)
    """
    tasks: list[ReminderTask] = []
    for raw in _read_json_list(tasks_file):
        try:
            tasks.append(convert_legacy_task(raw))
        except ValueError as e:
            log.warning("legacy_task_skipped", legacy_id=raw.get("id"), error=str(e))
    await store_group.task_store.save_tasks(tasks)
    log.info("legacy_tasks_imported", count=len(tasks), source=str(tasks_file))

    log_count = 0
    if logs_file is not None:
        for raw in _read_json_list(logs_file):
            try:
                entry = convert_legacy_log(raw)
            except ValueError as e:
                log.warning("legacy_log_skipped", legacy_id=raw.get("id"), error=str(e))
                continue
            await store_group.log_store.append(entry)
            log_count += 1
        log.info("legacy_logs_imported", count=log_count, source=str(logs_file))

    return len(tasks), log_count
