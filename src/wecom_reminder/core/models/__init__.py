"""wecom_reminder Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .dispatch_log import DispatchLogEntry
from .enums import LogOperation
from .task import ReminderTask, TaskDraft, TaskPatch, Weekday

__all__ = [
    # 枚举
    "LogOperation",
    # Task
    "ReminderTask",
    "TaskDraft",
    "TaskPatch",
    "Weekday",
    # Log
    "DispatchLogEntry",
]
