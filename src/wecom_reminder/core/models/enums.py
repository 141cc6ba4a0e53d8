"""枚举定义 -- 发送日志操作类型"""

from enum import StrEnum


class LogOperation(StrEnum):
    """发送日志操作类型

    send_* 对应每一次 webhook 发送尝试，其余对应任务生命周期变更。
    """

    SEND_SUCCESS = "send_success"
    SEND_FAILURE = "send_failure"
    TASK_ADDED = "task_added"
    TASK_ENABLED = "task_enabled"
    TASK_DISABLED = "task_disabled"
    DELETE_TASK = "delete_task"

