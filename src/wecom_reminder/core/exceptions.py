"""核心异常体系

ValidationError -> 400，NotFoundError -> 404，PersistenceError -> 500。
由 gateway 的异常处理器统一转换为失败响应体。
"""


class ReminderError(Exception):
    """核心包基础异常"""

    status_code: int = 500
    error: str = "内部错误"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReminderError):
    """输入非法：缺少必要字段、cron 表达式无效等，不产生任何状态变更"""

    status_code = 400
    error = "参数校验失败"


class NotFoundError(ReminderError):
    """任务不存在"""

    status_code = 404
    error = "任务不存在"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"任务不存在: {task_id}")
        self.task_id = task_id


class PersistenceError(ReminderError):
    """存储读写失败

    调用方在捕获此异常时必须跳过依赖的调度表变更。
    """

    status_code = 500
    error = "存储读写失败"

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.original_error = original_error
