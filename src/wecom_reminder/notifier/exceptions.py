"""Notifier 异常体系

WebhookError 只在 WebhookDispatcher 内部使用，dispatch() 会把它归一化为失败结果。
"""


class NotifierError(Exception):
    """Notifier 包基础异常"""


class WebhookConfigError(NotifierError):
    """Webhook 配置缺失或非法（启动时抛出）"""


class WebhookError(NotifierError):
    """webhook 返回了失败结果（非 2xx、响应体非法或 errcode != 0）"""

    def __init__(self, message: str, response: dict | None = None) -> None:
        """
        Args:
            message: 可读的失败原因（优先使用远端 errmsg）
            response: 已解析的响应体（如果有）
        """
        super().__init__(message)
        self.response = response
