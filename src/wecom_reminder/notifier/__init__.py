"""wecom_reminder Notifier -- 企业微信群机器人发送层

notifier 包的公开接口导出。
"""

from .client import WebhookDispatcher
from .config import WebhookConfig, load_webhook_config
from .exceptions import NotifierError, WebhookConfigError, WebhookError
from .models import DispatchOutcome, TextContent, WebhookPayload

__all__ = [
    "DispatchOutcome",
    "TextContent",
    "WebhookPayload",
    "WebhookDispatcher",
    "WebhookConfig",
    "load_webhook_config",
    "NotifierError",
    "WebhookConfigError",
    "WebhookError",
]
