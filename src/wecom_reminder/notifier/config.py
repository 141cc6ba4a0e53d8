"""WebhookConfig -- 企业微信群机器人配置加载

从环境变量加载配置，机器人 key 以 SecretStr 保存，避免出现在日志中。
"""

import os

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

DEFAULT_WEBHOOK_URL = "https://qyapi.weixin.qq.com/cgi-bin/webhook/send"
DEFAULT_TIMEOUT_S = 5.0


class WebhookConfig(BaseModel):
    """Webhook 配置 -- 从环境变量加载

    环境变量:
        WECHAT_WEBHOOK_URL: 机器人 webhook 地址（默认企业微信官方地址）
        WECHAT_WEBHOOK_KEY: 机器人 key（必填）
        REMINDER_WEBHOOK_TIMEOUT_S: 单次发送超时（秒，默认 5）
    """

    webhook_url: str = Field(
        default=DEFAULT_WEBHOOK_URL,
        description="群机器人 webhook 基础 URL",
    )
    webhook_key: SecretStr = Field(
        default=SecretStr(""),
        description="群机器人 key，以 ?key= 查询参数附加",
    )
    timeout_s: float = Field(
        default=DEFAULT_TIMEOUT_S,
        gt=0,
        description="单次发送超时（秒）",
    )

    @property
    def has_key(self) -> bool:
        return bool(self.webhook_key.get_secret_value())


def load_webhook_config() -> WebhookConfig:
    """从环境变量加载 Webhook 配置

    Returns:
        WebhookConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("WECHAT_WEBHOOK_URL"):
        kwargs["webhook_url"] = val

    if val := os.environ.get("WECHAT_WEBHOOK_KEY"):
        kwargs["webhook_key"] = SecretStr(val)

    if val := os.environ.get("REMINDER_WEBHOOK_TIMEOUT_S"):
        try:
            timeout_s = float(val)
            if timeout_s <= 0:
                raise ValueError(val)
            kwargs["timeout_s"] = timeout_s
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="REMINDER_WEBHOOK_TIMEOUT_S",
                value=val,
                fallback=DEFAULT_TIMEOUT_S,
            )
            # 使用默认值，不阻塞启动

    return WebhookConfig(**kwargs)
