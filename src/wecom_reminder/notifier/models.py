"""数据模型 -- Webhook 请求体 + 发送结果"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class TextContent(BaseModel):
    """文本消息内容"""

    content: str = Field(description="消息文本")
    mentioned_mobile_list: list[str] = Field(
        default_factory=list,
        description="需要 @ 的成员手机号",
    )


class WebhookPayload(BaseModel):
    """企业微信群机器人文本消息请求体"""

    msgtype: Literal["text"] = "text"
    text: TextContent


class DispatchOutcome(BaseModel):
    """单次发送结果

    success=True 当且仅当在超时内收到 2xx 响应且响应体 errcode == 0。
    """

    success: bool = Field(description="是否发送成功")
    response: dict[str, Any] | None = Field(default=None, description="远端响应体")
    error: str | None = Field(default=None, description="失败原因（远端 errmsg 或本地异常）")
    duration_ms: int = Field(default=0, ge=0, description="耗时（毫秒）")
