"""WebhookDispatcher -- 企业微信群机器人发送封装

dispatch() 从不向外抛出异常：网络错误、超时、非 2xx、响应体非法、
errcode 非 0 都被归一化为 success=False 的 DispatchOutcome。不做重试。
"""

import asyncio
import time

import httpx
import structlog

from .config import DEFAULT_TIMEOUT_S, WebhookConfig
from .exceptions import WebhookError
from .models import DispatchOutcome, TextContent, WebhookPayload

log = structlog.get_logger()


def _parse_body(response: httpx.Response) -> dict | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


class WebhookDispatcher:
    """群机器人消息发送器"""

    def __init__(
        self,
        webhook_url: str,
        webhook_key: str = "",
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化发送器

        Args:
            webhook_url: webhook 基础 URL
            webhook_key: 机器人 key（为空时不附加 key 参数）
            timeout_s: 单次请求超时（秒）
            transport: 自定义 httpx transport（测试时注入 MockTransport）
        """
        self._webhook_url = webhook_url
        self._timeout_s = timeout_s
        params = {"key": webhook_key} if webhook_key else None
        self._client = httpx.AsyncClient(
            params=params,
            timeout=timeout_s,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def from_config(
        cls,
        config: WebhookConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "WebhookDispatcher":
        return cls(
            webhook_url=config.webhook_url,
            webhook_key=config.webhook_key.get_secret_value(),
            timeout_s=config.timeout_s,
            transport=transport,
        )

    async def dispatch(self, message: str, recipients: list[str]) -> DispatchOutcome:
        """发送一条文本消息，并 @ recipients 中的手机号

        Args:
            message: 消息文本
            recipients: 需要 @ 的手机号列表

        Returns:
            DispatchOutcome，失败时 error 为可读原因
        """
        payload = WebhookPayload(
            text=TextContent(content=message, mentioned_mobile_list=list(recipients)),
        )
        start_time = time.monotonic()

        try:
            # httpx 的 timeout 按连接、读、写分别计时，这里限制整次请求的总耗时
            async with asyncio.timeout(self._timeout_s):
                body = await self._post(payload)
        except WebhookError as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.warning(
                "webhook_rejected",
                error=str(e),
                duration_ms=duration_ms,
            )
            return DispatchOutcome(
                success=False,
                response=e.response,
                error=str(e),
                duration_ms=duration_ms,
            )
        except (httpx.TimeoutException, TimeoutError) as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.warning("webhook_timeout", timeout_s=self._timeout_s, duration_ms=duration_ms)
            return DispatchOutcome(
                success=False,
                error=f"请求超时（{self._timeout_s:g} 秒）: {e or type(e).__name__}",
                duration_ms=duration_ms,
            )
        except Exception as e:
            # 连接失败、URL 非法等，同样归一化为失败结果
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.warning(
                "webhook_unreachable",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            return DispatchOutcome(
                success=False,
                error=str(e) or type(e).__name__,
                duration_ms=duration_ms,
            )

        duration_ms = int((time.monotonic() - start_time) * 1000)
        log.debug("webhook_accepted", duration_ms=duration_ms)
        return DispatchOutcome(success=True, response=body, duration_ms=duration_ms)

    async def _post(self, payload: WebhookPayload) -> dict:
        """发送请求并校验响应

        Raises:
            WebhookError: 非 2xx、响应体非法或 errcode != 0
            httpx.HTTPError: 传输层错误（连接失败、超时等）
        """
        response = await self._client.post(
            self._webhook_url,
            json=payload.model_dump(),
        )
        body = _parse_body(response)

        if not response.is_success:
            errmsg = body.get("errmsg") if body else None
            raise WebhookError(errmsg or f"HTTP {response.status_code}", response=body)

        if body is None:
            raise WebhookError("响应体不是合法的 JSON 对象")

        if body.get("errcode") != 0:
            raise WebhookError(
                body.get("errmsg") or f"errcode={body.get('errcode')}",
                response=body,
            )

        return body

    async def aclose(self) -> None:
        """关闭底层 HTTP 客户端"""
        await self._client.aclose()
