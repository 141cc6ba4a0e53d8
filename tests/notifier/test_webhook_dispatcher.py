"""WebhookDispatcher 测试（httpx.MockTransport 模拟企业微信接口）

测试内容：
1. errcode == 0 -> 成功，请求体与 key 参数正确
2. errcode == 93000 -> 失败，error 为远端 errmsg
3. 非 2xx / 响应体非法 / 超时 / 连接失败 -> 失败结果，不抛异常
4. 整次请求总耗时超过 timeout_s -> 超时失败
"""

import asyncio
import json

import httpx
from wecom_reminder.notifier import DispatchOutcome, WebhookConfig, WebhookDispatcher

WEBHOOK_URL = "https://qyapi.weixin.qq.com/cgi-bin/webhook/send"


def _dispatcher(handler, **kwargs) -> WebhookDispatcher:
    return WebhookDispatcher(
        WEBHOOK_URL,
        webhook_key="test-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestDispatchSuccess:
    async def test_errcode_zero(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"errcode": 0, "errmsg": "ok"})

        dispatcher = _dispatcher(handler)
        outcome = await dispatcher.dispatch("该开站会了", ["13800000001", "13900000002"])
        await dispatcher.aclose()

        assert isinstance(outcome, DispatchOutcome)
        assert outcome.success is True
        assert outcome.response == {"errcode": 0, "errmsg": "ok"}
        assert outcome.error is None

        (request,) = captured
        assert request.method == "POST"
        assert request.url.params["key"] == "test-key"
        assert json.loads(request.content) == {
            "msgtype": "text",
            "text": {
                "content": "该开站会了",
                "mentioned_mobile_list": ["13800000001", "13900000002"],
            },
        }

    async def test_from_config(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"errcode": 0, "errmsg": "ok"})

        config = WebhookConfig(webhook_url="https://example.test/send", webhook_key="k-1")
        dispatcher = WebhookDispatcher.from_config(config, transport=httpx.MockTransport(handler))
        outcome = await dispatcher.dispatch("hi", [])
        await dispatcher.aclose()

        assert outcome.success
        assert captured[0].url.host == "example.test"
        assert captured[0].url.params["key"] == "k-1"


class TestDispatchFailure:
    async def test_errcode_invalid_key(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"errcode": 93000, "errmsg": "invalid webhook url"},
            )

        dispatcher = _dispatcher(handler)
        outcome = await dispatcher.dispatch("hi", ["13800000001"])
        await dispatcher.aclose()

        assert outcome.success is False
        assert outcome.error == "invalid webhook url"
        assert outcome.response == {"errcode": 93000, "errmsg": "invalid webhook url"}

    async def test_non_2xx(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        dispatcher = _dispatcher(handler)
        outcome = await dispatcher.dispatch("hi", [])
        await dispatcher.aclose()

        assert outcome.success is False
        assert outcome.error == "HTTP 502"

    async def test_malformed_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>ok</html>")

        dispatcher = _dispatcher(handler)
        outcome = await dispatcher.dispatch("hi", [])
        await dispatcher.aclose()

        assert outcome.success is False
        assert outcome.error == "响应体不是合法的 JSON 对象"

    async def test_missing_errcode(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": "ok"})

        dispatcher = _dispatcher(handler)
        outcome = await dispatcher.dispatch("hi", [])
        await dispatcher.aclose()

        assert outcome.success is False
        assert outcome.error == "errcode=None"

    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        dispatcher = _dispatcher(handler, timeout_s=5)
        outcome = await dispatcher.dispatch("hi", [])
        await dispatcher.aclose()

        assert outcome.success is False
        assert outcome.error.startswith("请求超时（5 秒）")

    async def test_total_timeout_covers_slow_response(self):
        """每个阶段都不超时、但整次请求超时，同样归一化为超时失败"""

        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, json={"errcode": 0, "errmsg": "ok"})

        dispatcher = _dispatcher(handler, timeout_s=0.05)
        outcome = await dispatcher.dispatch("hi", [])
        await dispatcher.aclose()

        assert outcome.success is False
        assert outcome.error.startswith("请求超时（0.05 秒）")
        assert outcome.duration_ms < 1000

    async def test_connect_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        dispatcher = _dispatcher(handler)
        outcome = await dispatcher.dispatch("hi", [])
        await dispatcher.aclose()

        assert outcome.success is False
        assert "connection refused" in outcome.error
