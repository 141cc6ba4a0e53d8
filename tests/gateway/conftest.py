"""gateway 测试配置 -- 调度器、业务服务、FastAPI app + httpx AsyncClient"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from httpx import ASGITransport, AsyncClient
from wecom_reminder.gateway.main import create_scheduler
from wecom_reminder.gateway.services.dispatch_log import DispatchLogService
from wecom_reminder.gateway.services.firing import FiringPipeline
from wecom_reminder.gateway.services.schedule_registry import ScheduleRegistry
from wecom_reminder.gateway.services.task_service import TaskService


@pytest_asyncio.fixture
async def scheduler(tz) -> AsyncGenerator[AsyncIOScheduler, None]:
    """暂停状态的调度器：可以注册任务、计算下次触发时间，但不会真正触发"""
    sched = create_scheduler(tz)
    sched.start(paused=True)
    yield sched
    sched.shutdown(wait=False)


@pytest.fixture
def log_service(store_group) -> DispatchLogService:
    return DispatchLogService(store_group.log_store)


@pytest.fixture
def pipeline(fake_dispatcher, log_service, tz) -> FiringPipeline:
    return FiringPipeline(fake_dispatcher, log_service, tz)


@pytest.fixture
def registry(scheduler, pipeline, tz) -> ScheduleRegistry:
    return ScheduleRegistry(scheduler, pipeline, tz)


@pytest.fixture
def service(store_group, registry, log_service, tz) -> TaskService:
    return TaskService(store_group.task_store, registry, log_service, tz)


@pytest_asyncio.fixture
async def app(store_group, registry, service, log_service, tmp_path):
    """测试用 app：手动写入 app.state（绕过 lifespan）"""
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from wecom_reminder.gateway.main import create_app

    application = create_app()
    application.state.store_group = store_group
    application.state.db_path = str(tmp_path / "sqlite" / "test.db")
    application.state.log_service = log_service
    application.state.registry = registry
    application.state.task_service = service

    yield application

    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
