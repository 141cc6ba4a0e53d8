"""FastAPI 应用主文件

app 创建 + lifespan 管理：
启动时初始化 Store、webhook 发送器、调度器与业务服务，并把已持久化的任务重新注册；
关闭时停止调度器、关闭 HTTP 客户端和数据库连接。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from wecom_reminder.core.config import (
    LOG_RETENTION_MAX,
    MISFIRE_GRACE_TIME_S,
    get_db_path,
    get_timezone,
)
from wecom_reminder.core.store import create_store_group
from wecom_reminder.notifier import WebhookConfigError, WebhookDispatcher, load_webhook_config

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .responses import register_exception_handlers
from .routes import health, logs, tasks
from .services.dispatch_log import DispatchLogService
from .services.firing import FiringPipeline
from .services.schedule_registry import ScheduleRegistry
from .services.task_service import TaskService

log = structlog.get_logger()


def create_scheduler(timezone, misfire_grace_time: int = MISFIRE_GRACE_TIME_S) -> AsyncIOScheduler:
    """创建调度器：同一任务不并发执行，错过的多次触发合并为一次"""
    return AsyncIOScheduler(
        timezone=timezone,
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": misfire_grace_time,
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理"""
    webhook_config = load_webhook_config()
    if not webhook_config.has_key:
        log.error("webhook_key_missing", env_var="WECHAT_WEBHOOK_KEY")
        raise WebhookConfigError("缺少企业微信机器人 key，请设置 WECHAT_WEBHOOK_KEY 环境变量")

    timezone = get_timezone()
    db_path = get_db_path()
    store_group = await create_store_group(db_path, LOG_RETENTION_MAX)
    app.state.store_group = store_group
    app.state.db_path = db_path

    dispatcher = WebhookDispatcher.from_config(webhook_config)
    app.state.dispatcher = dispatcher

    scheduler = create_scheduler(timezone)
    log_service = DispatchLogService(store_group.log_store)
    pipeline = FiringPipeline(dispatcher, log_service, timezone)
    registry = ScheduleRegistry(scheduler, pipeline, timezone, MISFIRE_GRACE_TIME_S)
    task_service = TaskService(store_group.task_store, registry, log_service, timezone)

    app.state.log_service = log_service
    app.state.registry = registry
    app.state.task_service = task_service

    registered = await task_service.reconcile_on_startup()
    scheduler.start()
    log.info(
        "reminder_service_started",
        timezone=str(timezone),
        db_path=db_path,
        webhook_url=webhook_config.webhook_url,
        scheduled_tasks=registered,
    )

    yield

    registry.clear()
    scheduler.shutdown(wait=False)
    await dispatcher.aclose()
    await store_group.conn.close()
    log.info("reminder_service_stopped")


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="WeCom Reminder",
        version="0.1.0",
        description="企业微信群机器人定时提醒服务",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app)

    setup_logging()
    setup_logfire(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(logs.router, tags=["logs"])
    app.include_router(health.router, tags=["health"])

    return app
