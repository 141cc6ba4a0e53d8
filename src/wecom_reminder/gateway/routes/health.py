"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、调度器状态、已调度任务数、磁盘空间。
"""

import shutil
from pathlib import Path

import structlog
from apscheduler.schedulers.base import STATE_RUNNING
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from wecom_reminder.core.store import verify_wal_mode

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查

    检查项：
    1. sqlite: 数据库连通性；sqlite_wal: WAL 模式是否生效（仅报告，不影响状态）
    2. scheduler: 调度器是否处于运行状态
    3. scheduled_tasks: 当前持有调度句柄的任务数
    4. disk_space_mb: 数据库所在磁盘的剩余空间
    """
    checks: dict[str, str | int | bool] = {}
    all_ok = True

    # 1. SQLite 连通性（顺带报告 WAL 是否生效）
    try:
        store_group = request.app.state.store_group
        checks["sqlite_wal"] = await verify_wal_mode(store_group.conn)
        checks["sqlite"] = "ok"
    except Exception as e:
        log.warning("ready_check_failed", check="sqlite", error=str(e))
        checks["sqlite"] = f"error: {e}"
        all_ok = False

    # 2. 调度器状态
    registry = getattr(request.app.state, "registry", None)
    if registry is not None and registry.scheduler.state == STATE_RUNNING:
        checks["scheduler"] = "ok"
    else:
        checks["scheduler"] = "error: scheduler not running"
        all_ok = False

    # 3. 已调度任务数
    checks["scheduled_tasks"] = len(registry.live_task_ids()) if registry is not None else 0

    # 4. 磁盘空间
    try:
        db_dir = Path(getattr(request.app.state, "db_path", ".")).resolve().parent
        disk_usage = shutil.disk_usage(db_dir if db_dir.exists() else "/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError:
        checks["disk_space_mb"] = 0
        all_ok = False

    status_code = 200 if all_ok else 503
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )
