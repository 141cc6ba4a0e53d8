"""依赖注入模块 -- 通过 FastAPI Depends 从 app.state 获取服务实例

实例在 lifespan 中初始化/清理；测试中可直接写入 app.state 绕过 lifespan。
"""

from fastapi import Request

from .services.dispatch_log import DispatchLogService
from .services.schedule_registry import ScheduleRegistry
from .services.task_service import TaskService


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_log_service(request: Request) -> DispatchLogService:
    return request.app.state.log_service


def get_registry(request: Request) -> ScheduleRegistry:
    return request.app.state.registry
