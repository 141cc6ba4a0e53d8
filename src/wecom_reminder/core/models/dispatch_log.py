"""DispatchLogEntry Domain Model

发送日志 append-only，写入后不再修改；只会因为保留上限被批量淘汰。
task_name / mobile_list 是写入时刻的冗余快照，任务删除后仍可按它们查询。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import LogOperation


class DispatchLogEntry(BaseModel):
    """发送/生命周期日志"""

    model_config = ConfigDict(frozen=True)

    log_id: str = Field(description="唯一标识，ULID 格式")
    task_name: str = Field(description="任务名称快照")
    mobile_list: list[str] = Field(default_factory=list, description="手机号快照")
    operation: LogOperation = Field(description="操作类型")
    message: str = Field(default="", description="发送的文本或任务消息")
    details: dict[str, Any] = Field(default_factory=dict, description="结构化详情")
    ts: datetime = Field(description="写入时间")
