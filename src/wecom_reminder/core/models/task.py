"""ReminderTask Domain Model

任务定义是持久化存储中的一条记录；调度表中的触发器回调
持有的是注册时刻的不可变快照（frozen model），而不是实时引用。
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 0=周日 .. 6=周六
Weekday = Annotated[int, Field(ge=0, le=6)]


def _require_text(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("不能为空")
    return value


class ReminderTask(BaseModel):
    """提醒任务"""

    model_config = ConfigDict(frozen=True)

    task_id: str = Field(description="唯一标识，ULID 格式，创建后不可变")
    name: str = Field(description="任务名称（不要求唯一）")
    message: str = Field(description="触发时原样发送的文本")
    cron_expression: str = Field(description="5 位或 6 位 cron 表达式")
    mobile_numbers: list[str] = Field(default_factory=list, description="需要 @ 的手机号")
    active_days: list[Weekday] = Field(
        default_factory=list,
        description="生效星期（0=周日），为空或全选表示每天",
    )
    enabled: bool = Field(default=True, description="是否启用")
    created_at: datetime = Field(description="创建时间")

    @field_validator("name", "message", "cron_expression")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _require_text(value)


class TaskDraft(BaseModel):
    """创建任务的输入"""

    name: str
    message: str
    cron_expression: str
    mobile_numbers: list[str] = Field(default_factory=list)
    active_days: list[Weekday] = Field(default_factory=list)
    enabled: bool = True

    @field_validator("name", "message", "cron_expression")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _require_text(value)


class TaskPatch(BaseModel):
    """更新任务的输入（部分字段）

    只有显式传入的字段会被合并，见 model_fields_set。
    """

    name: str | None = None
    message: str | None = None
    cron_expression: str | None = None
    mobile_numbers: list[str] | None = None
    active_days: list[Weekday] | None = None
    enabled: bool | None = None

    def changes(self) -> dict:
        """显式传入的字段"""
        return self.model_dump(exclude_unset=True)
