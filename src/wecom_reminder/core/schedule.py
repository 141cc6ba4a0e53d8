"""cron 表达式 -> APScheduler CronTrigger 适配 + 星期门控

支持 5 位（分 时 日 月 周）和 6 位（秒 分 时 日 月 周）表达式。
周字段按 crontab 约定解释（0/7=周日），转换为 APScheduler 的星期名称，
避免 APScheduler 3.x 把数字 0 当作周一。
"""

from datetime import datetime, tzinfo

from apscheduler.triggers.cron import CronTrigger

from .exceptions import ValidationError
from .models.task import ReminderTask

_WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _weekday_number(token: str) -> int:
    token = token.strip().lower()
    if token[:3] in _WEEKDAY_NAMES and token.isalpha():
        return _WEEKDAY_NAMES.index(token[:3])
    value = int(token)
    if not 0 <= value <= 7:
        raise ValueError(f"星期取值超出范围: {token}")
    return value


def translate_day_of_week(field: str) -> str:
    """把 crontab 周字段转换为 APScheduler 的星期名称列表

    Examples:
        "1-5" -> "mon,tue,wed,thu,fri"
        "6,0" -> "sun,sat"
        "5-7" -> "sun,fri,sat"
        "*"   -> "*"
    """
    if field in ("*", "?"):
        return "*"

    days: set[int] = set()
    for part in field.split(","):
        step = 1
        if "/" in part:
            part, step_text = part.split("/", 1)
            step = int(step_text)
            if step < 1:
                raise ValueError(f"步长必须为正数: {field}")

        if part in ("*", "?"):
            start, end = 0, 6
        elif "-" in part:
            first, last = part.split("-", 1)
            start, end = _weekday_number(first), _weekday_number(last)
            if end < start:
                raise ValueError(f"星期范围非法: {part}")
        else:
            start = _weekday_number(part)
            end = start if step == 1 else 6

        days.update(day % 7 for day in range(start, end + 1, step))

    return ",".join(_WEEKDAY_NAMES[day] for day in sorted(days))


def split_cron_fields(expression: str) -> list[str]:
    """拆分表达式并补齐秒字段，返回 [秒, 分, 时, 日, 月, 周]"""
    fields = expression.split() if expression else []
    if len(fields) == 5:
        fields.insert(0, "0")
    if len(fields) != 6:
        raise ValidationError(
            f"cron 表达式无效: {expression!r}，必须包含 5 个（分 时 日 月 周）"
            "或 6 个（秒 分 时 日 月 周）字段"
        )
    return fields


def build_cron_trigger(expression: str, timezone: tzinfo) -> CronTrigger:
    """根据 cron 表达式构造 CronTrigger

    Raises:
        ValidationError: 字段数量或字段取值非法
    """
    second, minute, hour, day, month, day_of_week = split_cron_fields(expression)
    try:
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day="*" if day == "?" else day,
            month=month,
            day_of_week=translate_day_of_week(day_of_week),
            timezone=timezone,
        )
    except (ValueError, TypeError) as e:
        raise ValidationError(f"cron 表达式无效: {expression!r} -- {e}") from e


def validate_cron(expression: str, timezone: tzinfo) -> None:
    """校验 cron 表达式，非法时抛出 ValidationError"""
    build_cron_trigger(expression, timezone)


def weekday_index(now: datetime, timezone: tzinfo) -> int:
    """返回 now 在指定时区下的星期序号（0=周日 .. 6=周六）"""
    local = now.astimezone(timezone) if now.tzinfo else now.replace(tzinfo=timezone)
    return (local.weekday() + 1) % 7


def should_fire(task: ReminderTask, now: datetime, timezone: tzinfo) -> bool:
    """星期门控：active_days 为空时总是放行，否则仅在今天属于 active_days 时放行"""
    if not task.active_days:
        return True
    return weekday_index(now, timezone) in task.active_days
