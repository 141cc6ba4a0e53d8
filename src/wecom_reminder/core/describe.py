"""cron 表达式与生效星期的中文描述（仅用于列表展示）"""

from .schedule import split_cron_fields

_DAY_NAMES = ("周日", "周一", "周二", "周三", "周四", "周五", "周六")

_STEP_UNITS = {
    "second": "秒",
    "minute": "分钟",
    "hour": "小时",
    "day": "天",
    "month": "个月",
    "day_of_week": "周",
}


def _weekday_name(token: str) -> str:
    try:
        return _DAY_NAMES[int(token) % 7]
    except ValueError:
        return token


def _describe_field(field: str, kind: str) -> str:
    """描述单个字段；* / ? 返回空串"""
    if field in ("*", "?"):
        return ""

    if field.startswith("*/"):
        step = field[2:]
        return f"每{step}{_STEP_UNITS[kind]}" if step.isdigit() else ""

    if kind == "day_of_week":
        parts = []
        for item in field.split(","):
            if "-" in item:
                start, end = item.split("-", 1)
                parts.append(f"{_weekday_name(start)}到{_weekday_name(end)}")
            else:
                parts.append(_weekday_name(item))
        return "、".join(parts)

    if "," in field:
        return "、".join(item.strip() for item in field.split(","))
    if "-" in field:
        start, end = field.split("-", 1)
        return f"{start}到{end}"
    return field if field.isdigit() else ""


def describe_cron(expression: str) -> str:
    """把 cron 表达式转换为中文描述

    Examples:
        "0 9 * * 1-5"    -> "周一到周五的9点整执行"
        "30 8 1 * *"     -> "1日的8点30分执行"
        "*/10 * * * *"   -> "每10分钟执行"

    Raises:
        ValidationError: 字段数量不是 5 或 6
    """
    second, minute, hour, day, month, day_of_week = split_cron_fields(expression)

    second_desc = _describe_field(second, "second")
    minute_desc = _describe_field(minute, "minute")
    hour_desc = _describe_field(hour, "hour")
    day_desc = _describe_field(day, "day")
    month_desc = _describe_field(month, "month")
    weekday_desc = _describe_field(day_of_week, "day_of_week")

    # 日期部分
    date_parts: list[str] = []
    if month_desc:
        date_parts.append(month_desc if month_desc.startswith("每") else f"{month_desc}月")
    if day_desc:
        date_parts.append(day_desc if day_desc.startswith("每") else f"{day_desc}日")
    if weekday_desc:
        date_parts.append(weekday_desc)

    # 时间部分
    time_parts: list[str] = []
    if hour_desc:
        time_parts.append(hour_desc if hour_desc.startswith("每") else f"{hour_desc}点")
    if minute_desc:
        if minute_desc == "0":
            if hour_desc and not hour_desc.startswith("每"):
                time_parts.append("整")
        elif minute_desc.startswith("每"):
            time_parts.append(minute_desc)
        else:
            time_parts.append(f"{minute_desc}分")
    if second_desc and second_desc != "0":
        time_parts.append(second_desc if second_desc.startswith("每") else f"{second_desc}秒")

    time_desc = f"{''.join(time_parts)}执行" if time_parts else ""

    if not date_parts:
        return time_desc or "每天执行"
    return "、".join(date_parts) + (f"的{time_desc}" if time_desc else "执行")


def format_active_days(active_days: list[int] | None) -> str:
    """生效星期的可读文本，为空或全选时返回 "每天" """
    if not active_days or len(set(active_days)) == 7:
        return "每天"
    return ", ".join(_DAY_NAMES[day] for day in active_days)
