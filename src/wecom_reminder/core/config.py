"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、调度时区、日志保留上限等可配置常量。
"""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

log = structlog.get_logger()

# 默认调度时区（与企业微信使用场景一致）
DEFAULT_TIMEZONE = "Asia/Shanghai"


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("REMINDER_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "REMINDER_DB_PATH",
        str(_get_base_dir() / "sqlite" / "reminder.db"),
    )


def get_timezone() -> ZoneInfo:
    """获取调度时区（TZ 环境变量），无法识别时回退到 Asia/Shanghai"""
    name = os.environ.get("TZ") or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning(
            "invalid_timezone_config",
            env_var="TZ",
            value=name,
            fallback=DEFAULT_TIMEZONE,
        )
        return ZoneInfo(DEFAULT_TIMEZONE)


def _int_from_env(name: str, default: int) -> int:
    val = os.environ.get(name)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        log.warning("invalid_int_config", env_var=name, value=val, fallback=default)
        return default


# 发送日志最大保留条数（超出时淘汰最旧的记录）
LOG_RETENTION_MAX: int = _int_from_env("REMINDER_LOG_RETENTION_MAX", 10000)

# 错过触发时刻后仍允许补发的宽限时间（秒）
MISFIRE_GRACE_TIME_S: int = _int_from_env("REMINDER_MISFIRE_GRACE_S", 60)

# 列表展示用的时间格式
DISPLAY_TIME_FORMAT = "%Y/%m/%d %H:%M:%S"
