"""cron 适配与星期门控测试

测试内容：
1. crontab 周字段 -> APScheduler 星期名称（0/7=周日）
2. 5 位 / 6 位表达式补齐与校验
3. CronTrigger 的下一次触发时间
4. should_fire 星期门控（含周三/周六站会场景）
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest
from wecom_reminder.core.exceptions import ValidationError
from wecom_reminder.core.schedule import (
    build_cron_trigger,
    should_fire,
    split_cron_fields,
    translate_day_of_week,
    validate_cron,
    weekday_index,
)

SHANGHAI = ZoneInfo("Asia/Shanghai")

# 2026-10-19 周一，2026-10-21 周三，2026-10-24 周六
MONDAY = datetime(2026, 10, 19, 9, 0, tzinfo=SHANGHAI)
WEDNESDAY = datetime(2026, 10, 21, 9, 0, tzinfo=SHANGHAI)
SATURDAY = datetime(2026, 10, 24, 9, 0, tzinfo=SHANGHAI)


class TestTranslateDayOfWeek:
    @pytest.mark.parametrize(
        ("field", "expected"),
        [
            ("*", "*"),
            ("?", "*"),
            ("0", "sun"),
            ("7", "sun"),
            ("1-5", "mon,tue,wed,thu,fri"),
            ("6,0", "sun,sat"),
            ("5-7", "sun,fri,sat"),
            ("*/2", "sun,tue,thu,sat"),
            ("1/3", "mon,thu"),
            ("MON-WED", "mon,tue,wed"),
            ("sat,sun", "sun,sat"),
        ],
    )
    def test_translate(self, field, expected):
        assert translate_day_of_week(field) == expected

    @pytest.mark.parametrize("field", ["8", "5-1", "*/0", "abc"])
    def test_invalid(self, field):
        with pytest.raises(ValueError):
            translate_day_of_week(field)


class TestSplitAndValidate:
    def test_five_fields_get_second(self):
        assert split_cron_fields("0 9 * * 1-5") == ["0", "0", "9", "*", "*", "1-5"]

    def test_six_fields_unchanged(self):
        assert split_cron_fields("30 0 9 * * *") == ["30", "0", "9", "*", "*", "*"]

    @pytest.mark.parametrize("expression", ["", "* * * *", "0 0 0 0 0 0 0"])
    def test_wrong_field_count(self, expression):
        with pytest.raises(ValidationError):
            split_cron_fields(expression)

    @pytest.mark.parametrize(
        "expression",
        ["61 * * * *", "0 25 * * *", "0 9 32 * *", "0 9 * 13 *", "0 9 * * 8", "x y z w v"],
    )
    def test_invalid_values(self, expression):
        with pytest.raises(ValidationError):
            validate_cron(expression, SHANGHAI)

    @pytest.mark.parametrize(
        "expression",
        ["0 9 * * 1-5", "*/10 * * * *", "0 */30 * * * *", "0 9 ? * MON", "0 0 1 * *"],
    )
    def test_valid(self, expression):
        validate_cron(expression, SHANGHAI)


class TestCronTrigger:
    def test_weekdays_skip_weekend(self):
        """周六触发后的下一次是周一 9 点"""
        trigger = build_cron_trigger("0 9 * * 1-5", SHANGHAI)
        now = datetime(2026, 10, 24, 10, 0, tzinfo=SHANGHAI)
        next_fire = trigger.get_next_fire_time(None, now)
        assert next_fire == datetime(2026, 10, 26, 9, 0, tzinfo=SHANGHAI)

    def test_zero_means_sunday(self):
        trigger = build_cron_trigger("0 0 * * 0", SHANGHAI)
        next_fire = trigger.get_next_fire_time(None, MONDAY)
        assert next_fire == datetime(2026, 10, 25, 0, 0, tzinfo=SHANGHAI)

    def test_six_field_seconds(self):
        trigger = build_cron_trigger("15 30 8 * * *", SHANGHAI)
        next_fire = trigger.get_next_fire_time(None, MONDAY)
        assert next_fire == datetime(2026, 10, 20, 8, 30, 15, tzinfo=SHANGHAI)


class TestConditionGate:
    def test_weekday_index(self):
        assert weekday_index(MONDAY, SHANGHAI) == 1
        assert weekday_index(SATURDAY, SHANGHAI) == 6
        assert weekday_index(datetime(2026, 10, 25, 9, 0, tzinfo=SHANGHAI), SHANGHAI) == 0

    def test_weekday_uses_configured_zone(self):
        """UTC 周日 20:00 在上海已经是周一"""
        now = datetime(2026, 10, 18, 20, 0, tzinfo=UTC)
        assert weekday_index(now, SHANGHAI) == 1

    def test_naive_now_treated_as_local(self):
        assert weekday_index(datetime(2026, 10, 21, 9, 0), SHANGHAI) == 3

    def test_empty_active_days_always_fires(self, make_task):
        task = make_task(active_days=[])
        assert should_fire(task, MONDAY, SHANGHAI)
        assert should_fire(task, SATURDAY, SHANGHAI)

    def test_standup_wednesday_and_saturday(self, make_task):
        """每天 9 点触发、只在周三和周六发送"""
        task = make_task(cron_expression="0 9 * * *", active_days=[3, 6])
        assert should_fire(task, WEDNESDAY, SHANGHAI)
        assert should_fire(task, SATURDAY, SHANGHAI)
        assert not should_fire(task, MONDAY, SHANGHAI)
