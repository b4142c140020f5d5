# window.py
"""
时间窗口解析器
- 天视图：当天 00:00:00.000 ~ 23:59:59.999
- 周视图：ISO 周，周一 00:00:00.000 ~ 周日 23:59:59.999
"""
import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from models import Direction, Granularity, Window

logger = logging.getLogger(__name__)

DAY_END = time(23, 59, 59, 999000)

NAVIGATION_STEP_DAYS = {
    Granularity.DAY: 1,
    Granularity.WEEK: 7,
}


def _as_date(reference: Union[date, datetime]) -> date:
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def _localize(day: date, clock: time, tz: Optional[tzinfo]) -> datetime:
    """把日期和时刻组合为带时区的时间点；tz 为空时使用本机时区"""
    if tz is None:
        return datetime.combine(day, clock).astimezone()
    return datetime.combine(day, clock, tzinfo=tz)


def week_monday(day: date) -> date:
    """返回 day 所在 ISO 周的周一 (周日属于前一个周一开始的那一周)"""
    day_of_week = day.isoweekday()  # 周一=1 ... 周日=7
    return day - timedelta(days=day_of_week - 1)


def resolve_window(
    reference_date: Union[date, datetime],
    granularity: Granularity,
    tz: Optional[tzinfo] = None,
) -> Window:
    granularity = Granularity(granularity)
    day = _as_date(reference_date)

    if granularity == Granularity.WEEK:
        first_day = week_monday(day)
        last_day = first_day + timedelta(days=6)
    else:
        first_day = last_day = day

    return Window(
        granularity=granularity,
        start=_localize(first_day, time.min, tz),
        end=_localize(last_day, DAY_END, tz),
    )


def adjacent_window(
    window: Window, direction: Direction, tz: Optional[tzinfo] = None
) -> Window:
    """前一个/后一个窗口。周视图总是重新对齐到周一。"""
    step = NAVIGATION_STEP_DAYS[window.granularity]
    if Direction(direction) == Direction.PREVIOUS:
        step = -step
    return resolve_window(
        window.reference_date + timedelta(days=step), window.granularity, tz
    )


def shift_window(window: Window, steps: int, tz: Optional[tzinfo] = None) -> Window:
    """连续导航 steps 次，负数向前，正数向后"""
    direction = Direction.NEXT if steps > 0 else Direction.PREVIOUS
    for _ in range(abs(steps)):
        window = adjacent_window(window, direction, tz)
    return window


def load_timezone(name: str) -> Optional[tzinfo]:
    """按名称加载时区，名称为空或无效时返回 None (即使用本机时区)"""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"⚠️ 未知时区 {name!r}，改用本机时区")
        return None


def current_date(tz: Optional[tzinfo] = None) -> date:
    """指定时区下的今天，tz 为空时按本机时区"""
    return datetime.now(tz).date()
