"""时间源抽象

所有时间戳（created_at、updated_at、事件时间、逾期计算的"当前时间"）
都从同一个 Clock 读取，测试可注入 ManualClock 获得确定性时间。
"""

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """时钟接口"""

    def now(self) -> datetime:
        """返回带时区的当前时间"""
        ...


class SystemClock:
    """系统时钟（UTC）"""

    def now(self) -> datetime:
        return datetime.now(UTC)


class ManualClock:
    """手动时钟 -- 仅在调用 set()/advance() 时变化"""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 1, 1, tzinfo=UTC)
        if self._now.tzinfo is None:
            raise ValueError("ManualClock requires a timezone-aware datetime")

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        if value.tzinfo is None:
            raise ValueError("ManualClock requires a timezone-aware datetime")
        self._now = value

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """向前推进时间，支持 advance(timedelta(...)) 或 advance(hours=1)"""
        step = delta if delta is not None else timedelta(**kwargs)
        if step < timedelta(0):
            raise ValueError("ManualClock cannot move backwards")
        self._now = self._now + step
        return self._now
