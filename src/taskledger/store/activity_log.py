"""ActivityLog 内存实现

事件表 append-only：只允许插入，不允许更新或删除。
"""

import threading

from ..clock import Clock, SystemClock
from ..models.enums import ActivityType
from ..models.event import ActivityEvent
from ..models.factory import build_event
from ..models.user import User


class InMemoryActivityLog:
    """ActivityLog 的内存实现"""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._lock = threading.RLock()
        self._events: list[ActivityEvent] = []

    def record(
        self,
        task_id: str,
        activity_type: ActivityType,
        actor: User,
        details: str = "",
    ) -> ActivityEvent:
        """以当前时钟读数构造事件并追加"""
        event = build_event(task_id, activity_type, actor, self._clock.now(), details)
        self.append(event)
        return event

    def append(self, event: ActivityEvent) -> None:
        """追加事件（append-only）"""
        with self._lock:
            self._events.append(event)

    def by_task(self, task_id: str) -> list[ActivityEvent]:
        """查询指定任务的所有事件，按 ts 正序（同一时间戳保持写入顺序）"""
        with self._lock:
            events = [e for e in self._events if e.task_id == task_id]
        return sorted(events, key=lambda e: e.ts)

    def all(self) -> list[ActivityEvent]:
        """返回所有事件（插入顺序）"""
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
