"""TaskQueryService -- 任务查询/筛选/排序

所有查询先从全部版本计算"每个 task_id 的最新版本"视图，
每次调用都重新计算（不缓存），只读、无副作用。
"""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict

from ..clock import Clock
from ..models import TERMINAL_STATES, Priority, Task, TaskStatus, User, normalize_tags
from ..projection import latest_per_id
from ..store import StoreGroup

TaskPredicate = Callable[[Task], bool]

# 无截止时间的任务排序时视为最大值
_FAR_FUTURE = datetime.max.replace(tzinfo=UTC)

_SORT_KEY_ALIASES: dict[str, str] = {
    "priority": "priority",
    "duedate": "due_date",
    "due_date": "due_date",
    "createdat": "created_at",
    "created_at": "created_at",
    "createddate": "created_at",
    "status": "status",
}

_SORT_KEYS: dict[str, Callable[[Task], Any]] = {
    "priority": lambda t: t.priority.rank,
    "due_date": lambda t: t.due_date if t.due_date is not None else _FAR_FUTURE,
    "created_at": lambda t: t.created_at,
    "status": lambda t: t.status.rank,
}


class OverdueTask(BaseModel):
    """逾期任务及其逾期整天数"""

    model_config = ConfigDict(frozen=True)

    task: Task
    days_overdue: int


def is_overdue(task: Task, now: datetime) -> bool:
    """截止时间早于 now 且未处于终态"""
    return (
        task.due_date is not None
        and task.due_date < now
        and task.status not in TERMINAL_STATES
    )


def days_overdue(task: Task, now: datetime) -> int:
    """逾期整天数 = floor((now - due_date) / 1 天)"""
    if task.due_date is None:
        return 0
    return (now - task.due_date) // timedelta(days=1)


def _in_range(value: datetime, start: datetime, end: datetime) -> bool:
    return start <= value <= end


class TaskQueryService:
    """任务查询服务"""

    def __init__(self, store_group: StoreGroup, clock: Clock | None = None) -> None:
        self._stores = store_group
        self._clock = clock or store_group.clock

    def list_latest(self) -> list[Task]:
        """最新版本视图，按 created_at 正序"""
        return sorted(self._latest_tasks(), key=lambda t: t.created_at)

    def filter_by_status(self, statuses: Iterable[TaskStatus]) -> list[Task]:
        wanted = {TaskStatus(s) for s in statuses}
        return self._select(lambda t: t.status in wanted)

    def filter_by_priority(self, priorities: Iterable[Priority]) -> list[Task]:
        wanted = {Priority(p) for p in priorities}
        return self._select(lambda t: t.priority in wanted)

    def filter_by_assignee(self) -> dict[User, list[Task]]:
        """按负责人分组（按 user_id 判定身份），未分配的任务不出现"""
        grouped: dict[User, list[Task]] = {}
        for task in self._latest_tasks():
            if task.assigned_to is not None:
                grouped.setdefault(task.assigned_to, []).append(task)
        return grouped

    def filter_by_creator(self, creator: User) -> list[Task]:
        return self._select(lambda t: t.created_by.user_id == creator.user_id)

    def find_overdue_tasks(self) -> list[OverdueTask]:
        """逾期任务（排除 COMPLETED / CANCELLED），附带逾期整天数"""
        now = self._clock.now()
        return [
            OverdueTask(task=task, days_overdue=days_overdue(task, now))
            for task in self._latest_tasks()
            if is_overdue(task, now)
        ]

    def created_between(self, start: datetime, end: datetime) -> list[Task]:
        """created_at 落在 [start, end] 内"""
        return self._select(lambda t: _in_range(t.created_at, start, end))

    def completed_between(self, start: datetime, end: datetime) -> list[Task]:
        """状态为 COMPLETED 且 updated_at 落在 [start, end] 内"""
        return self._select(
            lambda t: t.status == TaskStatus.COMPLETED
            and _in_range(t.updated_at, start, end)
        )

    def modified_between(self, start: datetime, end: datetime) -> list[Task]:
        """updated_at 落在 [start, end] 内"""
        return self._select(lambda t: _in_range(t.updated_at, start, end))

    def filter_by_tags(self, tags: Iterable[str]) -> list[Task]:
        """标签集合为给定集合的超集"""
        wanted = set(normalize_tags(tags))
        return self._select(lambda t: wanted <= t.tag_set)

    def combined_filter(
        self,
        statuses: Iterable[TaskStatus] | None = None,
        priorities: Iterable[Priority] | None = None,
        assignee: User | None = None,
        overdue_only: bool = False,
        tags: Iterable[str] | None = None,
    ) -> list[Task]:
        """组合筛选：各条件取交集，缺省或为空的条件不施加约束"""
        predicates: list[TaskPredicate] = []

        wanted_statuses = {TaskStatus(s) for s in statuses or ()}
        if wanted_statuses:
            predicates.append(lambda t: t.status in wanted_statuses)

        wanted_priorities = {Priority(p) for p in priorities or ()}
        if wanted_priorities:
            predicates.append(lambda t: t.priority in wanted_priorities)

        if assignee is not None:
            predicates.append(
                lambda t: t.assigned_to is not None
                and t.assigned_to.user_id == assignee.user_id
            )

        if overdue_only:
            now = self._clock.now()
            predicates.append(lambda t: is_overdue(t, now))

        wanted_tags = set(normalize_tags(tags or ()))
        if wanted_tags:
            predicates.append(lambda t: wanted_tags <= t.tag_set)

        return self._select(lambda t: all(p(t) for p in predicates))

    @staticmethod
    def sort_tasks(tasks: Iterable[Task], sort_by: str, ascending: bool = True) -> list[Task]:
        """稳定排序

        sort_by 支持 priority / due_date / created_at / status（大小写不敏感，
        兼容 dueDate、createdAt 等写法），未知键回退为 created_at。
        降序时相等元素保持输入中的相对顺序。
        """
        normalized = sort_by.strip().lower().replace("-", "_")
        key_name = _SORT_KEY_ALIASES.get(normalized, "created_at")
        return sorted(tasks, key=_SORT_KEYS[key_name], reverse=not ascending)

    # ---- 内部 ----

    def _latest_tasks(self) -> list[Task]:
        """从 VersionStore 快照计算最新版本视图"""
        return latest_per_id(self._stores.version_store.all())

    def _select(self, predicate: TaskPredicate) -> list[Task]:
        return [task for task in self._latest_tasks() if predicate(task)]
