"""Store Protocol 接口定义

定义 VersionStore、ActivityLog、UserDirectory 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Protocol

from ..models.enums import ActivityType
from ..models.event import ActivityEvent
from ..models.task import Task
from ..models.user import User


class VersionStore(Protocol):
    """Task 版本存储接口

    append-only：只允许追加，不提供删除。
    """

    def append(self, task: Task) -> None:
        """追加一个任务版本"""
        ...

    def latest(self, task_id: str) -> Task:
        """返回 version 最大的版本，不存在时抛出 NotFoundError"""
        ...

    def history(self, task_id: str) -> list[Task]:
        """返回该任务的全部版本，按 version 正序"""
        ...

    def all(self) -> list[Task]:
        """返回所有任务的所有版本（插入顺序）"""
        ...


class ActivityLog(Protocol):
    """审计事件存储接口

    事件 append-only：只允许插入，不允许更新或删除。
    """

    def record(
        self,
        task_id: str,
        activity_type: ActivityType,
        actor: User,
        details: str = "",
    ) -> ActivityEvent:
        """构造并追加一条事件"""
        ...

    def append(self, event: ActivityEvent) -> None:
        """追加已构造的事件"""
        ...

    def by_task(self, task_id: str) -> list[ActivityEvent]:
        """查询指定任务的事件，按时间正序"""
        ...

    def all(self) -> list[ActivityEvent]:
        """返回所有事件（插入顺序）"""
        ...


class UserDirectory(Protocol):
    """用户目录接口 -- 由外部用户管理组件提供"""

    def find_user_by_id(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        ...
