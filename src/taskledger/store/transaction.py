"""版本+事件原子写入封装

任务版本与审计事件成对提交：要么两者都写入，要么都不写入。
"""

import threading

from ..exceptions import PreconditionViolationError
from ..models.event import ActivityEvent
from ..models.task import Task
from .activity_log import InMemoryActivityLog
from .version_store import InMemoryVersionStore


def append_version_and_event(
    write_lock: threading.RLock,
    version_store: InMemoryVersionStore,
    activity_log: InMemoryActivityLog,
    task: Task,
    event: ActivityEvent,
) -> None:
    """在同一把写锁内原子提交任务版本和审计事件

    Args:
        write_lock: Store 组共享的写锁（需在同一锁内操作以保证成对可见）
        version_store: VersionStore 实例
        activity_log: ActivityLog 实例
        task: 要写入的新版本
        event: 描述该版本变更的事件

    Raises:
        PreconditionViolationError: 事件与版本不属于同一任务
        VersionConflictError: (task_id, version) 已存在，此时不会写入事件
    """
    if event.task_id != task.task_id:
        raise PreconditionViolationError(
            f"event task_id {event.task_id} does not match task {task.task_id}"
        )

    with write_lock:
        version_store.append(task)
        try:
            activity_log.append(event)
        except Exception:
            version_store.rollback(task)
            raise
