"""VersionStore 内存实现

保存每个任务的每个版本，只增不减。
按 task_id 索引到有序版本列表，避免全量扫描；
同时保留一份插入顺序的扁平列表供 all() 使用。
(task_id, version) 唯一，重复写入抛出 VersionConflictError。
"""

import threading

import structlog

from ..exceptions import NotFoundError, VersionConflictError
from ..models.task import Task

log = structlog.get_logger()


class InMemoryVersionStore:
    """VersionStore 的内存实现"""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._by_id: dict[str, list[Task]] = {}
        self._ordered: list[Task] = []

    def append(self, task: Task) -> None:
        """追加任务版本（append-only）

        唯一校验：(task_id, version) 必须是新的。版本连续性由调用方保证。
        """
        with self._lock:
            versions = self._by_id.setdefault(task.task_id, [])
            if any(v.version == task.version for v in versions):
                raise VersionConflictError(task.task_id, task.version)
            versions.append(task)
            # 保持 version 正序（调用方单调递增时等价于直接追加）
            versions.sort(key=lambda v: v.version)
            self._ordered.append(task)

    def latest(self, task_id: str) -> Task:
        """返回 version 最大的版本"""
        with self._lock:
            versions = self._by_id.get(task_id)
            if not versions:
                raise NotFoundError("task", task_id)
            return versions[-1]

    def history(self, task_id: str) -> list[Task]:
        """返回全部版本，按 version 正序；未知 task_id 返回空列表"""
        with self._lock:
            return list(self._by_id.get(task_id, ()))

    def all(self) -> list[Task]:
        """返回所有版本的快照副本（插入顺序）"""
        with self._lock:
            return list(self._ordered)

    def task_ids(self) -> list[str]:
        """已知的 task_id，按首次写入顺序"""
        with self._lock:
            return list(self._by_id)

    def rollback(self, task: Task) -> None:
        """撤销一次 append -- 仅供事务封装在配对事件写入失败时调用

        只允许撤销该任务当前的最新版本。
        """
        with self._lock:
            versions = self._by_id.get(task.task_id)
            if not versions or versions[-1] is not task:
                raise VersionConflictError(task.task_id, task.version)
            versions.pop()
            if not versions:
                del self._by_id[task.task_id]
            # 从尾部查找，被撤销的版本通常就是最后写入的那条
            for index in range(len(self._ordered) - 1, -1, -1):
                if self._ordered[index] is task:
                    del self._ordered[index]
                    break
            log.warning(
                "task_version_rolled_back",
                task_id=task.task_id,
                version=task.version,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._ordered)
