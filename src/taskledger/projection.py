"""Projection 模块

从全部任务版本计算"每个 task_id 的最新版本"视图。
查询引擎每次调用都重新计算，不做缓存。
"""

from collections.abc import Iterable

import structlog

from .models.task import Task

log = structlog.get_logger()


def apply_version(latest: dict[str, Task], task: Task) -> None:
    """将单个版本应用到最新视图（内存中操作）

    Args:
        latest: task_id -> Task 的映射表（会被就地修改）
        task: 要应用的版本，仅当 version 更大时替换
    """
    current = latest.get(task.task_id)
    if current is None or task.version > current.version:
        latest[task.task_id] = task


def latest_per_id(versions: Iterable[Task]) -> list[Task]:
    """按 task_id 分组，每组保留 version 最大者

    返回顺序为各 task_id 首次出现的顺序。
    """
    latest: dict[str, Task] = {}
    for task in versions:
        apply_version(latest, task)
    return list(latest.values())


def group_history(versions: Iterable[Task]) -> dict[str, list[Task]]:
    """按 task_id 分组全部版本，组内按 version 正序"""
    grouped: dict[str, list[Task]] = {}
    for task in versions:
        grouped.setdefault(task.task_id, []).append(task)
    for task_versions in grouped.values():
        task_versions.sort(key=lambda t: t.version)
    return grouped


def verify_history(versions: list[Task]) -> bool:
    """校验单个任务的版本历史

    - version 从 1 开始连续递增
    - created_at / created_by 在所有版本中保持一致
    """
    if not versions:
        return True
    first = versions[0]
    for expected, task in enumerate(versions, start=1):
        if task.version != expected:
            log.warning(
                "history_version_gap",
                task_id=task.task_id,
                expected=expected,
                actual=task.version,
            )
            return False
        if task.created_at != first.created_at or task.created_by != first.created_by:
            log.warning(
                "history_immutable_field_changed",
                task_id=task.task_id,
                version=task.version,
            )
            return False
    return True
