"""TaskService -- 任务变更业务逻辑

每个变更操作的流程：
1. 读取最新版本
2. 校验状态流转或业务前置条件
3. 基于最新版本构建新的不可变版本（version + 1，updated_at = now）
4. 版本与审计事件成对原子写入

校验失败时不会对 VersionStore 或 ActivityLog 产生任何写入。
"""

import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

import structlog

from ..config import TaskLedgerConfig
from ..exceptions import InvalidTransitionError, NotFoundError, PreconditionViolationError
from ..models import (
    ActivityEvent,
    ActivityType,
    Priority,
    Task,
    TaskStatus,
    User,
    build_comment,
    build_event,
    build_task,
    next_version,
    validate_transition,
)
from ..store import StoreGroup
from ..store.protocols import UserDirectory
from ..store.transaction import append_version_and_event

log = structlog.get_logger()

# make_change(current, now) -> (字段变更, 事件 details)
ChangeBuilder = Callable[[Task, datetime], tuple[dict[str, Any], str]]


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        user_directory: UserDirectory | None = None,
        config: TaskLedgerConfig | None = None,
    ) -> None:
        self._stores = store_group
        self._users = user_directory or store_group.user_directory
        self._config = config or TaskLedgerConfig()
        self._task_locks: dict[str, threading.Lock] = {}
        self._task_locks_guard = threading.Lock()

    # ---- 创建与查询 ----

    def create_task(
        self,
        title: str,
        description: str,
        created_by: User,
        *,
        priority: Priority | None = None,
        tags: Iterable[str] = (),
        due_date: datetime | None = None,
    ) -> Task:
        """创建任务（version 1，状态 OPEN）并记录 TASK_CREATED 事件

        Raises:
            PreconditionViolationError: 标题为空或缺少创建者
            ValidationError: due_date 不带时区
        """
        now = self._stores.clock.now()
        task = build_task(
            title,
            description,
            created_by,
            now,
            priority=priority or self._config.default_priority,
            tags=tags,
            due_date=due_date,
        )
        event = build_event(task.task_id, ActivityType.TASK_CREATED, created_by, now)

        self._commit(task, event)
        log.info(
            "task_created",
            task_id=task.task_id,
            created_by=created_by.user_id,
            priority=task.priority.value,
        )
        return task

    def view_task(self, task_id: str) -> Task:
        """查询任务最新版本

        Raises:
            NotFoundError: 任务不存在
        """
        return self._stores.version_store.latest(task_id)

    def get_task_history(self, task_id: str) -> list[Task]:
        """查询任务全部版本，按 version 正序

        Raises:
            NotFoundError: 任务不存在
        """
        history = self._stores.version_store.history(task_id)
        if not history:
            raise NotFoundError("task", task_id)
        return history

    def get_activity(self, task_id: str) -> list[ActivityEvent]:
        """查询任务的审计事件，按时间正序"""
        self.view_task(task_id)
        return self._stores.activity_log.by_task(task_id)

    # ---- 状态机 ----

    def change_status(self, task_id: str, new_status: TaskStatus, actor: User) -> Task:
        """推进任务状态

        Raises:
            NotFoundError: 任务不存在
            InvalidTransitionError: 当前状态不允许流转到 new_status（含自身流转）
        """
        new_status = TaskStatus(new_status)

        def make_change(current: Task, now: datetime) -> tuple[dict[str, Any], str]:
            if not validate_transition(current.status, new_status):
                log.warning(
                    "invalid_status_transition",
                    task_id=task_id,
                    from_status=current.status.value,
                    to_status=new_status.value,
                )
                raise InvalidTransitionError(current.status.value, new_status.value)
            return {"status": new_status}, f"{current.status.value} -> {new_status.value}"

        updated = self._apply_change(task_id, actor, ActivityType.STATUS_CHANGED, make_change)
        log.info(
            "task_status_changed",
            task_id=task_id,
            status=updated.status.value,
            version=updated.version,
        )
        return updated

    # ---- 其他变更（不受状态约束） ----

    def assign_task(self, task_id: str, user_id: str, actor: User) -> Task:
        """分配负责人

        Raises:
            NotFoundError: 任务或用户不存在
        """

        def make_change(current: Task, now: datetime) -> tuple[dict[str, Any], str]:
            assignee = self._users.find_user_by_id(user_id)
            if assignee is None:
                log.warning("assignee_not_found", task_id=task_id, user_id=user_id)
                raise NotFoundError("user", user_id)
            return {"assigned_to": assignee}, f"Assigned to {assignee.email}"

        updated = self._apply_change(task_id, actor, ActivityType.ASSIGNEE_CHANGED, make_change)
        log.info("task_assigned", task_id=task_id, user_id=user_id, version=updated.version)
        return updated

    def unassign_task(self, task_id: str, actor: User) -> Task:
        """取消分配"""
        updated = self._apply_change(
            task_id,
            actor,
            ActivityType.ASSIGNEE_CHANGED,
            lambda current, now: ({"assigned_to": None}, "Unassigned"),
        )
        log.info("task_unassigned", task_id=task_id, version=updated.version)
        return updated

    def change_priority(self, task_id: str, priority: Priority, actor: User) -> Task:
        """修改优先级"""
        priority = Priority(priority)
        updated = self._apply_change(
            task_id,
            actor,
            ActivityType.PRIORITY_CHANGED,
            lambda current, now: (
                {"priority": priority},
                f"{current.priority.value} -> {priority.value}",
            ),
        )
        log.info(
            "task_priority_changed",
            task_id=task_id,
            priority=priority.value,
            version=updated.version,
        )
        return updated

    def set_due_date(self, task_id: str, due_date: datetime | None, actor: User) -> Task:
        """设置或移除截止时间（None 表示移除）

        Raises:
            NotFoundError: 任务不存在
            ValidationError: due_date 不带时区
        """
        details = due_date.isoformat() if due_date is not None else "Deadline removed"
        updated = self._apply_change(
            task_id,
            actor,
            ActivityType.DUE_DATE_CHANGED,
            lambda current, now: ({"due_date": due_date}, details),
        )
        log.info("task_due_date_changed", task_id=task_id, version=updated.version)
        return updated

    def add_comment(self, task_id: str, message: str, author: User) -> Task:
        """追加评论到评论序列末尾

        Raises:
            NotFoundError: 任务不存在
            PreconditionViolationError: 评论内容为空
        """

        def make_change(current: Task, now: datetime) -> tuple[dict[str, Any], str]:
            comment = build_comment(author, message, now)
            preview = message[: self._config.details_preview_length]
            return {"comments": (*current.comments, comment)}, preview

        updated = self._apply_change(task_id, author, ActivityType.COMMENT_ADDED, make_change)
        log.info(
            "task_comment_added",
            task_id=task_id,
            comment_count=len(updated.comments),
            version=updated.version,
        )
        return updated

    # ---- 内部 ----

    def _apply_change(
        self,
        task_id: str,
        actor: User,
        activity_type: ActivityType,
        make_change: ChangeBuilder,
    ) -> Task:
        """读取最新版本 -> 校验并构建变更 -> 成对写入版本和事件"""
        if actor is None:
            raise PreconditionViolationError("actor is required")

        # 先确认任务存在，未知 task_id 不创建锁
        self._stores.version_store.latest(task_id)

        lock = self._get_task_lock(task_id)
        with lock:
            current = self._stores.version_store.latest(task_id)
            now = self._now_after(current)
            changes, details = make_change(current, now)
            updated = next_version(current, now, **changes)
            event = build_event(task_id, activity_type, actor, now, details)
            self._commit(updated, event)
        return updated

    def _commit(self, task: Task, event: ActivityEvent) -> None:
        append_version_and_event(
            self._stores.write_lock,
            self._stores.version_store,
            self._stores.activity_log,
            task,
            event,
        )

    def _now_after(self, current: Task) -> datetime:
        """当前时间，且不早于上一版本的 updated_at"""
        now = self._stores.clock.now()
        return max(now, current.updated_at)

    def _get_task_lock(self, task_id: str) -> threading.Lock:
        """获取 task 级别锁，序列化同一任务的"读最新-追加"过程。"""
        with self._task_locks_guard:
            lock = self._task_locks.get(task_id)
            if lock is None:
                lock = threading.Lock()
                self._task_locks[task_id] = lock
            return lock
