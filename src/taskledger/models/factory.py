"""实体构造工厂

模型本身是纯不可变记录；此处负责补齐默认值：
生成 ULID 标识、使用注入的时钟读数作为时间戳，并校验必填字段。
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from ulid import ULID

from ..exceptions import PreconditionViolationError
from .enums import ActivityType, Priority, Role, TaskStatus
from .event import ActivityEvent
from .task import Comment, Task, normalize_tags
from .user import User


def new_id(now: datetime) -> str:
    """生成时间有序的 ULID 字符串"""
    return str(ULID.from_datetime(now))


def _require_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise PreconditionViolationError(f"{field} is required")
    return value


def build_user(
    name: str,
    email: str,
    now: datetime,
    role: Role = Role.MEMBER,
    user_id: str | None = None,
) -> User:
    """构造 User，缺省 user_id 时自动生成"""
    return User(
        user_id=user_id or new_id(now),
        name=_require_text(name, "name"),
        email=_require_text(email, "email"),
        role=role,
        created_at=now,
    )


def build_task(
    title: str,
    description: str,
    created_by: User | None,
    now: datetime,
    *,
    priority: Priority = Priority.MEDIUM,
    tags: Iterable[str] = (),
    due_date: datetime | None = None,
    assigned_to: User | None = None,
) -> Task:
    """构造 version 1 的 Task

    Raises:
        PreconditionViolationError: 标题为空或缺少创建者
    """
    if created_by is None:
        raise PreconditionViolationError("created_by is required")
    return Task(
        task_id=new_id(now),
        version=1,
        title=_require_text(title, "title"),
        description=description or "",
        status=TaskStatus.OPEN,
        priority=priority,
        created_by=created_by,
        assigned_to=assigned_to,
        due_date=due_date,
        tags=normalize_tags(tags),
        comments=(),
        created_at=now,
        updated_at=now,
    )


def next_version(current: Task, now: datetime, **changes: Any) -> Task:
    """基于当前版本生成下一个版本

    除 changes 指定字段外其余字段原样复制；version 加 1，updated_at 取 now。
    created_at / created_by / task_id 不允许通过此函数修改。
    变更字段会重新校验（例如拒绝不带时区的 due_date）。

    Raises:
        PreconditionViolationError: 试图修改不可变字段
        pydantic.ValidationError: 变更字段取值非法
    """
    frozen_fields = {"task_id", "version", "created_at", "created_by", "updated_at"}
    illegal = frozen_fields & changes.keys()
    if illegal:
        raise PreconditionViolationError(
            f"fields cannot be changed by a new version: {sorted(illegal)}"
        )
    return Task.model_validate(
        {
            **dict(current),
            **changes,
            "version": current.version + 1,
            "updated_at": now,
        }
    )


def build_comment(author: User, message: str, now: datetime) -> Comment:
    """构造 Comment

    Raises:
        PreconditionViolationError: 评论内容为空
    """
    return Comment(
        comment_id=new_id(now),
        author=author,
        message=_require_text(message, "message"),
        created_at=now,
    )


def build_event(
    task_id: str,
    activity_type: ActivityType,
    actor: User,
    now: datetime,
    details: str = "",
) -> ActivityEvent:
    """构造 ActivityEvent"""
    return ActivityEvent(
        event_id=new_id(now),
        task_id=task_id,
        activity_type=activity_type,
        actor=actor,
        ts=now,
        details=details or "",
    )
