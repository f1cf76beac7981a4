"""taskledger Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ActivityType,
    Priority,
    Role,
    TaskStatus,
    allowed_transitions,
    validate_transition,
)
from .event import ActivityEvent
from .factory import (
    build_comment,
    build_event,
    build_task,
    build_user,
    new_id,
    next_version,
)
from .task import Comment, Task, normalize_tags
from .user import User

__all__ = [
    # 枚举
    "TaskStatus",
    "Priority",
    "ActivityType",
    "Role",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "allowed_transitions",
    "validate_transition",
    # 实体
    "User",
    "Task",
    "Comment",
    "ActivityEvent",
    "normalize_tags",
    # 工厂
    "new_id",
    "build_user",
    "build_task",
    "build_comment",
    "build_event",
    "next_version",
]
