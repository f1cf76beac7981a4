"""枚举定义

包含 TaskStatus 状态机、Priority、ActivityType、Role 枚举，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。

StrEnum 的默认比较按字符串值进行，排序需使用 rank（声明顺序）。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    # 活跃状态
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"

    # 终态
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def rank(self) -> int:
        """声明顺序：OPEN < IN_PROGRESS < COMPLETED < CANCELLED"""
        return _STATUS_ORDER.index(self)


class Priority(StrEnum):
    """任务优先级，全序 LOW < MEDIUM < HIGH < CRITICAL"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _PRIORITY_ORDER.index(self)


_STATUS_ORDER: tuple[TaskStatus, ...] = tuple(TaskStatus)
_PRIORITY_ORDER: tuple[Priority, ...] = tuple(Priority)


# 合法状态流转（自身流转不在任何集合中）
VALID_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.OPEN: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    # 终态不可再流转
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES: frozenset[TaskStatus] = frozenset(
    {
        TaskStatus.COMPLETED,
        TaskStatus.CANCELLED,
    }
)


class ActivityType(StrEnum):
    """审计事件类型"""

    TASK_CREATED = "TASK_CREATED"
    STATUS_CHANGED = "STATUS_CHANGED"
    ASSIGNEE_CHANGED = "ASSIGNEE_CHANGED"
    PRIORITY_CHANGED = "PRIORITY_CHANGED"
    DUE_DATE_CHANGED = "DUE_DATE_CHANGED"
    COMMENT_ADDED = "COMMENT_ADDED"


class Role(StrEnum):
    """用户角色"""

    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"


def allowed_transitions(from_status: TaskStatus) -> frozenset[TaskStatus]:
    """返回指定状态可流转到的目标状态集合"""
    return VALID_TRANSITIONS.get(from_status, frozenset())


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    return to_status in allowed_transitions(from_status)
