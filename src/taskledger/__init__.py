"""taskledger -- 版本化任务追踪领域模型

每次变更生成新的不可变任务版本并记录审计事件。
"""

from .clock import Clock, ManualClock, SystemClock
from .exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PreconditionViolationError,
    TaskLedgerError,
    VersionConflictError,
)
from .services import OverdueTask, TaskQueryService, TaskService, UserService
from .store import StoreGroup, create_store_group

__all__ = [
    "Clock",
    "SystemClock",
    "ManualClock",
    "TaskLedgerError",
    "NotFoundError",
    "InvalidTransitionError",
    "PreconditionViolationError",
    "VersionConflictError",
    "StoreGroup",
    "create_store_group",
    "TaskService",
    "TaskQueryService",
    "UserService",
    "OverdueTask",
]
