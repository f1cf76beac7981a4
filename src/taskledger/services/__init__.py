"""taskledger Services -- 任务变更、查询与用户管理"""

from .query_service import OverdueTask, TaskQueryService
from .task_service import TaskService
from .user_service import UserService

__all__ = [
    "TaskService",
    "TaskQueryService",
    "OverdueTask",
    "UserService",
]
