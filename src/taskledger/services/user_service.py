"""UserService -- 用户管理

用户目录是任务核心的外部协作方；此服务提供基础的
创建 / 查询 / 排序列表 / 更新 / 软删除。
"""

import re

import structlog

from ..clock import Clock
from ..exceptions import NotFoundError, PreconditionViolationError
from ..models import Role, TaskStatus, User, build_user
from ..store import StoreGroup
from .query_service import TaskQueryService

log = structlog.get_logger()

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+$")

# 仍有这些状态的已分配任务时，用户不可停用
_ACTIVE_STATUSES = (TaskStatus.OPEN, TaskStatus.IN_PROGRESS)


class UserService:
    """用户业务服务"""

    def __init__(self, store_group: StoreGroup, clock: Clock | None = None) -> None:
        self._directory = store_group.user_directory
        self._clock = clock or store_group.clock
        self._queries = TaskQueryService(store_group, self._clock)

    def create_user(self, name: str, email: str, role: Role = Role.MEMBER) -> User:
        """创建用户

        Raises:
            PreconditionViolationError: 邮箱格式非法或已被占用
        """
        if not email or not EMAIL_PATTERN.match(email):
            raise PreconditionViolationError(f"invalid email: {email!r}")
        if self._directory.find_user_by_email(email) is not None:
            raise PreconditionViolationError(f"email already registered: {email}")

        user = build_user(name, email, self._clock.now(), role=Role(role))
        self._directory.save(user)
        log.info("user_created", user_id=user.user_id, role=user.role.value)
        return user

    def get_user(self, user_id: str) -> User:
        user = self._directory.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    def list_users(self, sort_by: str = "created_at") -> list[User]:
        """列出用户

        sort_by: name / email（忽略大小写）、role，其余按 created_at
        """
        users = self._directory.list_users()
        match sort_by.lower():
            case "name":
                return sorted(users, key=lambda u: u.name.casefold())
            case "email":
                return sorted(users, key=lambda u: u.email.casefold())
            case "role":
                return sorted(users, key=lambda u: u.role.value)
            case _:
                return sorted(users, key=lambda u: u.created_at)

    def update_user(
        self,
        user_id: str,
        name: str | None = None,
        role: Role | None = None,
    ) -> User:
        """更新名称与角色，返回新的 User 快照"""
        existing = self.get_user(user_id)
        changes: dict = {}
        if name is not None:
            if not name.strip():
                raise PreconditionViolationError("name is required")
            changes["name"] = name
        if role is not None:
            changes["role"] = Role(role)
        updated = existing.model_copy(update=changes)
        self._directory.save(updated)
        log.info("user_updated", user_id=user_id, fields=sorted(changes))
        return updated

    def deactivate_user(self, user_id: str) -> User:
        """软删除用户

        Raises:
            NotFoundError: 用户不存在
            PreconditionViolationError: 用户仍是 OPEN / IN_PROGRESS 任务的负责人
        """
        user = self.get_user(user_id)
        active_tasks = self._queries.combined_filter(statuses=_ACTIVE_STATUSES, assignee=user)
        if active_tasks:
            log.warning(
                "user_deactivation_blocked",
                user_id=user_id,
                active_task_count=len(active_tasks),
            )
            raise PreconditionViolationError(
                f"user {user_id} has {len(active_tasks)} active assigned task(s)"
            )

        updated = user.model_copy(update={"active": False})
        self._directory.save(updated)
        log.info("user_deactivated", user_id=user_id)
        return updated
