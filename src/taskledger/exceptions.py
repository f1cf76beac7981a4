"""taskledger 异常体系

所有错误同步抛给调用方，内部不重试；
抛出异常的变更操作不会对任何 Store 产生写入。
"""


class TaskLedgerError(Exception):
    """taskledger 基础异常"""


class NotFoundError(TaskLedgerError):
    """任务或用户不存在"""

    def __init__(self, kind: str, identifier: str) -> None:
        """
        Args:
            kind: 实体类型，例如 "task" / "user"
            identifier: 查找时使用的 ID
        """
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class InvalidTransitionError(TaskLedgerError):
    """状态流转不被状态机允许"""

    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(f"Invalid status transition: {from_status} -> {to_status}")
        self.from_status = from_status
        self.to_status = to_status


class PreconditionViolationError(TaskLedgerError):
    """业务前置条件不满足（必填字段缺失、邮箱格式错误等）"""


class VersionConflictError(TaskLedgerError):
    """(task_id, version) 已存在

    并发写入同一任务时读取到相同的最新版本会触发此异常。
    """

    def __init__(self, task_id: str, version: int) -> None:
        super().__init__(f"Task {task_id} already has version {version}")
        self.task_id = task_id
        self.version = version
