"""TaskService 单元测试

测试内容：
1. 创建任务与 TASK_CREATED 事件
2. 状态机约束与非法流转无写入
3. 分配 / 取消分配 / 优先级 / 截止时间 / 评论
4. 每次变更恰好一个新版本 + 一个事件
5. 查找失败无写入
"""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError
from taskledger.clock import ManualClock
from taskledger.config import TaskLedgerConfig
from taskledger.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PreconditionViolationError,
)
from taskledger.models import ActivityType, Priority, TaskStatus, User
from taskledger.projection import verify_history
from taskledger.services import TaskQueryService, TaskService
from taskledger.store import StoreGroup, create_store_group


def _counts(store_group: StoreGroup, task_id: str) -> tuple[int, int]:
    return (
        len(store_group.version_store.history(task_id)),
        len(store_group.activity_log.by_task(task_id)),
    )


class TickingClock(ManualClock):
    """每次读取都前进 1 秒"""

    def now(self) -> datetime:
        self.advance(seconds=1)
        return super().now()


class TestCreateTask:
    """创建任务"""

    def test_create_establishes_version_one(
        self, task_service: TaskService, store_group: StoreGroup, alice: User, clock: ManualClock
    ):
        task = task_service.create_task("Write docs", "All of them", alice, tags=["Docs"])

        assert task.version == 1
        assert task.status == TaskStatus.OPEN
        assert task.created_by == alice
        assert task.created_at == clock.now()
        assert task.updated_at == clock.now()
        assert task.tags == ("docs",)
        assert store_group.version_store.latest(task.task_id) is task

        events = store_group.activity_log.by_task(task.task_id)
        assert len(events) == 1
        assert events[0].activity_type == ActivityType.TASK_CREATED
        assert events[0].details == ""
        assert events[0].actor == alice

    def test_create_uses_configured_default_priority(self, store_group: StoreGroup, alice: User):
        service = TaskService(store_group, config=TaskLedgerConfig(default_priority=Priority.LOW))
        assert service.create_task("Low by default", "", alice).priority == Priority.LOW

    def test_create_with_blank_title_writes_nothing(
        self, task_service: TaskService, store_group: StoreGroup, alice: User
    ):
        with pytest.raises(PreconditionViolationError):
            task_service.create_task("", "desc", alice)
        assert store_group.version_store.all() == []
        assert store_group.activity_log.all() == []

    def test_view_unknown_task(self, task_service: TaskService):
        with pytest.raises(NotFoundError):
            task_service.view_task("missing")
        with pytest.raises(NotFoundError):
            task_service.get_task_history("missing")


class TestChangeStatus:
    """状态流转"""

    def test_valid_transition_records_event(
        self, task_service: TaskService, store_group: StoreGroup, alice: User, clock: ManualClock
    ):
        task = task_service.create_task("Ship it", "", alice)
        clock.advance(hours=1)
        updated = task_service.change_status(task.task_id, TaskStatus.IN_PROGRESS, alice)

        assert updated.version == 2
        assert updated.status == TaskStatus.IN_PROGRESS
        assert updated.updated_at == clock.now()
        assert updated.created_at == task.created_at

        event = store_group.activity_log.by_task(task.task_id)[-1]
        assert event.activity_type == ActivityType.STATUS_CHANGED
        assert event.details == "OPEN -> IN_PROGRESS"

    def test_accepts_status_string(self, task_service: TaskService, alice: User):
        task = task_service.create_task("Ship it", "", alice)
        updated = task_service.change_status(task.task_id, "CANCELLED", alice)
        assert updated.status == TaskStatus.CANCELLED

    def test_self_transition_rejected_without_writes(
        self, task_service: TaskService, store_group: StoreGroup, alice: User
    ):
        task = task_service.create_task("Ship it", "", alice)
        with pytest.raises(InvalidTransitionError) as exc_info:
            task_service.change_status(task.task_id, TaskStatus.OPEN, alice)

        assert exc_info.value.from_status == "OPEN"
        assert exc_info.value.to_status == "OPEN"
        assert _counts(store_group, task.task_id) == (1, 1)

    @pytest.mark.parametrize("terminal", [TaskStatus.COMPLETED, TaskStatus.CANCELLED])
    def test_terminal_states_reject_everything(
        self,
        task_service: TaskService,
        store_group: StoreGroup,
        alice: User,
        terminal: TaskStatus,
    ):
        task = task_service.create_task("Ship it", "", alice)
        task_service.change_status(task.task_id, TaskStatus.IN_PROGRESS, alice)
        task_service.change_status(task.task_id, terminal, alice)
        before = _counts(store_group, task.task_id)

        for target in TaskStatus:
            with pytest.raises(InvalidTransitionError):
                task_service.change_status(task.task_id, target, alice)

        assert _counts(store_group, task.task_id) == before

    def test_open_cannot_jump_to_completed(self, task_service: TaskService, alice: User):
        task = task_service.create_task("Ship it", "", alice)
        with pytest.raises(InvalidTransitionError):
            task_service.change_status(task.task_id, TaskStatus.COMPLETED, alice)

    def test_unknown_task(self, task_service: TaskService, alice: User):
        with pytest.raises(NotFoundError):
            task_service.change_status("missing", TaskStatus.IN_PROGRESS, alice)


class TestAssignment:
    """分配与取消分配"""

    def test_assign_records_email(
        self, task_service: TaskService, store_group: StoreGroup, alice: User, bob: User
    ):
        task = task_service.create_task("Review", "", alice)
        updated = task_service.assign_task(task.task_id, bob.user_id, alice)

        assert updated.assigned_to == bob
        assert updated.version == 2
        event = store_group.activity_log.by_task(task.task_id)[-1]
        assert event.activity_type == ActivityType.ASSIGNEE_CHANGED
        assert event.details == "Assigned to u@x.com"
        assert event.actor == alice

    def test_assign_unknown_user_writes_nothing(
        self, task_service: TaskService, store_group: StoreGroup, alice: User
    ):
        task = task_service.create_task("Review", "", alice)
        with pytest.raises(NotFoundError) as exc_info:
            task_service.assign_task(task.task_id, "nobody", alice)

        assert exc_info.value.kind == "user"
        assert _counts(store_group, task.task_id) == (1, 1)

    def test_assign_unknown_task(self, task_service: TaskService, alice: User, bob: User):
        with pytest.raises(NotFoundError) as exc_info:
            task_service.assign_task("missing", bob.user_id, alice)
        assert exc_info.value.kind == "task"

    def test_unassign(self, task_service: TaskService, store_group: StoreGroup, alice: User, bob: User):
        task = task_service.create_task("Review", "", alice)
        task_service.assign_task(task.task_id, bob.user_id, alice)
        updated = task_service.unassign_task(task.task_id, alice)

        assert updated.assigned_to is None
        assert updated.version == 3
        assert store_group.activity_log.by_task(task.task_id)[-1].details == "Unassigned"

    def test_mutations_allowed_after_completion(
        self, task_service: TaskService, alice: User, bob: User
    ):
        """非状态变更不受状态机约束"""
        task = task_service.create_task("Review", "", alice)
        task_service.change_status(task.task_id, TaskStatus.IN_PROGRESS, alice)
        task_service.change_status(task.task_id, TaskStatus.COMPLETED, alice)

        updated = task_service.assign_task(task.task_id, bob.user_id, alice)
        assert updated.status == TaskStatus.COMPLETED
        assert updated.version == 4


class TestOtherMutations:
    """优先级、截止时间、评论"""

    def test_change_priority(self, task_service: TaskService, store_group: StoreGroup, alice: User):
        task = task_service.create_task("Fix bug", "", alice)
        updated = task_service.change_priority(task.task_id, Priority.CRITICAL, alice)

        assert updated.priority == Priority.CRITICAL
        assert updated.title == task.title
        assert store_group.activity_log.by_task(task.task_id)[-1].details == "MEDIUM -> CRITICAL"

    def test_set_and_remove_due_date(
        self, task_service: TaskService, store_group: StoreGroup, alice: User
    ):
        task = task_service.create_task("Fix bug", "", alice)
        due = datetime(2026, 4, 1, 12, 0, tzinfo=UTC)

        with_due = task_service.set_due_date(task.task_id, due, alice)
        assert with_due.due_date == due
        assert store_group.activity_log.by_task(task.task_id)[-1].details == due.isoformat()

        without_due = task_service.set_due_date(task.task_id, None, alice)
        assert without_due.due_date is None
        assert store_group.activity_log.by_task(task.task_id)[-1].details == "Deadline removed"

    def test_comments_accumulate_in_order(
        self, task_service: TaskService, store_group: StoreGroup, alice: User, bob: User
    ):
        task = task_service.create_task("Discuss", "", alice)
        task_service.add_comment(task.task_id, "first", alice)
        updated = task_service.add_comment(task.task_id, "second", bob)

        assert [c.message for c in updated.comments] == ["first", "second"]
        assert updated.comments[1].author == bob
        # 旧版本的评论序列不变
        history = store_group.version_store.history(task.task_id)
        assert [len(v.comments) for v in history] == [0, 1, 2]

        event = store_group.activity_log.by_task(task.task_id)[-1]
        assert event.activity_type == ActivityType.COMMENT_ADDED
        assert event.details == "second"
        assert event.actor == bob

    def test_comment_details_truncated(self, store_group: StoreGroup, alice: User):
        service = TaskService(store_group, config=TaskLedgerConfig(details_preview_length=5))
        task = service.create_task("Discuss", "", alice)
        updated = service.add_comment(task.task_id, "abcdefghij", alice)

        assert updated.comments[-1].message == "abcdefghij"
        assert store_group.activity_log.by_task(task.task_id)[-1].details == "abcde"

    def test_blank_comment_writes_nothing(
        self, task_service: TaskService, store_group: StoreGroup, alice: User
    ):
        task = task_service.create_task("Discuss", "", alice)
        with pytest.raises(PreconditionViolationError):
            task_service.add_comment(task.task_id, "  ", alice)
        assert _counts(store_group, task.task_id) == (1, 1)

    def test_missing_actor_rejected(self, task_service: TaskService, alice: User):
        task = task_service.create_task("Discuss", "", alice)
        with pytest.raises(PreconditionViolationError):
            task_service.change_priority(task.task_id, Priority.HIGH, None)


class TestVersioningProperties:
    """版本与审计不变量"""

    def test_each_mutation_adds_one_version_and_one_event(
        self,
        task_service: TaskService,
        store_group: StoreGroup,
        alice: User,
        bob: User,
        clock: ManualClock,
    ):
        task = task_service.create_task("Everything", "", alice)
        operations = [
            lambda: task_service.assign_task(task.task_id, bob.user_id, alice),
            lambda: task_service.change_priority(task.task_id, Priority.HIGH, alice),
            lambda: task_service.set_due_date(task.task_id, clock.now() + timedelta(days=2), alice),
            lambda: task_service.add_comment(task.task_id, "note", bob),
            lambda: task_service.change_status(task.task_id, TaskStatus.IN_PROGRESS, bob),
            lambda: task_service.unassign_task(task.task_id, alice),
        ]
        for operation in operations:
            previous = task_service.view_task(task.task_id)
            before = _counts(store_group, task.task_id)
            clock.advance(minutes=1)

            updated = operation()

            assert _counts(store_group, task.task_id) == (before[0] + 1, before[1] + 1)
            assert updated.version == previous.version + 1
            assert store_group.activity_log.by_task(task.task_id)[-1].ts >= previous.updated_at

        history = task_service.get_task_history(task.task_id)
        assert [v.version for v in history] == list(range(1, 8))
        assert history[-1] == task_service.view_task(task.task_id)
        assert {v.created_at for v in history} == {task.created_at}
        assert verify_history(history)

    def test_updated_at_never_moves_backwards(
        self, task_service: TaskService, alice: User, clock: ManualClock
    ):
        task = task_service.create_task("Clock skew", "", alice)
        clock.set(task.updated_at - timedelta(hours=1))
        updated = task_service.change_priority(task.task_id, Priority.LOW, alice)
        assert updated.updated_at >= task.updated_at

    def test_get_activity_unknown_task(self, task_service: TaskService):
        with pytest.raises(NotFoundError):
            task_service.get_activity("missing")


class TestInputValidation:
    """非法输入在写入前被拒绝"""

    def test_naive_due_date_on_create_writes_nothing(
        self, task_service: TaskService, store_group: StoreGroup, alice: User
    ):
        with pytest.raises(ValidationError):
            task_service.create_task("Due", "", alice, due_date=datetime(2026, 5, 1))
        assert len(store_group.version_store) == 0
        assert len(store_group.activity_log) == 0

    def test_naive_due_date_update_writes_nothing(
        self,
        task_service: TaskService,
        query_service: TaskQueryService,
        store_group: StoreGroup,
        alice: User,
        clock: ManualClock,
    ):
        task = task_service.create_task("Due", "", alice)
        naive = (clock.now() - timedelta(days=2)).replace(tzinfo=None)
        with pytest.raises(ValidationError):
            task_service.set_due_date(task.task_id, naive, alice)

        assert _counts(store_group, task.task_id) == (1, 1)
        # 查询不受影响
        assert query_service.find_overdue_tasks() == []
        assert query_service.sort_tasks(query_service.list_latest(), "dueDate") == [task]

    def test_single_string_tag(self, task_service: TaskService, alice: User):
        task = task_service.create_task("Tagged", "", alice, tags="backend")
        assert task.tags == ("backend",)

    def test_unknown_task_does_not_allocate_lock(self, task_service: TaskService, alice: User):
        with pytest.raises(NotFoundError):
            task_service.change_priority("missing", Priority.HIGH, alice)
        assert "missing" not in task_service._task_locks

    def test_comment_shares_version_timestamp(self, alice: User):
        """评论时间、版本 updated_at 与事件时间来自同一次时钟读数"""
        store_group = create_store_group(TickingClock())
        service = TaskService(store_group)
        task = service.create_task("Discuss", "", alice)

        updated = service.add_comment(task.task_id, "hello", alice)
        event = store_group.activity_log.by_task(task.task_id)[-1]
        assert updated.comments[-1].created_at == updated.updated_at == event.ts
