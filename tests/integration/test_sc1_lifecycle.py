"""SC-1 任务生命周期集成测试

创建 -> 分配 -> IN_PROGRESS -> 非法回退被拒 -> COMPLETED，
验证版本历史与审计事件。
"""

import pytest
from taskledger.clock import ManualClock
from taskledger.exceptions import InvalidTransitionError
from taskledger.models import ActivityType, Priority, TaskStatus, User
from taskledger.services import TaskQueryService, TaskService
from taskledger.store import StoreGroup


class TestSC1Lifecycle:
    """SC-1: 完整生命周期"""

    def test_lifecycle_e2e(
        self,
        task_service: TaskService,
        store_group: StoreGroup,
        alice: User,
        bob: User,
        clock: ManualClock,
    ):
        task = task_service.create_task("Quarterly report", "Numbers + summary", alice)
        assert (task.status, task.version) == (TaskStatus.OPEN, 1)

        clock.advance(minutes=1)
        assigned = task_service.assign_task(task.task_id, bob.user_id, alice)
        assert assigned.version == 2

        clock.advance(minutes=1)
        started = task_service.change_status(task.task_id, TaskStatus.IN_PROGRESS, bob)
        assert started.version == 3

        clock.advance(minutes=1)
        with pytest.raises(InvalidTransitionError):
            task_service.change_status(task.task_id, TaskStatus.OPEN, bob)
        assert task_service.view_task(task.task_id).version == 3

        clock.advance(minutes=1)
        done = task_service.change_status(task.task_id, TaskStatus.COMPLETED, bob)
        assert done.version == 4

        history = store_group.version_store.history(task.task_id)
        assert [v.version for v in history] == [1, 2, 3, 4]
        assert history[-1] == store_group.version_store.latest(task.task_id)

        events = store_group.activity_log.by_task(task.task_id)
        assert [e.activity_type for e in events] == [
            ActivityType.TASK_CREATED,
            ActivityType.ASSIGNEE_CHANGED,
            ActivityType.STATUS_CHANGED,
            ActivityType.STATUS_CHANGED,
        ]
        assert [e.details for e in events] == [
            "",
            "Assigned to u@x.com",
            "OPEN -> IN_PROGRESS",
            "IN_PROGRESS -> COMPLETED",
        ]
        timestamps = [e.ts for e in events]
        assert timestamps == sorted(timestamps)

    def test_history_invariants_across_many_tasks(
        self,
        task_service: TaskService,
        store_group: StoreGroup,
        alice: User,
        bob: User,
        clock: ManualClock,
    ):
        """多任务交错变更后每个任务的历史仍连续"""
        tasks = [task_service.create_task(f"Task {i}", "", alice) for i in range(3)]
        for round_no in range(3):
            for task in tasks:
                clock.advance(seconds=30)
                if round_no == 0:
                    task_service.assign_task(task.task_id, bob.user_id, alice)
                elif round_no == 1:
                    task_service.change_priority(task.task_id, Priority.HIGH, alice)
                else:
                    task_service.add_comment(task.task_id, f"round {round_no}", bob)

        for task in tasks:
            history = store_group.version_store.history(task.task_id)
            assert [v.version for v in history] == [1, 2, 3, 4]
            assert {v.created_at for v in history} == {task.created_at}
            assert {v.created_by for v in history} == {alice}
            assert len(store_group.activity_log.by_task(task.task_id)) == 4


class TestSC2Queries:
    """SC-2: 查询只看到最新版本"""

    def test_sort_scenario(self, task_service: TaskService, query_service: TaskQueryService, alice):
        low = task_service.create_task("low", "", alice, priority=Priority.LOW)
        critical = task_service.create_task("critical", "", alice, priority=Priority.LOW)
        medium = task_service.create_task("medium", "", alice, priority=Priority.MEDIUM)
        task_service.change_priority(critical.task_id, Priority.CRITICAL, alice)

        ordered = query_service.sort_tasks(
            query_service.list_latest(), "priority", ascending=False
        )
        assert [t.task_id for t in ordered] == [critical.task_id, medium.task_id, low.task_id]
        assert [t.priority for t in ordered] == [
            Priority.CRITICAL,
            Priority.MEDIUM,
            Priority.LOW,
        ]
