"""CLI 入口模块 -- python -m taskledger <command>

支持的命令：
  demo  在内存中演示任务生命周期、历史版本、审计事件与查询
"""

import sys
from datetime import timedelta

from .clock import ManualClock
from .config import load_config
from .exceptions import InvalidTransitionError
from .logging_config import setup_logging
from .models import Priority, Role, Task, TaskStatus
from .projection import verify_history
from .services import TaskQueryService, TaskService, UserService
from .store import create_store_group


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m taskledger <command>")
        print("命令:")
        print("  demo  演示任务生命周期与查询")
        sys.exit(1)

    command = sys.argv[1]

    if command == "demo":
        config = load_config()
        setup_logging(config)
        run_demo()
    else:
        print(f"未知命令: {command}")
        print("可用命令: demo")
        sys.exit(1)


def _describe(task: Task) -> str:
    assignee = task.assigned_to.email if task.assigned_to else "-"
    due = task.due_date.isoformat() if task.due_date else "-"
    return (
        f"v{task.version} [{task.status.value}] {task.title} "
        f"priority={task.priority.value} assignee={assignee} due={due} "
        f"tags={','.join(task.tags) or '-'} comments={len(task.comments)}"
    )


def run_demo() -> None:
    """执行演示流程"""
    clock = ManualClock()
    stores = create_store_group(clock)
    users = UserService(stores)
    tasks = TaskService(stores)
    queries = TaskQueryService(stores)

    alice = users.create_user("Alice", "alice@example.com", Role.MANAGER)
    bob = users.create_user("Bob", "bob@example.com", Role.MEMBER)

    clock.advance(minutes=5)
    report = tasks.create_task(
        "Quarterly report",
        "Collect numbers and write the summary",
        alice,
        priority=Priority.HIGH,
        tags=["finance", "Q1"],
    )
    clock.advance(minutes=5)
    tasks.assign_task(report.task_id, bob.user_id, alice)
    clock.advance(minutes=5)
    tasks.change_status(report.task_id, TaskStatus.IN_PROGRESS, bob)

    clock.advance(minutes=5)
    try:
        tasks.change_status(report.task_id, TaskStatus.OPEN, bob)
    except InvalidTransitionError as e:
        print(f"拒绝非法流转: {e}")

    clock.advance(minutes=5)
    tasks.add_comment(report.task_id, "Draft uploaded", bob)
    clock.advance(minutes=5)
    tasks.change_status(report.task_id, TaskStatus.COMPLETED, bob)

    cleanup = tasks.create_task("Clean up backlog", "", bob, priority=Priority.LOW)
    tasks.set_due_date(cleanup.task_id, clock.now() + timedelta(days=1), bob)
    clock.advance(days=3, hours=2)

    print("\n== 版本历史 ==")
    history = tasks.get_task_history(report.task_id)
    for version in history:
        print("  " + _describe(version))
    print(f"  历史校验: {'通过' if verify_history(history) else '失败'}")

    print("\n== 审计事件 ==")
    for event in tasks.get_activity(report.task_id):
        details = f" ({event.details})" if event.details else ""
        print(f"  {event.ts.isoformat()} {event.activity_type.value} by {event.actor.name}{details}")

    print("\n== 逾期任务 ==")
    for overdue in queries.find_overdue_tasks():
        print(f"  {overdue.task.title}: 逾期 {overdue.days_overdue} 天")

    print("\n== 按优先级降序 ==")
    for task in queries.sort_tasks(queries.list_latest(), "priority", ascending=False):
        print("  " + _describe(task))


if __name__ == "__main__":
    main()
