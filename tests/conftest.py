"""全局 pytest 配置 -- 手动时钟 + 内存 Store 组 + 服务实例 fixture"""

import logging
from datetime import UTC, datetime

import pytest
import structlog
from taskledger.clock import ManualClock
from taskledger.models import Role, User
from taskledger.services import TaskQueryService, TaskService, UserService
from taskledger.store import StoreGroup, create_store_group

START = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> ManualClock:
    """提供确定性时钟"""
    return ManualClock(START)


@pytest.fixture
def store_group(clock: ManualClock) -> StoreGroup:
    """提供共享时钟的内存 Store 组"""
    return create_store_group(clock)


@pytest.fixture
def task_service(store_group: StoreGroup) -> TaskService:
    return TaskService(store_group)


@pytest.fixture
def query_service(store_group: StoreGroup) -> TaskQueryService:
    return TaskQueryService(store_group)


@pytest.fixture
def user_service(store_group: StoreGroup) -> UserService:
    return UserService(store_group)


@pytest.fixture
def alice(user_service: UserService) -> User:
    """任务创建者"""
    return user_service.create_user("Alice", "alice@example.com", Role.MANAGER)


@pytest.fixture
def bob(user_service: UserService) -> User:
    """任务负责人"""
    return user_service.create_user("Bob", "u@x.com", Role.MEMBER)


@pytest.fixture
def restore_logging():
    """测试结束后恢复 root logger 与 structlog 默认配置"""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    structlog.reset_defaults()
