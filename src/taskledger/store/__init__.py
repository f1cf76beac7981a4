"""taskledger Store -- 内存存储实现

提供工厂函数创建共享时钟与写锁的 Store 实例组。
"""

import threading

from ..clock import Clock, SystemClock
from .activity_log import InMemoryActivityLog
from .transaction import append_version_and_event
from .user_directory import InMemoryUserDirectory
from .version_store import InMemoryVersionStore


class StoreGroup:
    """Store 实例组 -- 共享同一个时钟和写锁"""

    def __init__(
        self,
        clock: Clock,
        user_directory: InMemoryUserDirectory | None = None,
    ) -> None:
        self.clock = clock
        self.write_lock = threading.RLock()
        self.version_store = InMemoryVersionStore()
        self.activity_log = InMemoryActivityLog(clock)
        self.user_directory = user_directory or InMemoryUserDirectory()


def create_store_group(
    clock: Clock | None = None,
    user_directory: InMemoryUserDirectory | None = None,
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        clock: 时间源，缺省使用 SystemClock
        user_directory: 外部用户目录，缺省创建空的内存目录

    Returns:
        StoreGroup 实例
    """
    return StoreGroup(clock=clock or SystemClock(), user_directory=user_directory)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "InMemoryVersionStore",
    "InMemoryActivityLog",
    "InMemoryUserDirectory",
    "append_version_and_event",
]
