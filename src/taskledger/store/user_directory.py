"""UserDirectory 内存实现

保存每个用户的当前快照；save() 以 user_id 覆盖旧快照。
"""

import threading

from ..models.user import User


class InMemoryUserDirectory:
    """UserDirectory 的内存实现"""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[str, User] = {}

    def save(self, user: User) -> User:
        """新增或覆盖用户快照"""
        with self._lock:
            self._users[user.user_id] = user
        return user

    def find_user_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def find_user_by_email(self, email: str) -> User | None:
        """按邮箱查询（忽略大小写）"""
        wanted = email.casefold()
        with self._lock:
            for user in self._users.values():
                if user.email.casefold() == wanted:
                    return user
        return None

    def list_users(self) -> list[User]:
        with self._lock:
            return list(self._users.values())
