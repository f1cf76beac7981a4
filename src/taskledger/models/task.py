"""Task Domain Model

Task 是版本化实体：同一 task_id 的每次变更都生成一个新的不可变版本，
version 最大者为权威的"最新版本"，历史版本永久保留。

created_at 在 version 1 确定并沿用到后续所有版本；
updated_at 在每个新版本生成时打上当前时间。
"""

from collections.abc import Iterable

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator

from .enums import Priority, TaskStatus
from .user import User


def normalize_tags(tags: str | Iterable[str]) -> tuple[str, ...]:
    """标签归一化：去空白、小写、去重，保留首次出现顺序

    单个字符串视为一个标签，不按字符拆分。
    """
    if isinstance(tags, str):
        tags = (tags,)
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


class Comment(BaseModel):
    """评论（不可变），随新版本追加到 Task.comments 末尾"""

    model_config = ConfigDict(frozen=True)

    comment_id: str = Field(description="唯一标识，ULID 格式")
    author: User = Field(description="作者")
    message: str = Field(description="评论内容")
    created_at: AwareDatetime = Field(description="创建时间")


class Task(BaseModel):
    """Task 数据模型（单个版本快照）

    实例构建后不可修改；新版本通过 next_version() 产生。
    """

    model_config = ConfigDict(frozen=True)

    task_id: str = Field(description="逻辑任务标识，所有版本共享")
    version: int = Field(default=1, ge=1, description="版本号，从 1 开始逐次加 1")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    status: TaskStatus = Field(default=TaskStatus.OPEN, description="当前状态")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    created_by: User = Field(description="创建者，所有版本不变")
    assigned_to: User | None = Field(default=None, description="负责人，None 表示未分配")
    due_date: AwareDatetime | None = Field(default=None, description="截止时间")
    tags: tuple[str, ...] = Field(default=(), description="标签（集合语义，保留展示顺序）")
    comments: tuple[Comment, ...] = Field(default=(), description="评论序列，只追加")
    created_at: AwareDatetime = Field(description="创建时间，version 1 确定")
    updated_at: AwareDatetime = Field(description="本版本生成时间")

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value: str | Iterable[str]) -> tuple[str, ...]:
        return normalize_tags(value)

    @property
    def is_assigned(self) -> bool:
        return self.assigned_to is not None

    @property
    def tag_set(self) -> frozenset[str]:
        return frozenset(self.tags)
