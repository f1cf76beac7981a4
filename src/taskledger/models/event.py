"""ActivityEvent Domain Model

审计事件 append-only，不允许更新或删除。
仅作为任务变更成功的副产品同步生成。
"""

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from .enums import ActivityType
from .user import User


class ActivityEvent(BaseModel):
    """ActivityEvent 数据模型

    event_id 使用 ULID 格式，时间有序。
    details 为变更描述，例如 "OPEN -> IN_PROGRESS"，可为空。
    """

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(description="唯一标识，ULID 格式，时间有序")
    task_id: str = Field(description="关联的 Task ID")
    activity_type: ActivityType = Field(description="事件类型")
    actor: User = Field(description="操作者")
    ts: AwareDatetime = Field(description="事件时间戳")
    details: str = Field(default="", description="变更描述")
