"""User Domain Model

User 由外部用户目录拥有，Task/Comment/ActivityEvent 只持有引用。
相等性与哈希按 user_id 判定，同一用户的不同快照视为同一身份。
"""

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from .enums import Role


class User(BaseModel):
    """User 数据模型（不可变）"""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(description="显示名称")
    email: str = Field(description="邮箱")
    role: Role = Field(default=Role.MEMBER, description="角色")
    active: bool = Field(default=True, description="是否启用（软删除标记）")
    created_at: AwareDatetime = Field(description="创建时间")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.user_id == other.user_id

    def __hash__(self) -> int:
        return hash(self.user_id)
