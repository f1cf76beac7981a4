"""TaskLedgerConfig -- 配置加载

从环境变量加载配置，非法值降级为默认值并记录 warning。

环境变量:
    TASKLEDGER_LOG_FORMAT: 日志渲染模式（dev/json）
    TASKLEDGER_LOG_LEVEL: 日志级别（默认 INFO）
    TASKLEDGER_DEFAULT_PRIORITY: 新建任务的默认优先级（默认 MEDIUM）
    TASKLEDGER_DETAILS_PREVIEW_LENGTH: 事件 details 中评论预览的最大长度
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, ValidationError

from .models.enums import Priority

log = structlog.get_logger()

DEFAULT_DETAILS_PREVIEW_LENGTH = 200


class TaskLedgerConfig(BaseModel):
    """taskledger 配置"""

    log_format: Literal["dev", "json"] = Field(
        default="dev",
        description="日志渲染模式：dev / json",
    )
    log_level: str = Field(default="INFO", description="日志级别")
    default_priority: Priority = Field(
        default=Priority.MEDIUM,
        description="新建任务的默认优先级",
    )
    details_preview_length: int = Field(
        default=DEFAULT_DETAILS_PREVIEW_LENGTH,
        ge=1,
        description="COMMENT_ADDED 事件 details 截断长度",
    )


def load_config() -> TaskLedgerConfig:
    """从环境变量加载配置

    Returns:
        TaskLedgerConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKLEDGER_LOG_FORMAT"):
        kwargs["log_format"] = val.lower()

    if val := os.environ.get("TASKLEDGER_LOG_LEVEL"):
        kwargs["log_level"] = val.upper()

    if val := os.environ.get("TASKLEDGER_DEFAULT_PRIORITY"):
        kwargs["default_priority"] = val.upper()

    if val := os.environ.get("TASKLEDGER_DETAILS_PREVIEW_LENGTH"):
        try:
            kwargs["details_preview_length"] = int(val)
        except ValueError:
            log.warning(
                "invalid_config_value",
                env_var="TASKLEDGER_DETAILS_PREVIEW_LENGTH",
                value=val,
                fallback=DEFAULT_DETAILS_PREVIEW_LENGTH,
            )

    # 逐字段校验，单个非法值不阻塞启动
    valid: dict = {}
    for key, value in kwargs.items():
        try:
            TaskLedgerConfig(**{key: value})
        except ValidationError:
            log.warning("invalid_config_value", field=key, value=value)
            continue
        valid[key] = value

    return TaskLedgerConfig(**valid)
