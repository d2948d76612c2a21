"""
daylog 配置模块

从环境变量（DAYLOG_ 前缀）和 .env 读取。
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """日志配置"""

    # 1=Debug 2=Info 3=Error，0 表示默认 Info，其他值被忽略
    level: int = Field(default=0, description="日志级别 (1=Debug, 2=Info, 3=Error)")
    log_dir: str = Field(default="", description="日志目录（空表示当前工作目录）")
    max_days: int = Field(default=7, description="日志保留天数")
    queue_size: int = Field(default=3000, ge=1, description="写入队列容量")
    sticky_error_level: bool = Field(
        default=True,
        description="errorf 是否把全局级别永久改为 Error（设为 false 则只影响当前行）",
    )
    max_total_size_mb: Optional[float] = Field(
        default=None, description="日志目录总大小上限（MB），不设置则不限制"
    )

    # daylog 自身的诊断输出（stderr）
    diagnostic_level: str = Field(default="WARNING", description="诊断日志级别")

    model_config = {
        "env_prefix": "DAYLOG_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "env_ignore_empty": True,
    }

    @property
    def log_dir_path(self) -> Path:
        """日志目录完整路径"""
        return Path(self.log_dir or ".").absolute()


# 全局配置实例
settings = Settings()
