"""应用设置模型."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from postframe.models.layer_options import CanvasFormat
from postframe.utils.constants import (
    DEFAULT_OUTPUT_QUALITY,
    MAX_PATTERN_PIXELS,
    OPTIONS_FILE,
)
from postframe.utils.logger import enable_file_logging, set_log_level, setup_logger

logger = setup_logger(__name__)


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量（前缀 ``POSTFRAME_``）和 .env 文件加载配置。

    Attributes:
        log_level: 日志级别
        log_to_file: 是否写入日志文件
        default_format: 默认画布规格
        max_pattern_pixels: 平铺图块允许的最大像素数
        options_file: 选项持久化文件路径
        output_quality: 导出 JPEG/WEBP 的质量
    """

    model_config = SettingsConfigDict(
        env_prefix="POSTFRAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="日志级别")

    log_to_file: bool = Field(default=False, description="写入日志文件")

    default_format: CanvasFormat = Field(
        default=CanvasFormat.SQUARE,
        description="默认画布规格",
    )

    max_pattern_pixels: int = Field(
        default=MAX_PATTERN_PIXELS,
        ge=1,
        description="平铺图案最大像素数",
    )

    options_file: Optional[Path] = Field(
        default=None,
        description="选项持久化文件路径",
    )

    output_quality: int = Field(
        default=DEFAULT_OUTPUT_QUALITY,
        ge=1,
        le=100,
        description="导出质量",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @property
    def options_path(self) -> Path:
        """获取选项文件路径."""
        return self.options_file or OPTIONS_FILE

    def apply_logging(self) -> None:
        """按设置调整日志级别，并按需启用文件日志."""
        set_log_level(self.log_level)
        if self.log_to_file:
            log_dir = enable_file_logging()
            logger.debug(f"文件日志已启用: {log_dir}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """获取全局设置实例.

    首次调用时从环境加载并应用日志设置。
    """
    settings = Settings()
    settings.apply_logging()
    logger.debug(
        f"应用设置加载完成: log_level={settings.log_level}, "
        f"default_format={settings.default_format.value}"
    )
    return settings
