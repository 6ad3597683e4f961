"""工具模块."""

from postframe.utils.exceptions import (
    AppException,
    ConfigError,
    DecodeError,
    DimensionError,
    InvalidConfigValueError,
    PatternCreationError,
    SurfaceUnavailableError,
)
from postframe.utils.logger import setup_logger

__all__ = [
    "AppException",
    "ConfigError",
    "DecodeError",
    "DimensionError",
    "InvalidConfigValueError",
    "PatternCreationError",
    "SurfaceUnavailableError",
    "setup_logger",
]
