"""日志工具模块.

为合成引擎提供统一的日志记录器。所有模块通过 ``setup_logger(__name__)``
获取挂在 ``postframe`` 命名空间下的记录器，处理器只安装在包级记录器上，
不会改动宿主应用的根日志配置。

Features:
    - 控制台彩色输出
    - 可选的文件日志轮转（普通日志与错误日志分开）
    - 全局日志级别管理
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from postframe.utils.constants import APP_NAME, LOG_DIR

# 日志格式
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 日志文件配置
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB
LOG_FILE_BACKUP_COUNT = 3

# 全局状态
_log_level: int = logging.INFO
_package_configured: bool = False
_file_handlers: list[logging.Handler] = []


class ColoredFormatter(logging.Formatter):
    """彩色日志格式化器."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """格式化日志记录.

        只在副本上着色，避免颜色码泄漏到文件处理器。
        """
        color = self.COLORS.get(record.levelno, "")
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _package_logger() -> logging.Logger:
    """获取包级日志记录器，首次调用时安装控制台处理器."""
    global _package_configured
    logger = logging.getLogger(APP_NAME)
    if _package_configured:
        return logger

    logger.setLevel(_log_level)
    logger.propagate = False
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_log_level)
    console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(console)

    _package_configured = True
    return logger


def enable_file_logging(log_dir: Optional[Path] = None) -> Path:
    """启用文件日志.

    在 ``log_dir`` 下写入 ``postframe.log``，ERROR 及以上额外写入
    ``error.log``。重复调用会替换之前的文件处理器。

    Args:
        log_dir: 日志目录，默认使用应用数据目录下的 logs

    Returns:
        实际使用的日志目录
    """
    log_dir = Path(log_dir) if log_dir is not None else LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = _package_logger()
    disable_file_logging()

    main_handler = RotatingFileHandler(
        log_dir / f"{APP_NAME}.log",
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    main_handler.setLevel(_log_level)
    main_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    error_handler = RotatingFileHandler(
        log_dir / "error.log",
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    for handler in (main_handler, error_handler):
        logger.addHandler(handler)
        _file_handlers.append(handler)

    return log_dir


def disable_file_logging() -> None:
    """移除并关闭所有文件处理器."""
    logger = logging.getLogger(APP_NAME)
    for handler in _file_handlers:
        logger.removeHandler(handler)
        handler.close()
    _file_handlers.clear()


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """设置并返回日志记录器.

    Args:
        name: 日志记录器名称，通常使用 __name__
        level: 日志级别，默认继承包级配置

    Returns:
        配置好的日志记录器
    """
    _package_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_log_level(level: int | str) -> None:
    """设置全局日志级别."""
    global _log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _log_level = level

    logger = _package_logger()
    logger.setLevel(level)
    for handler in logger.handlers:
        if handler.level != logging.ERROR:
            handler.setLevel(level)


def get_log_level() -> int:
    """获取当前全局日志级别."""
    return _log_level


def get_log_level_name() -> str:
    """获取当前日志级别名称."""
    return logging.getLevelName(_log_level)
