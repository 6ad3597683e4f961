"""错误处理工具模块.

把合成过程中的异常映射为面向用户的提示信息。
"""

from __future__ import annotations

from typing import Any

from postframe.utils.exceptions import (
    AppException,
    ConfigError,
    DecodeError,
    DimensionError,
    PatternCreationError,
    SurfaceUnavailableError,
)
from postframe.utils.logger import setup_logger

logger = setup_logger(__name__)


# 错误消息映射
ERROR_MESSAGES = {
    DecodeError: "图片无法读取，请确认文件格式后重新上传",
    DimensionError: "图片尺寸无效，宽高不能为 0",
    SurfaceUnavailableError: "画布不可用，请刷新后重试",
    PatternCreationError: "背景图过大，无法平铺，请关闭平铺或更换图片",
    ConfigError: "配置错误，请检查选项设置",
}


def get_user_friendly_message(exception: Exception) -> str:
    """获取用户友好的错误消息.

    Args:
        exception: 异常对象

    Returns:
        用户友好的错误消息
    """
    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    if isinstance(exception, AppException):
        return exception.message

    return "合成失败，请稍后重试"


def get_error_details(exception: Exception) -> dict[str, Any]:
    """获取错误详细信息.

    Args:
        exception: 异常对象

    Returns:
        包含错误详情的字典
    """
    details: dict[str, Any] = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
    }

    if isinstance(exception, AppException):
        details["code"] = exception.code

    # 解码错误附带出错的图层
    if isinstance(exception, DecodeError) and exception.role:
        details["role"] = exception.role

    return details


def handle_exception(
    exception: Exception,
    context: str = "",
    reraise: bool = True,
    log_traceback: bool = True,
) -> None:
    """统一异常处理.

    Args:
        exception: 异常对象
        context: 上下文描述
        reraise: 是否重新抛出异常
        log_traceback: 是否记录堆栈跟踪
    """
    msg = "异常发生"
    if context:
        msg = f"{context}: {msg}"

    if log_traceback:
        logger.exception(f"{msg}: {exception}")
    else:
        logger.error(f"{msg}: {exception}")

    if reraise:
        raise exception
