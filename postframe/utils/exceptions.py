"""自定义异常类."""

from __future__ import annotations


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


class InvalidConfigValueError(ConfigError):
    """配置值无效异常."""

    def __init__(self, key: str, value: str, reason: str = "") -> None:
        self.key = key
        msg = f"配置项 '{key}' 的值 '{value}' 无效"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# ===================
# 几何相关异常
# ===================
class DimensionError(AppException):
    """图片尺寸无效异常（宽或高为 0）."""

    def __init__(self, width: float, height: float) -> None:
        self.width = width
        self.height = height
        super().__init__(
            f"图片尺寸无效 ({width}x{height})，宽高必须大于 0",
            "DIMENSION_ERROR",
        )


# ===================
# 解码相关异常
# ===================
class DecodeError(AppException):
    """图片解码失败异常."""

    def __init__(self, message: str, role: str | None = None) -> None:
        self.role = role
        if role:
            message = f"{role} 图层解码失败: {message}"
        super().__init__(message, "DECODE_ERROR")


# ===================
# 绘制相关异常
# ===================
class SurfaceUnavailableError(AppException):
    """目标画布无法提供绘制上下文异常."""

    def __init__(self, message: str = "目标画布无法提供绘制上下文") -> None:
        super().__init__(message, "SURFACE_UNAVAILABLE")


class PatternCreationError(AppException):
    """平铺图案创建失败异常."""

    def __init__(self, message: str) -> None:
        super().__init__(f"无法创建平铺图案: {message}", "PATTERN_ERROR")
