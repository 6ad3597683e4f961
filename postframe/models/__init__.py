"""数据模型模块."""

from postframe.models.layer_options import (
    # 枚举
    AnchorPosition,
    CanvasFormat,
    FitMode,
    WatermarkCorner,
    # 选项
    BackgroundOptions,
    ForegroundOptions,
    GeneralOptions,
    WatermarkOptions,
    # 默认值
    DEFAULT_BACKGROUND_OPTIONS,
    DEFAULT_FOREGROUND_OPTIONS,
    DEFAULT_GENERAL_OPTIONS,
    DEFAULT_WATERMARK_OPTIONS,
    clamp_opacity,
)
from postframe.models.rect import ContainSizing, CoverSizing, Rect, Size, Sizing

__all__ = [
    # 枚举
    "AnchorPosition",
    "CanvasFormat",
    "FitMode",
    "WatermarkCorner",
    # 选项
    "BackgroundOptions",
    "ForegroundOptions",
    "GeneralOptions",
    "WatermarkOptions",
    # 默认值
    "DEFAULT_BACKGROUND_OPTIONS",
    "DEFAULT_FOREGROUND_OPTIONS",
    "DEFAULT_GENERAL_OPTIONS",
    "DEFAULT_WATERMARK_OPTIONS",
    "clamp_opacity",
    # 几何类型
    "ContainSizing",
    "CoverSizing",
    "Rect",
    "Size",
    "Sizing",
]
