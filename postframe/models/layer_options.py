"""图层选项数据模型.

描述背景、前景、水印三个图层以及画布规格的用户选项。选项由 UI 层在进程内
传入，也可以通过选项存储序列化为 JSON 持久化。

Features:
    - 背景滤镜、平铺、复用前景图
    - 前景适应模式、锚点与旋转
    - 水印透明度、角落位置与缩放
    - 画布规格（1:1 / 4:5）
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from postframe.utils.constants import DEFAULT_BRIGHTNESS


# ===================
# 枚举定义
# ===================


class FitMode(str, Enum):
    """图片适应模式."""

    CONTAIN = "contain"  # 保持比例，完整显示，不放大
    COVER = "cover"  # 保持比例，填满区域


class AnchorPosition(str, Enum):
    """cover 模式下的锚点位置."""

    START = "start"
    CENTER = "center"
    END = "end"


class WatermarkCorner(str, Enum):
    """水印所在角落."""

    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def is_left(self) -> bool:
        return self in (WatermarkCorner.TOP_LEFT, WatermarkCorner.BOTTOM_LEFT)

    @property
    def is_top(self) -> bool:
        return self in (WatermarkCorner.TOP_LEFT, WatermarkCorner.TOP_RIGHT)


class CanvasFormat(str, Enum):
    """画布规格."""

    SQUARE = "1:1-1080x1080px"
    PORTRAIT = "4:5-1080x1350px"

    @property
    def size(self) -> tuple[int, int]:
        """解析规格中的像素尺寸.

        Returns:
            (宽, 高) 元组
        """
        dims = self.value.split("-", 1)[1].removesuffix("px")
        width, height = dims.split("x")
        return (int(width), int(height))

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]


RotationDegrees = Literal[0, 90, 180, 270]


# ===================
# 图层选项
# ===================


class BackgroundOptions(BaseModel):
    """背景图层选项.

    repeat 为真时跳过适应模式计算，改为平铺。reuse_foreground 为真时背景层
    绘制前景图片（cover 模式），常配合模糊作为前景自身的背景。

    Attributes:
        blur: 模糊半径（像素），0 表示不模糊
        brightness: 亮度百分比，100 表示不变
        repeat: 是否平铺
        reuse_foreground: 是否复用前景图片作为背景
        scale: 缩放倍数
    """

    blur: float = Field(default=0, ge=0, description="模糊半径")
    brightness: float = Field(default=DEFAULT_BRIGHTNESS, ge=0, description="亮度百分比")
    repeat: bool = Field(default=False, description="平铺")
    reuse_foreground: bool = Field(default=False, description="复用前景图")
    scale: float = Field(default=1.0, gt=0, description="缩放倍数")

    model_config = ConfigDict(use_enum_values=False)

    @property
    def fit_mode(self) -> FitMode:
        """背景的适应模式：复用前景时为 cover，否则为 contain."""
        return FitMode.COVER if self.reuse_foreground else FitMode.CONTAIN


class ForegroundOptions(BaseModel):
    """前景图层选项.

    Attributes:
        mode: 适应模式
        position: cover 模式下的锚点
        rotation_in_degrees: 顺时针旋转角度，仅支持直角
    """

    mode: FitMode = Field(default=FitMode.CONTAIN, description="适应模式")
    position: AnchorPosition = Field(default=AnchorPosition.CENTER, description="锚点")
    rotation_in_degrees: RotationDegrees = Field(default=0, description="旋转角度")

    model_config = ConfigDict(use_enum_values=False)


class WatermarkOptions(BaseModel):
    """水印图层选项.

    opacity 按原值保存，绘制时才截断到 [0, 1]。
    """

    opacity: float = Field(default=1.0, description="不透明度")
    position: WatermarkCorner = Field(
        default=WatermarkCorner.BOTTOM_RIGHT,
        description="角落位置",
    )
    scale: float = Field(default=1.0, gt=0, description="相对原始尺寸的缩放倍数")

    model_config = ConfigDict(use_enum_values=False)

    @property
    def effective_opacity(self) -> float:
        return clamp_opacity(self.opacity)


class GeneralOptions(BaseModel):
    """通用选项."""

    format: CanvasFormat = Field(default=CanvasFormat.SQUARE, description="画布规格")

    model_config = ConfigDict(use_enum_values=False)


def clamp_opacity(value: float) -> float:
    """把不透明度截断到 [0, 1]."""
    return max(0.0, min(1.0, float(value)))


# ===================
# 默认值
# ===================

DEFAULT_BACKGROUND_OPTIONS = BackgroundOptions()
DEFAULT_FOREGROUND_OPTIONS = ForegroundOptions()
DEFAULT_WATERMARK_OPTIONS = WatermarkOptions()
DEFAULT_GENERAL_OPTIONS = GeneralOptions()
