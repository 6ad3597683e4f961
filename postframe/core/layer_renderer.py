"""图层渲染模块.

把解码后的图片按解析好的几何信息绘制到画布上下文。每次绘制前保存上下文
状态、绘制后恢复，滤镜和透明度不会泄漏到后续图层。

Features:
    - 普通绘制（源矩形 → 目标矩形，带变换）
    - 背景滤镜绘制（模糊、亮度）
    - 平铺图案绘制（以画布中心为锚点缩放）
    - 水印角落绘制（固定内边距、透明度）
"""

from __future__ import annotations

import math
from typing import Optional

from PIL import Image

from postframe.core.geometry import resolve_rect, rotated_size, tile, validate_size
from postframe.core.surface import FILTER_NONE, PaintContext
from postframe.core.transform import (
    Affine,
    build_pattern_transform,
    build_transform,
    degrees_to_radians,
)
from postframe.models.layer_options import (
    BackgroundOptions,
    FitMode,
    ForegroundOptions,
    WatermarkOptions,
    clamp_opacity,
)
from postframe.models.rect import ContainSizing, CoverSizing, Rect, Size, Sizing
from postframe.utils.constants import DEFAULT_BRIGHTNESS, WATERMARK_PADDING_RATIO
from postframe.utils.logger import setup_logger

logger = setup_logger(__name__)


# ===================
# 纯函数
# ===================


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def build_filter(options: BackgroundOptions) -> str:
    """根据背景选项构建滤镜字符串.

    只包含非默认值，顺序固定为先模糊后亮度；都为默认值时返回 ``none``。

    Args:
        options: 背景选项

    Returns:
        滤镜字符串，如 ``blur(4px) brightness(80%)``
    """
    filters: list[str] = []

    radius = _round_half_up(options.blur)
    if radius != 0:
        filters.append(f"blur({radius}px)")

    if options.brightness != DEFAULT_BRIGHTNESS:
        filters.append(f"brightness({options.brightness:g}%)")

    return " ".join(filters) if filters else FILTER_NONE


def watermark_padding(surface_size: Size) -> int:
    """水印内边距：画布短边的 3%，四舍五入为整数."""
    return _round_half_up(WATERMARK_PADDING_RATIO * min(surface_size))


def watermark_rect(
    natural_size: Size,
    options: WatermarkOptions,
    surface_size: Size,
) -> Rect:
    """计算水印目标矩形.

    尺寸为原始尺寸乘以 scale，位置贴近所选角落并内缩固定边距。

    Args:
        natural_size: 水印原始尺寸
        options: 水印选项
        surface_size: 画布尺寸

    Returns:
        水印目标矩形
    """
    natural_w, natural_h = validate_size(natural_size)
    surface_w, surface_h = surface_size

    w = natural_w * options.scale
    h = natural_h * options.scale
    padding = watermark_padding(surface_size)

    x = padding if options.position.is_left else surface_w - w - padding
    y = padding if options.position.is_top else surface_h - h - padding

    return Rect(x, y, w, h)


def background_sizing(options: BackgroundOptions, surface_size: Size) -> Sizing:
    """背景的尺寸模式：复用前景时 cover（居中），否则 contain."""
    width, height = surface_size
    if options.fit_mode == FitMode.COVER:
        return CoverSizing(width, height)
    return ContainSizing(width, height)


def foreground_sizing(options: ForegroundOptions, surface_size: Size) -> Sizing:
    """前景的尺寸模式."""
    width, height = surface_size
    if options.mode == FitMode.COVER:
        return CoverSizing(width, height, options.position)
    return ContainSizing(width, height)


# ===================
# 图层渲染器
# ===================


class LayerRenderer:
    """图层渲染器.

    Attributes:
        context: 目标画布的绘制上下文
        max_pattern_pixels: 平铺图块的像素上限

    Example:
        >>> renderer = LayerRenderer(canvas.get_context())
        >>> renderer.paint_foreground(image, ForegroundOptions())
    """

    def __init__(
        self,
        context: PaintContext,
        max_pattern_pixels: Optional[int] = None,
    ) -> None:
        self.context = context
        self.max_pattern_pixels = max_pattern_pixels

    @property
    def surface_size(self) -> Size:
        return self.context.canvas.size

    def paint(
        self,
        image: Image.Image,
        target_rect: Rect,
        source_rect: Optional[Rect] = None,
        transform: Optional[Affine] = None,
        filters: Optional[str] = None,
    ) -> None:
        """绘制图片到目标矩形.

        Args:
            image: 源图片
            target_rect: 目标矩形
            source_rect: 源图采样矩形，默认整张图片
            transform: 绘制变换，默认平移到目标矩形中心
            filters: 滤镜字符串，None 表示沿用当前状态
        """
        if source_rect is None:
            source_rect = Rect.from_size(image.size)
        if transform is None:
            transform = build_transform(target_rect)

        self.context.save()
        try:
            if filters is not None:
                self.context.filter = filters
            self.context.draw_image(image, source_rect, target_rect.size, transform)
        finally:
            self.context.restore()

    def paint_background(
        self,
        image: Image.Image,
        options: BackgroundOptions,
    ) -> Rect:
        """绘制背景图层.

        先应用滤镜，再按平铺或适应模式绘制，结束后立即恢复原滤镜。

        Returns:
            绘制区域（平铺时为整个画布）
        """
        previous = self.context.filter
        self.context.filter = build_filter(options)
        try:
            if options.repeat:
                return self.paint_pattern(image, options.scale)

            rect = resolve_rect(image.size, background_sizing(options, self.surface_size))
            self.paint(image, rect, transform=build_transform(rect, options.scale))
            return rect
        finally:
            self.context.filter = previous

    def paint_pattern(self, image: Image.Image, scale: float = 1.0) -> Rect:
        """用图片平铺整个画布.

        Raises:
            PatternCreationError: 无法创建平铺图案
        """
        rect = tile(self.surface_size)
        self.context.save()
        try:
            pattern = self.context.create_pattern(image, self.max_pattern_pixels)
            logger.debug(f"平铺图块 {image.width}x{image.height}，缩放 {scale}")
            transform = build_pattern_transform(self.surface_size, scale)
            self.context.fill_pattern(pattern, transform, rect)
        finally:
            self.context.restore()
        return rect

    def paint_foreground(
        self,
        image: Image.Image,
        options: ForegroundOptions,
    ) -> Rect:
        """绘制前景图层.

        90/270 度旋转时按旋转后的外接尺寸做适应计算，旋转绕目标矩形中心进行，
        旋转后的图片恰好落在适应结果内。

        Returns:
            未旋转时的目标矩形
        """
        degrees = options.rotation_in_degrees
        footprint = resolve_rect(
            rotated_size(image.size, degrees),
            foreground_sizing(options, self.surface_size),
        )

        width, height = rotated_size(footprint.size, degrees)
        cx, cy = footprint.center
        rect = Rect(cx - width / 2, cy - height / 2, width, height)

        self.paint(
            image,
            rect,
            transform=build_transform(rect, 1.0, degrees_to_radians(degrees)),
        )
        return rect

    def paint_watermark(
        self,
        image: Image.Image,
        options: WatermarkOptions,
    ) -> Rect:
        """绘制水印图层，不旋转、不滤镜.

        Returns:
            水印目标矩形
        """
        rect = watermark_rect(image.size, options, self.surface_size)

        self.context.save()
        try:
            self.context.filter = FILTER_NONE
            self.context.global_alpha = clamp_opacity(options.opacity)
            self.paint(image, rect)
        finally:
            self.context.restore()
        return rect
