"""几何解析模块.

根据源图原始尺寸和目标边界框计算图层的目标矩形。所有函数都是纯函数，
返回的坐标相对于边界框原点。

contain 与 cover 统一使用缩放比的 min/max 形式计算，不按横竖图分支。
"""

from __future__ import annotations

from postframe.models.layer_options import AnchorPosition
from postframe.models.rect import ContainSizing, CoverSizing, Rect, Size, Sizing
from postframe.utils.exceptions import DimensionError


def validate_size(size: Size) -> Size:
    """校验尺寸的宽高均大于 0.

    Raises:
        DimensionError: 宽或高不大于 0
    """
    width, height = size
    if width <= 0 or height <= 0:
        raise DimensionError(width, height)
    return size


def aspect_ratio(size: Size) -> float:
    """宽高比 (w / h)."""
    width, height = validate_size(size)
    return width / height


def orientation(size: Size) -> str:
    """返回 portrait（宽高比 < 1）或 landscape."""
    return "portrait" if aspect_ratio(size) < 1 else "landscape"


def rotated_size(size: Size, degrees: int) -> Size:
    """直角旋转后的外接尺寸，90/270 度时交换宽高."""
    if degrees % 180 == 90:
        return (size[1], size[0])
    return size


def contain(source_size: Size, box: Size) -> Rect:
    """完整放入边界框，不放大，居中.

    Args:
        source_size: 源图原始尺寸
        box: 边界框尺寸

    Returns:
        目标矩形
    """
    src_w, src_h = validate_size(source_size)
    box_w, box_h = box

    scale = min(1.0, box_w / src_w, box_h / src_h)
    w = src_w * scale
    h = src_h * scale

    return Rect((box_w - w) / 2, (box_h - h) / 2, w, h)


def cover(
    source_size: Size,
    box: Size,
    position: AnchorPosition = AnchorPosition.CENTER,
) -> Rect:
    """填满边界框，可能裁剪或放大.

    Args:
        source_size: 源图原始尺寸
        box: 边界框尺寸
        position: 锚点，start 贴左上，end 贴右下，center 居中

    Returns:
        目标矩形
    """
    src_w, src_h = validate_size(source_size)
    box_w, box_h = box

    scale = max(box_w / src_w, box_h / src_h)
    w = src_w * scale
    h = src_h * scale

    position = AnchorPosition(position)
    if position == AnchorPosition.START:
        x, y = 0.0, 0.0
    elif position == AnchorPosition.END:
        x, y = box_w - w, box_h - h
    else:
        x, y = (box_w - w) / 2, (box_h - h) / 2

    return Rect(x, y, w, h)


def tile(box: Size) -> Rect:
    """平铺模式：整个边界框即绘制目标."""
    return Rect.from_size(box)


def resolve_rect(source_size: Size, sizing: Sizing) -> Rect:
    """按尺寸模式解析目标矩形.

    Args:
        source_size: 源图原始尺寸
        sizing: ContainSizing 或 CoverSizing

    Returns:
        目标矩形

    Raises:
        DimensionError: 源图宽或高为 0
        TypeError: 未知的尺寸模式
    """
    if isinstance(sizing, ContainSizing):
        return contain(source_size, (sizing.max_width, sizing.max_height))
    elif isinstance(sizing, CoverSizing):
        return cover(
            source_size,
            (sizing.max_width, sizing.max_height),
            sizing.position,
        )
    raise TypeError(f"未知的尺寸模式: {type(sizing).__name__}")
