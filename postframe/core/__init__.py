"""合成引擎核心模块."""

from postframe.core.compositor import Compositor, compose_frame
from postframe.core.geometry import (
    aspect_ratio,
    contain,
    cover,
    orientation,
    resolve_rect,
    tile,
)
from postframe.core.layer_renderer import (
    LayerRenderer,
    build_filter,
    watermark_padding,
    watermark_rect,
)
from postframe.core.surface import Canvas, PaintContext, Pattern
from postframe.core.transform import Affine, build_pattern_transform, build_transform

__all__ = [
    # 合成器
    "Compositor",
    "compose_frame",
    # 几何解析
    "aspect_ratio",
    "contain",
    "cover",
    "orientation",
    "resolve_rect",
    "tile",
    # 图层渲染
    "LayerRenderer",
    "build_filter",
    "watermark_padding",
    "watermark_rect",
    # 画布
    "Canvas",
    "PaintContext",
    "Pattern",
    # 变换
    "Affine",
    "build_pattern_transform",
    "build_transform",
]
