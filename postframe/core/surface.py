"""目标画布与绘制上下文.

基于 Pillow 实现的目标画布，提供合成引擎需要的 2D 绘制接口：按源/目标矩形
绘制图片、滤镜状态、全局透明度、状态保存与恢复、以及带仿射变换的平铺填充。

每次绘制都先渲染到一张与画布同尺寸的透明临时图层，应用当前滤镜和全局透明度
后再用 alpha 合成叠加到画布上。
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from typing import Optional

from PIL import Image, ImageChops, ImageEnhance, ImageFilter

from postframe.core.transform import Affine
from postframe.models.layer_options import CanvasFormat, clamp_opacity
from postframe.models.rect import Rect, Size
from postframe.utils.constants import MAX_PATTERN_PIXELS
from postframe.utils.exceptions import DimensionError, PatternCreationError
from postframe.utils.image_utils import ensure_rgba
from postframe.utils.logger import setup_logger

logger = setup_logger(__name__)

# 无滤镜
FILTER_NONE = "none"

# 形如 blur(4px) / brightness(80%) / brightness(1e-05%) 的滤镜函数
_FILTER_FUNC_RE = re.compile(
    r"([a-z-]+)\(\s*(-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*(px|%)?\s*\)"
)

RGBAColor = tuple[int, int, int, int]


@dataclass(frozen=True)
class PaintState:
    """可保存/恢复的绘制状态."""

    filter: str = FILTER_NONE
    global_alpha: float = 1.0


@dataclass(frozen=True)
class Pattern:
    """平铺填充源."""

    image: Image.Image
    max_pixels: int = MAX_PATTERN_PIXELS

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


class PaintContext:
    """画布的 2D 绘制上下文."""

    def __init__(self, canvas: "Canvas") -> None:
        self._canvas = canvas
        self._state = PaintState()
        self._stack: list[PaintState] = []

    # ===================
    # 状态管理
    # ===================

    @property
    def canvas(self) -> "Canvas":
        return self._canvas

    @property
    def filter(self) -> str:
        return self._state.filter

    @filter.setter
    def filter(self, value: str) -> None:
        self._state = replace(self._state, filter=value.strip() or FILTER_NONE)

    @property
    def global_alpha(self) -> float:
        return self._state.global_alpha

    @global_alpha.setter
    def global_alpha(self, value: float) -> None:
        self._state = replace(self._state, global_alpha=clamp_opacity(value))

    @property
    def depth(self) -> int:
        """已保存状态的层数."""
        return len(self._stack)

    def save(self) -> None:
        """压栈保存当前绘制状态."""
        self._stack.append(self._state)

    def restore(self) -> None:
        """恢复最近一次保存的状态，栈为空时忽略."""
        if self._stack:
            self._state = self._stack.pop()

    # ===================
    # 绘制操作
    # ===================

    def fill_rect(self, rect: Rect, color: RGBAColor) -> None:
        """用纯色填充矩形.

        Args:
            rect: 目标矩形
            color: RGBA 颜色
        """
        layer = self._new_layer()
        layer.paste(color, _to_box(rect))
        self._composite(layer)

    def draw_image(
        self,
        image: Image.Image,
        source_rect: Rect,
        target_size: Size,
        transform: Affine,
    ) -> None:
        """绘制图片.

        采样 ``source_rect`` 区域，缩放到 ``target_size`` 并以局部原点为中心
        放置，最后经 ``transform`` 映射到画布。

        Args:
            image: 源图片
            source_rect: 源图采样矩形
            target_size: 局部坐标系中的绘制尺寸
            transform: 局部坐标到画布坐标的变换
        """
        target_w, target_h = target_size
        if target_w <= 0 or target_h <= 0:
            raise DimensionError(target_w, target_h)

        sample = ensure_rgba(image)
        box = _to_box(source_rect)
        if box != (0, 0, sample.width, sample.height):
            sample = sample.crop(box)

        pixel_w = max(1, round(target_w))
        pixel_h = max(1, round(target_h))
        if sample.size != (pixel_w, pixel_h):
            sample = sample.resize((pixel_w, pixel_h), Image.Resampling.LANCZOS)

        placement = Affine.translation(-target_w / 2, -target_h / 2) @ Affine.scaling(
            target_w / pixel_w, target_h / pixel_h
        )
        matrix = transform @ placement

        layer = self._new_layer()
        if _is_translation(matrix):
            # 纯平移直接粘贴，避免重采样
            layer.paste(sample, (round(matrix.c), round(matrix.f)))
        else:
            layer = sample.transform(
                self._canvas.size,
                Image.Transform.AFFINE,
                matrix.to_pil_data(),
                resample=Image.Resampling.BICUBIC,
            )
        self._composite(layer)

    def create_pattern(
        self,
        image: Image.Image,
        max_pixels: Optional[int] = None,
    ) -> Pattern:
        """从图片创建平铺填充源.

        Raises:
            PatternCreationError: 图片为空或超过像素上限
        """
        limit = max_pixels or MAX_PATTERN_PIXELS
        width, height = image.size
        if width <= 0 or height <= 0:
            raise PatternCreationError(f"图片尺寸为 {width}x{height}")
        if width * height > limit:
            raise PatternCreationError(
                f"图片过大 ({width}x{height})，超过 {limit} 像素上限"
            )
        return Pattern(image=ensure_rgba(image), max_pixels=limit)

    def fill_pattern(self, pattern: Pattern, transform: Affine, rect: Rect) -> None:
        """用平铺图案填充矩形.

        Args:
            pattern: 平铺填充源
            transform: 图案坐标到画布坐标的变换
            rect: 填充区域

        Raises:
            PatternCreationError: 变换不可逆，或旋转/镜像后展开的图案过大
        """
        try:
            inverse = transform.inverse()
        except ValueError as e:
            raise PatternCreationError(str(e)) from e

        if _is_axis_aligned(transform):
            step = (pattern.size[0] * transform.a, pattern.size[1] * transform.e)
            tile_size = (max(1, round(step[0])), max(1, round(step[1])))
            if tile_size[0] * tile_size[1] <= pattern.max_pixels:
                layer = self._tile_layer(pattern, transform, step, tile_size, rect)
                self._composite(self._clip(layer, rect))
                return

        tile_w, tile_h = pattern.size
        region = inverse.bounds(rect)

        # 多展开一圈图块，保证重采样边缘也有像素
        col0 = math.floor(region.x / tile_w) - 1
        row0 = math.floor(region.y / tile_h) - 1
        col1 = math.ceil(region.right / tile_w) + 1
        row1 = math.ceil(region.bottom / tile_h) + 1
        cols = col1 - col0
        rows = row1 - row0

        if cols * tile_w * rows * tile_h > pattern.max_pixels:
            raise PatternCreationError(
                f"平铺区域过大 ({cols}x{rows} 个 {tile_w}x{tile_h} 图块)"
            )

        tiled = Image.new("RGBA", (cols * tile_w, rows * tile_h), (0, 0, 0, 0))
        for row in range(rows):
            for col in range(cols):
                tiled.paste(pattern.image, (col * tile_w, row * tile_h))

        to_tiled = Affine.translation(-col0 * tile_w, -row0 * tile_h) @ inverse
        layer = tiled.transform(
            self._canvas.size,
            Image.Transform.AFFINE,
            to_tiled.as_tuple(),
            resample=Image.Resampling.BICUBIC,
        )
        self._composite(self._clip(layer, rect))

    # ===================
    # 内部方法
    # ===================

    def _new_layer(self) -> Image.Image:
        return Image.new("RGBA", self._canvas.size, (0, 0, 0, 0))

    def _tile_layer(
        self,
        pattern: Pattern,
        transform: Affine,
        step: tuple[float, float],
        tile_size: tuple[int, int],
        rect: Rect,
    ) -> Image.Image:
        """按画布分辨率缩放图块后逐行粘贴.

        Args:
            pattern: 平铺填充源
            transform: 只含缩放和平移的图案变换
            step: 图块在画布上的精确尺寸
            tile_size: 图块的像素尺寸
            rect: 填充区域
        """
        layer = self._new_layer()
        left, top, right, bottom = _to_box(rect)
        left, top = max(left, 0), max(top, 0)
        right, bottom = min(right, layer.width), min(bottom, layer.height)
        if right <= left or bottom <= top:
            return layer

        tile = pattern.image
        if tile.size != tile_size:
            tile = tile.resize(tile_size, Image.Resampling.LANCZOS)
        tile_w, tile_h = tile_size

        # 以离填充区域中心最近的图块角点为锚点，保证缩放中心处图案不漂移
        cx, cy = rect.center
        anchor_x = round(transform.c + math.floor((cx - transform.c) / step[0]) * step[0])
        anchor_y = round(transform.f + math.floor((cy - transform.f) / step[1]) * step[1])
        start_x = anchor_x - math.ceil((anchor_x - left) / tile_w) * tile_w
        start_y = anchor_y - math.ceil((anchor_y - top) / tile_h) * tile_h

        row = Image.new("RGBA", (right - start_x, tile_h), (0, 0, 0, 0))
        for x in range(0, row.width, tile_w):
            row.paste(tile, (x, 0))
        for y in range(start_y, bottom, tile_h):
            layer.paste(row, (start_x, y))
        return layer

    def _clip(self, layer: Image.Image, rect: Rect) -> Image.Image:
        """去掉填充区域以外的像素."""
        if _to_box(rect) != (0, 0, *self._canvas.size):
            clip = Image.new("L", self._canvas.size, 0)
            clip.paste(255, _to_box(rect))
            layer.putalpha(ImageChops.multiply(layer.getchannel("A"), clip))
        return layer

    def _composite(self, layer: Image.Image) -> None:
        """应用当前滤镜与全局透明度后叠加到画布."""
        layer = apply_filter(layer, self._state.filter)

        alpha = self._state.global_alpha
        if alpha < 1.0:
            channel = layer.getchannel("A").point(lambda p: round(p * alpha))
            layer.putalpha(channel)

        self._canvas.image.alpha_composite(layer)


def apply_filter(layer: Image.Image, filter_value: str) -> Image.Image:
    """按滤镜字符串依次处理图层.

    支持 ``blur(Npx)`` 与 ``brightness(M%)``，未知的滤镜函数会被忽略。

    Args:
        layer: RGBA 图层
        filter_value: 滤镜字符串，``none`` 表示不处理

    Returns:
        处理后的图层
    """
    if not filter_value or filter_value == FILTER_NONE:
        return layer

    for name, raw_value, _unit in _FILTER_FUNC_RE.findall(filter_value):
        value = float(raw_value)
        if name == "blur":
            if value > 0:
                # 预乘 alpha 后模糊，避免透明区域的颜色渗入
                layer = (
                    layer.convert("RGBa")
                    .filter(ImageFilter.GaussianBlur(radius=value))
                    .convert("RGBA")
                )
        elif name == "brightness":
            r, g, b, a = layer.split()
            rgb = ImageEnhance.Brightness(Image.merge("RGB", (r, g, b))).enhance(
                value / 100
            )
            layer = Image.merge("RGBA", (*rgb.split(), a))
        else:
            logger.warning(f"忽略不支持的滤镜: {name}")

    return layer


class Canvas:
    """固定尺寸的目标画布.

    Attributes:
        image: RGBA 像素缓冲区，由绘制上下文就地修改
    """

    def __init__(
        self,
        width: int,
        height: int,
        fill: RGBAColor = (0, 0, 0, 0),
    ) -> None:
        if width <= 0 or height <= 0:
            raise DimensionError(width, height)
        self.image = Image.new("RGBA", (width, height), fill)
        self._context: Optional[PaintContext] = None
        self._released = False

    @classmethod
    def for_format(cls, canvas_format: CanvasFormat) -> "Canvas":
        """按画布规格创建画布."""
        width, height = CanvasFormat(canvas_format).size
        return cls(width, height)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def get_context(self) -> Optional[PaintContext]:
        """获取绘制上下文，画布释放后返回 None."""
        if self._released:
            return None
        if self._context is None:
            self._context = PaintContext(self)
        return self._context

    def release(self) -> None:
        """释放画布，此后无法再获取绘制上下文."""
        self._released = True
        self._context = None

    def snapshot(self) -> Image.Image:
        """返回当前像素的副本."""
        return self.image.copy()


def _to_box(rect: Rect) -> tuple[int, int, int, int]:
    """矩形转为 PIL 的整数 (left, top, right, bottom)."""
    return (round(rect.x), round(rect.y), round(rect.right), round(rect.bottom))


def _is_translation(matrix: Affine) -> bool:
    return (
        abs(matrix.a - 1) < 1e-9
        and abs(matrix.e - 1) < 1e-9
        and abs(matrix.b) < 1e-9
        and abs(matrix.d) < 1e-9
    )


def _is_axis_aligned(matrix: Affine) -> bool:
    """只含正向缩放和平移."""
    return (
        abs(matrix.b) < 1e-9
        and abs(matrix.d) < 1e-9
        and matrix.a > 0
        and matrix.e > 0
    )
