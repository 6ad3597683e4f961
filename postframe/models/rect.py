"""矩形与尺寸模式数据类型.

Rect 是目标画布坐标系下的矩形（像素，可为小数），既可以表示源图采样窗口，
也可以表示目标绘制窗口。ContainSizing / CoverSizing 构成尺寸模式的
标签联合，由几何解析器按类型分派。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from postframe.models.layer_options import AnchorPosition

# (宽, 高)
Size = tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """矩形值类型."""

    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_size(cls, size: Size) -> "Rect":
        """以原点为左上角创建矩形."""
        return cls(0, 0, size[0], size[1])

    @property
    def size(self) -> Size:
        return (self.w, self.h)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.w / 2, self.y + self.h / 2)

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def offset(self, dx: float, dy: float) -> "Rect":
        """返回平移后的新矩形."""
        return Rect(self.x + dx, self.y + dy, self.w, self.h)

    def is_close(self, other: "Rect", tolerance: float = 1e-6) -> bool:
        """在容差内比较两个矩形."""
        return all(
            abs(a - b) <= tolerance
            for a, b in zip(
                (self.x, self.y, self.w, self.h),
                (other.x, other.y, other.w, other.h),
            )
        )


@dataclass(frozen=True)
class ContainSizing:
    """contain 模式：完整放入目标区域，不放大，居中."""

    max_width: float
    max_height: float


@dataclass(frozen=True)
class CoverSizing:
    """cover 模式：填满目标区域，可能裁剪或放大，按 position 锚定."""

    max_width: float
    max_height: float
    position: AnchorPosition = AnchorPosition.CENTER


Sizing = Union[ContainSizing, CoverSizing]
