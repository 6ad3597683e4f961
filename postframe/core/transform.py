"""绘制变换模块.

用显式的 2x3 仿射矩阵组合平移、旋转和等比缩放。图层图片在局部坐标系中以
原点为中心绘制（覆盖 [-w/2, -h/2] 到 [w/2, h/2]），变换把局部坐标映射到
目标画布坐标，因此旋转和缩放总是绕目标矩形中心进行。
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from postframe.models.rect import Rect, Size

# 小于该值的矩阵元素视为 0，消除直角旋转的浮点噪声
_EPSILON = 1e-12


def _snap(value: float) -> float:
    return 0.0 if abs(value) < _EPSILON else value


@dataclass(frozen=True)
class Affine:
    """2x3 仿射矩阵.

    映射关系::

        x' = a * x + b * y + c
        y' = d * x + e * y + f
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 0.0
    e: float = 1.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> "Affine":
        return cls()

    @classmethod
    def translation(cls, tx: float, ty: float) -> "Affine":
        return cls(c=tx, f=ty)

    @classmethod
    def scaling(cls, sx: float, sy: float | None = None) -> "Affine":
        return cls(a=sx, e=sx if sy is None else sy)

    @classmethod
    def rotation(cls, radians: float) -> "Affine":
        """旋转矩阵（y 轴向下的坐标系中为顺时针）."""
        cos = _snap(math.cos(radians))
        sin = _snap(math.sin(radians))
        return cls(a=cos, b=-sin, d=sin, e=cos)

    def multiply(self, other: "Affine") -> "Affine":
        """矩阵乘法 self · other，即先应用 other 再应用 self."""
        return Affine(
            a=self.a * other.a + self.b * other.d,
            b=self.a * other.b + self.b * other.e,
            c=self.a * other.c + self.b * other.f + self.c,
            d=self.d * other.a + self.e * other.d,
            e=self.d * other.b + self.e * other.e,
            f=self.d * other.c + self.e * other.f + self.f,
        )

    def __matmul__(self, other: "Affine") -> "Affine":
        return self.multiply(other)

    @property
    def determinant(self) -> float:
        return self.a * self.e - self.b * self.d

    def inverse(self) -> "Affine":
        """逆矩阵.

        Raises:
            ValueError: 矩阵不可逆（如缩放为 0）
        """
        det = self.determinant
        if abs(det) < _EPSILON:
            raise ValueError("仿射矩阵不可逆")
        a = self.e / det
        b = -self.b / det
        d = -self.d / det
        e = self.a / det
        return Affine(
            a=a,
            b=b,
            c=-(a * self.c + b * self.f),
            d=d,
            e=e,
            f=-(d * self.c + e * self.f),
        )

    def apply(self, point: tuple[float, float]) -> tuple[float, float]:
        """变换一个点."""
        x, y = point
        return (self.a * x + self.b * y + self.c, self.d * x + self.e * y + self.f)

    def bounds(self, rect: Rect) -> Rect:
        """变换矩形四角后的外接矩形."""
        corners = [
            self.apply((rect.x, rect.y)),
            self.apply((rect.right, rect.y)),
            self.apply((rect.x, rect.bottom)),
            self.apply((rect.right, rect.bottom)),
        ]
        xs = [p[0] for p in corners]
        ys = [p[1] for p in corners]
        return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    def as_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)

    def to_pil_data(self) -> tuple[float, float, float, float, float, float]:
        """转换为 ``Image.transform(..., Image.Transform.AFFINE, data)`` 的参数.

        PIL 需要的是从输出像素到输入像素的映射，即逆矩阵。
        """
        return self.inverse().as_tuple()


def build_transform(
    target_rect: Rect,
    scale: float = 1.0,
    rotation_radians: float = 0.0,
) -> Affine:
    """构建图层绘制变换.

    等价于：平移到目标矩形中心 → 旋转 → 等比缩放。

    Args:
        target_rect: 目标矩形
        scale: 等比缩放倍数
        rotation_radians: 旋转弧度

    Returns:
        局部坐标到画布坐标的仿射矩阵
    """
    cx, cy = target_rect.center
    return (
        Affine.translation(cx, cy)
        @ Affine.rotation(rotation_radians)
        @ Affine.scaling(scale)
    )


def build_pattern_transform(surface_size: Size, scale: float = 1.0) -> Affine:
    """构建平铺图案变换，以画布中心为锚点缩放.

    Args:
        surface_size: 画布尺寸
        scale: 图案缩放倍数

    Returns:
        图案坐标到画布坐标的仿射矩阵
    """
    cx = surface_size[0] / 2
    cy = surface_size[1] / 2
    return (
        Affine.translation(cx, cy)
        @ Affine.scaling(scale)
        @ Affine.translation(-cx, -cy)
    )


def degrees_to_radians(degrees: float) -> float:
    return math.radians(degrees)
