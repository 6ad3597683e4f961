"""合成请求数据模型.

一次合成请求包含最多三个图层的原始图片数据和各自的选项，解码结果按
图层角色收集到固定结构中。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from PIL import Image

from postframe.models.layer_options import (
    BackgroundOptions,
    ForegroundOptions,
    WatermarkOptions,
)
from postframe.utils.image_utils import guess_mime_type


@dataclass(frozen=True)
class ImageSource:
    """未解码的图片数据."""

    data: bytes
    mime_type: str

    @classmethod
    def from_path(cls, path: Path | str) -> "ImageSource":
        """读取文件并按扩展名推断 MIME 类型."""
        path = Path(path)
        return cls(data=path.read_bytes(), mime_type=guess_mime_type(path))

    def __repr__(self) -> str:
        return f"ImageSource(mime_type={self.mime_type!r}, size={len(self.data)})"


@dataclass
class CompositionLayers:
    """一次合成请求的全部图层输入."""

    background: Optional[ImageSource] = None
    foreground: Optional[ImageSource] = None
    watermark: Optional[ImageSource] = None
    background_options: BackgroundOptions = field(default_factory=BackgroundOptions)
    foreground_options: ForegroundOptions = field(default_factory=ForegroundOptions)
    watermark_options: WatermarkOptions = field(default_factory=WatermarkOptions)

    def sources(self) -> dict[str, Optional[ImageSource]]:
        """按图层角色返回原始数据."""
        return {
            "background": self.background,
            "foreground": self.foreground,
            "watermark": self.watermark,
        }


@dataclass(frozen=True)
class DecodedLayers:
    """按图层角色收集的解码结果，缺失的图层为 None."""

    background: Optional[Image.Image] = None
    foreground: Optional[Image.Image] = None
    watermark: Optional[Image.Image] = None
